"""
Visualization utilities.

- Cell type maps
- Concentration and growth-rate heatmaps
- Pair-distance histograms
"""

from coopsim.viz.fields import (
    plot_field,
    plot_cell_types,
    plot_concentration,
    plot_growth_rates,
    plot_step_summary,
    plot_radial_distribution,
    save_figure,
)

__all__ = [
    "plot_field",
    "plot_cell_types",
    "plot_concentration",
    "plot_growth_rates",
    "plot_step_summary",
    "plot_radial_distribution",
    "save_figure",
]
