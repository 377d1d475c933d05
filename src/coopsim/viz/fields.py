"""
2D visualization of a replicate.

Provides heatmaps for:
- cell types (producer, cheater, empty, dead)
- c(x): resource concentration
- growth rate per cell
- pair-distance histograms

Everything takes plain arrays (or a StepReport), so the core never needs
matplotlib.
"""

from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.colors import BoundaryNorm, LinearSegmentedColormap, ListedColormap
from matplotlib.figure import Figure
from matplotlib.patches import Patch

from coopsim.core.cells import CellType

if TYPE_CHECKING:
    from coopsim.core.simulator import StepReport


# One color per CellType value, in value order
TYPE_COLORS = {
    CellType.EMPTY: (0.993, 0.978, 0.925),     # Warm white
    CellType.CHEATER: (0.855, 0.345, 0.114),   # Orange-red
    CellType.PRODUCER: (0.127, 0.566, 0.550),  # Teal
    CellType.DEAD: (0.05, 0.02, 0.02),         # Near black
}

CMAP_TYPES = ListedColormap([TYPE_COLORS[k] for k in CellType], name="cell_types")
NORM_TYPES = BoundaryNorm(np.arange(len(CellType) + 1) - 0.5, len(CellType))


def _create_resource_cmap():
    """Dark purple (no resource) → teal → warm white (rich)."""
    colors = [
        (0.267, 0.004, 0.329),  # Dark purple
        (0.253, 0.265, 0.529),  # Blue-purple
        (0.127, 0.566, 0.550),  # Teal
        (0.565, 0.820, 0.376),  # Light green
        (0.993, 0.978, 0.925),  # Warm white
    ]
    return LinearSegmentedColormap.from_list("resource", colors)


CMAP_RESOURCE = _create_resource_cmap()
CMAP_GROWTH = "RdBu_r"  # Diverging: starving (blue) / growing (red)


def _as_grid(values: np.ndarray, width: int | None = None) -> np.ndarray:
    """Reshape a row-major N-vector to [W, W]; pass 2D arrays through."""
    values = np.asarray(values)
    if values.ndim == 2:
        return values
    if width is None:
        width = int(round(np.sqrt(values.size)))
    if width * width != values.size:
        raise ValueError(f"Cannot shape {values.size} values into a square lattice")
    return values.reshape(width, width)


def _axes(ax: Axes | None, figsize: tuple[float, float]) -> tuple[Figure, Axes]:
    if ax is None:
        return plt.subplots(figsize=figsize)
    return ax.figure, ax


def plot_field(
    field: np.ndarray,
    title: str = "",
    cmap=None,
    vmin: float | None = None,
    vmax: float | None = None,
    ax: Axes | None = None,
    colorbar: bool = True,
    figsize: tuple[float, float] = (8, 6),
) -> tuple[Figure, Axes]:
    """
    Plot a lattice quantity as a heatmap.

    Args:
        field: Row-major N-vector or [W, W] array
        title: Plot title
        cmap: Colormap (default: resource colormap)
        vmin, vmax: Color scale limits (auto if None)
        ax: Existing axes to plot on (creates new figure if None)
        colorbar: Whether to add a colorbar
        figsize: Figure size if creating new figure

    Returns:
        (fig, ax) tuple
    """
    if cmap is None:
        cmap = CMAP_RESOURCE

    fig, ax = _axes(ax, figsize)

    im = ax.imshow(
        _as_grid(field),
        origin="lower",
        cmap=cmap,
        vmin=vmin,
        vmax=vmax,
        aspect="equal",
    )

    if colorbar:
        plt.colorbar(im, ax=ax, fraction=0.046, pad=0.04)

    ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")

    return fig, ax


def plot_cell_types(
    types: np.ndarray,
    title: str = "Cell types",
    ax: Axes | None = None,
    legend: bool = True,
    figsize: tuple[float, float] = (6, 6),
) -> tuple[Figure, Axes]:
    """Plot the type byte of every site with one fixed color per CellType."""
    fig, ax = _axes(ax, figsize)

    ax.imshow(
        _as_grid(types),
        origin="lower",
        cmap=CMAP_TYPES,
        norm=NORM_TYPES,
        aspect="equal",
        interpolation="nearest",
    )
    ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")

    if legend:
        handles = [Patch(color=TYPE_COLORS[k], label=k.name.lower()) for k in CellType]
        ax.legend(handles=handles, loc="upper right", fontsize="small")

    return fig, ax


def plot_concentration(
    concentration: np.ndarray,
    ax: Axes | None = None,
    **kwargs,
) -> tuple[Figure, Axes]:
    """Plot the resource concentration c(x)."""
    return plot_field(concentration, title="Resource c(x)", cmap=CMAP_RESOURCE, ax=ax, **kwargs)


def plot_growth_rates(
    growth_rates: np.ndarray,
    ax: Axes | None = None,
    **kwargs,
) -> tuple[Figure, Axes]:
    """Plot growth rate per cell, centered on zero."""
    limit = float(np.max(np.abs(growth_rates))) or 1.0
    return plot_field(
        growth_rates,
        title="Growth rate",
        cmap=CMAP_GROWTH,
        vmin=-limit,
        vmax=limit,
        ax=ax,
        **kwargs,
    )


def plot_step_summary(
    report: "StepReport",
    figsize: tuple[float, float] = (15, 4.5),
) -> Figure:
    """
    Plot cell types, concentration and growth rate side by side.

    Args:
        report: Snapshot passed to simulator observers

    Returns:
        Figure with 3 subplots
    """
    fig, axes = plt.subplots(1, 3, figsize=figsize)

    plot_cell_types(report.types, title=f"Step {report.step}", ax=axes[0])
    plot_concentration(report.concentration, ax=axes[1])
    plot_growth_rates(report.growth_rates, ax=axes[2])

    counts = report.counts
    fig.suptitle(
        f"t = {report.elapsed_time:.4g}   producers = {counts[CellType.PRODUCER]}   "
        f"cheaters = {counts[CellType.CHEATER]}"
    )

    fig.tight_layout()
    return fig


def plot_radial_distribution(
    radii: np.ndarray,
    values: np.ndarray,
    label: str = "",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 5),
    **plot_kwargs,
) -> tuple[Figure, Axes]:
    """
    Plot a pair-distance histogram (or g(r)).

    Args:
        radii: Integer radii
        values: Pair count (or g(r)) at each radius
        label: Line label
        ax: Existing axes (creates new if None)
        figsize: Figure size

    Returns:
        (fig, ax) tuple
    """
    fig, ax = _axes(ax, figsize)

    ax.plot(radii, values, marker="o", label=label, **plot_kwargs)
    ax.set_xlabel("Pair distance (r)")
    ax.set_ylabel("Pairs")
    ax.grid(True, alpha=0.3)

    if label:
        ax.legend()

    return fig, ax


def save_figure(fig: Figure, path: str | Path, dpi: int = 150, **kwargs) -> None:
    """Save figure to file."""
    fig.savefig(path, dpi=dpi, bbox_inches="tight", **kwargs)
