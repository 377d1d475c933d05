#!/usr/bin/env python3
"""
Demo: Who Takes Over? Fixation of Producers vs Cheaters

A single cheater invades a lattice of producers:
1. Solve the point-source field once
2. Run several replicates of the continuous replacement process
3. Report which phenotype fixed, how many steps it took, and the Gillespie time
4. Plot the last replicate's final state

Producers pay a cost equal to their production rate but share the resource
they release. Whether the cheater wins depends on how much of that resource
stays near its producer (diffusion vs decay) and on the benefit.

Output: output/demo_fixation/final_state.png
"""

import logging
from pathlib import Path

import numpy as np

from coopsim.core import CellType, SimulationConfig
from coopsim.core.simulator import Simulator, run_replicates
from coopsim.field import PointSourceField
from coopsim.viz import plot_step_summary, save_figure


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("  FIXATION OF A SINGLE CHEATER")
    print("=" * 60)

    config = SimulationConfig(
        width=16,
        diffusion=0.1,
        decay=0.05,
        production=0.2,
        growth=1.0,
        benefit=0.5,
        max_steps=5000,
        seed=7,
        initial_condition="single_cheater",
    )

    print("\n1. Setup:")
    print(f"   Lattice: {config.width}x{config.width}")
    print(f"   Diffusion={config.diffusion}, decay={config.decay}")
    print(f"   Production (cost)={config.production}, benefit={config.benefit}")

    field = PointSourceField.from_config(config)
    print(f"   Self-concentration of a lone producer: {field.source_concentration:.4f}")
    print(f"   All-producer ceiling: {field.ceiling:.4f}")

    n_replicates = 10
    print(f"\n2. Running {n_replicates} replicates...")
    results = run_replicates(config, n_replicates)

    print()
    print(f"   {'Replicate':>9} | {'Outcome':>22} | {'Steps':>6} | {'Time':>8}")
    print(f"   {'-'*9}-+-{'-'*22}-+-{'-'*6}-+-{'-'*8}")
    for r in results:
        if r.fixated:
            label = f"fixation: {r.outcome.winner.name.lower()}"
        else:
            label = type(r.outcome).__name__
        print(f"   {r.replicate:>9} | {label:>22} | {r.steps:>6} | {r.elapsed_time:>8.3f}")

    cheater_wins = sum(1 for r in results if r.fixated and r.outcome.winner == CellType.CHEATER)
    print(f"\n   Cheater fixation probability: {cheater_wins}/{n_replicates}")

    print("\n3. Final state of one replicate...")
    simulator = Simulator(config, field=field, rng=np.random.default_rng(config.seed))
    result = simulator.run()
    print(f"   Ended with {result.outcome} after {result.steps} steps")

    fig = plot_step_summary(simulator.report())

    output_dir = Path("output/demo_fixation")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "final_state.png"
    save_figure(fig, output_path)
    print(f"\n   Saved to: {output_path}")


if __name__ == "__main__":
    main()
