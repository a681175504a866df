#!/usr/bin/env python3
"""
Example script running a small chain experiment and printing the markers of
every run.

Agents all start on the first node of a two node chain; the sweep covers
100 to 109 agents, three runs each.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from global_params import Params, GraphParams
from main import Simulator, configure_logging


def main():
    params = Params(
        population_lower=100,
        population_upper=110,
        runs=3,
        term_a=4,
        term_b=0,
        max_time_steps=1_200_000,
        node_selection="weighted",
        agent_distribution="single",
        graph=GraphParams(type="chain", n=2),
        seed=42,
        run_dir="data_chain_sweep",
        save_data=True,
        charts=True,
    )

    print("=" * 70)
    print("Running chain leader election sweep")
    print("=" * 70)
    print(f"  - Agents: {params.population_lower} to {params.population_upper - 1}")
    print(f"  - Runs per population: {params.runs}")
    print(f"  - Heuristic: {params.term_b} + {params.term_a} * conversions < met followers")
    print("=" * 70)
    print()

    configure_logging("WARNING", params.run_dir)
    sim = Simulator.from_params(params)
    summary = sim.run()
    print(summary)

    print("\nPer run markers (interactions):")
    print("-" * 70)
    for r in sim.results:
        print(f"N={r.population:<5} run {r.repetition + 1}: "
              f"infection {r.infection_complete_interactions}, "
              f"leader {r.leader_complete_interactions}, "
              f"all {r.all_complete_interactions}")


if __name__ == "__main__":
    main()
