"""
Aggregate statistics over the runs of a sweep.

- Average infection level: mean fraction of agents following the true leader
  at the end of a run
- Average leader error: share of runs where the leader declared the election
  complete before every agent followed it, or infection never completed
- Leader overtaken: runs where the true leader never declared completion
"""

from dataclasses import dataclass, field
from typing import Iterable
import numpy as np

from models import RunResult


@dataclass
class SweepSummary:
    total_runs: int = 0
    avg_infection_level: float = 0.0  # percent
    avg_leader_error: float = 0.0  # percent
    leader_errors: int = 0
    leader_overtaken: int = 0
    infection_incomplete: int = 0
    # population -> mean interactions to reach each marker (None if never reached)
    mean_marker_interactions: dict[int, dict[str, float | None]] = field(default_factory=dict)

    def __repr__(self) -> str:
        lines = ["SweepSummary:"]
        lines.append(f"  total runs:            {self.total_runs}")
        lines.append(f"  avg infection level:   {self.avg_infection_level:.2f}%")
        lines.append(f"  avg leader error:      {self.avg_leader_error:.2f}%")
        lines.append(f"  leader overtaken:      {self.leader_overtaken}")
        lines.append(f"  infection incomplete:  {self.infection_incomplete}")
        if not self.mean_marker_interactions:
            return "\n".join(lines)

        lines.append(f"  {'Agents':<8} {'Infection':<12} {'Leader':<12} {'All':<12}")
        lines.append("  " + "-" * 44)
        for population in sorted(self.mean_marker_interactions):
            m = self.mean_marker_interactions[population]
            cells = [f"{m[k]:.1f}" if m[k] is not None else "N/A" for k in ("infection", "leader", "all")]
            lines.append(f"  {population:<8} {cells[0]:<12} {cells[1]:<12} {cells[2]:<12}")
        return "\n".join(lines)


def is_leader_error(r: RunResult) -> bool:
    """Leader declared before full infection, or infection never completed."""
    if r.infection_complete_interactions is None:
        return True
    return (r.leader_complete_interactions is not None
            and r.infection_complete_interactions > r.leader_complete_interactions)


def _mean_or_none(values: list[int | None]) -> float | None:
    reached = [v for v in values if v is not None]
    if not reached:
        return None
    return float(np.mean(reached))


def summarize(results: Iterable[RunResult], total_runs: int | None = None) -> SweepSummary:
    """
    Reduce run results to a SweepSummary.

    Args:
        results: Results of every run in the sweep
        total_runs: Denominator for the averages; defaults to len(results)
    """
    results = list(results)
    total = total_runs if total_runs is not None else len(results)
    summary = SweepSummary(total_runs=total)
    if total == 0:
        return summary

    levels = np.array([r.infections / r.population for r in results], dtype=float)
    summary.avg_infection_level = float(levels.sum() / total * 100.0)

    for r in results:
        if r.leader_complete_interactions is None:
            summary.leader_overtaken += 1
        if is_leader_error(r):
            summary.leader_errors += 1
        if r.infection_complete_interactions is None:
            summary.infection_incomplete += 1
    summary.avg_leader_error = summary.leader_errors / total * 100.0

    by_population: dict[int, list[RunResult]] = {}
    for r in results:
        by_population.setdefault(r.population, []).append(r)
    for population, rs in by_population.items():
        summary.mean_marker_interactions[population] = {
            "infection": _mean_or_none([r.infection_complete_interactions for r in rs]),
            "leader": _mean_or_none([r.leader_complete_interactions for r in rs]),
            "all": _mean_or_none([r.all_complete_interactions for r in rs]),
        }
    return summary
