"""
Charts for a finished sweep.

MarkersChart plots, for every run, the number of interactions needed to reach
each marker against the population size. InfectionChart plots how many agents
follow the true leader over the steps of single runs.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes

if TYPE_CHECKING:
    from models import RunResult


MARKERS = (
    ("infection_complete_interactions", "Infection complete", "tab:red"),
    ("leader_complete_interactions", "Leader declares complete", "tab:blue"),
    ("all_complete_interactions", "All declare complete", "tab:green"),
)


@dataclass
class MarkersChart:
    """
    Scatter of marker interactions vs number of agents.

    Attributes:
        fig: Matplotlib figure object
        ax: Matplotlib axes object
    """
    fig: Figure | None = None
    ax: Axes | None = None

    def setup_figure(self, figsize: tuple[float, float] = (10, 6)):
        self.fig, self.ax = plt.subplots(figsize=figsize)
        self.ax.set_xlabel("Number of agents")
        self.ax.set_ylabel("Interactions")
        self.ax.grid(True, alpha=0.3)

    def plot(self, results: list["RunResult"], title: str = "Election markers", save_path: str | None = None):
        """
        Plot one point per run and marker. Markers that never fired are left out.

        Args:
            results: Run results of the sweep
            title: Plot title
            save_path: If provided, save the plot to this path
        """
        if self.fig is None or self.ax is None:
            self.setup_figure()

        self.ax.clear()
        self.ax.set_xlabel("Number of agents")
        self.ax.set_ylabel("Interactions")
        self.ax.grid(True, alpha=0.3)
        self.ax.set_title(title)

        for attr, label, color in MARKERS:
            points = [(r.population, getattr(r, attr)) for r in results if getattr(r, attr) is not None]
            if not points:
                continue
            xs, ys = zip(*points)
            self.ax.scatter(xs, ys, s=12, alpha=0.6, color=color, label=label)

        if self.ax.get_legend_handles_labels()[0]:
            self.ax.legend(loc="upper left")

        if save_path:
            self.fig.savefig(save_path, dpi=150, bbox_inches="tight")

    def close(self):
        """Close the figure to free memory."""
        if self.fig is not None:
            plt.close(self.fig)
            self.fig = None
            self.ax = None


@dataclass
class InfectionChart:
    """Infected agent count per step, one line per run."""
    fig: Figure | None = None
    ax: Axes | None = None

    def plot(self, results: list["RunResult"], rate: bool = False, save_path: str | None = None):
        if self.fig is None or self.ax is None:
            self.fig, self.ax = plt.subplots(figsize=(10, 6))
        self.ax.clear()
        self.ax.set_xlabel("Time step")
        self.ax.set_ylabel("Infected fraction" if rate else "Infected agents")
        self.ax.grid(True, alpha=0.3)

        for r in results:
            if not r.infection_timeline:
                continue
            steps = sorted(r.infection_timeline)
            counts = [r.infection_timeline[s] for s in steps]
            if rate:
                counts = [c / r.population for c in counts]
            self.ax.step(steps, counts, where="post", alpha=0.7, linewidth=1)

        if save_path:
            self.fig.savefig(save_path, dpi=150, bbox_inches="tight")

    def close(self):
        if self.fig is not None:
            plt.close(self.fig)
            self.fig = None
            self.ax = None
