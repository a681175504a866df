import logging

import numpy as np

from graph import SimGraph, Edge
from models import Action, Agent, Node

logger = logging.getLogger(__name__)


class SelectionError(RuntimeError):
    """A rejection-sampling loop ran out of retries."""


class RandomSource:
    """
    Every random choice of the simulation goes through here, so one seeded
    generator decides a whole sweep.

    Weighted draws build a cumulative partition of [0, 1) and locate a uniform
    double in it. Draws that must satisfy an occupancy constraint are
    rejection sampled, up to max_retries attempts.
    """

    def __init__(self, graph: SimGraph, rng: np.random.Generator,
                 action_probabilities: tuple[float, float] | None = None,
                 max_retries: int = 100_000):
        self.graph = graph
        self.rng = rng
        self.max_retries = max_retries
        self._nodes = graph.node_list()
        self._action_spread = None
        if action_probabilities is not None:
            # upper bound of the [0, p_interact) interval; traverse owns the rest
            self._action_spread = np.cumsum(action_probabilities)

    @staticmethod
    def from_seed(graph: SimGraph, seed: int | np.random.SeedSequence | None, **kwargs) -> "RandomSource":
        return RandomSource(graph, np.random.default_rng(seed), **kwargs)

    # -------- nodes --------
    def uniform_node(self, action: Action | None = None) -> Node:
        if action is None:
            return self._nodes[int(self.rng.integers(len(self._nodes)))]
        for _ in range(self.max_retries):
            n = self._nodes[int(self.rng.integers(len(self._nodes)))]
            if self.graph.accepts(n, action):
                logger.debug("%s: node selected: %s", action.name, n.id)
                return n
        raise SelectionError(f"no node accepted {action.name} after {self.max_retries} uniform draws")

    def weighted_node(self, action: Action) -> Node:
        """
        Pick a node with probability proportional to its agent count. Nodes
        that cannot host the action are rejected and the draw is repeated.
        """
        spread = self.graph.agent_probability_spread()
        last = len(self._nodes) - 1
        for _ in range(self.max_retries):
            r = self.rng.random()
            i = min(int(np.searchsorted(spread, r, side="right")), last)
            n = self._nodes[i]
            if self.graph.accepts(n, action):
                logger.debug("%s: node selected: %s", action.name, n.id)
                return n
        raise SelectionError(f"no node accepted {action.name} after {self.max_retries} weighted draws")

    # -------- actions --------
    def action(self) -> Action:
        if self._action_spread is None:
            # fair coin
            return Action(int(self.rng.integers(2)))
        if self.rng.random() < self._action_spread[0]:
            return Action.INTERACT
        return Action.TRAVERSE

    # -------- agents & edges --------
    def agent_index(self, node: Node) -> int:
        return int(self.rng.integers(node.agent_count))

    def agent(self, node: Node) -> Agent:
        return node.agents[self.agent_index(node)]

    def agent_pair(self, node: Node) -> tuple[Agent, Agent]:
        """Two different agents from node, which must hold at least two."""
        count = node.agent_count
        for _ in range(self.max_retries):
            i, j = self.rng.integers(count, size=2)
            if i != j:
                return node.agents[int(i)], node.agents[int(j)]
        raise SelectionError(f"could not draw two distinct agents from node {node.id} ({count} agents)")

    def outgoing_edge(self, node: Node) -> Edge:
        out = self.graph.out_neighbors(node.id)
        return node.id, out[int(self.rng.integers(len(out)))]

    # -------- plain draws --------
    def integers(self, high: int) -> int:
        return int(self.rng.integers(high))

    def random(self) -> float:
        return float(self.rng.random())
