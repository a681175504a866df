import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

import networkx as nx
import numpy as np

from models import Agent, Node, NodeId, Action

logger = logging.getLogger(__name__)

Edge = tuple[NodeId, NodeId]


class GraphNotConnectedError(ValueError):
    """Some node cannot be reached, so some agents could never be infected."""


@dataclass
class SimGraph:
    """
    A networkx graph whose nodes carry agents.

    Out-edges come from the networkx adjacency (successors for a DiGraph,
    neighbours for an undirected Graph), in insertion order. `nodes` keeps the
    construction order, which the distribution strategies rely on.
    """
    G: nx.Graph
    nodes: dict[NodeId, Node]
    graph_type: str = "custom"
    population: int = 0
    agents: list[Agent] = field(default_factory=list)
    single_node_id: NodeId | None = None
    random_single_node_id: NodeId | None = None
    # Optional observer callbacks (wired by a visualization collaborator)
    _on_node_update: Callable[[NodeId, int], None] | None = None
    _on_edge_update: Callable[[Edge, bool], None] | None = None
    _out: dict[NodeId, list[NodeId]] = field(init=False, repr=False)
    _dead_end_ids: tuple[NodeId, ...] = field(init=False, repr=False)

    def __post_init__(self):
        self.refresh_topology()

    @staticmethod
    def from_networkx(G: nx.Graph, graph_type: str = "custom") -> "SimGraph":
        nodes = {n: Node(id=n) for n in G.nodes()}
        return SimGraph(G=G, nodes=nodes, graph_type=graph_type)

    def refresh_topology(self):
        """Cache out-neighbour lists; call again after editing G."""
        self._out = {n: list(self.G.adj[n]) for n in self.nodes}
        self._dead_end_ids = tuple(n for n, out in self._out.items() if not out)

    # -------- topology --------
    @property
    def directed(self) -> bool:
        return self.G.is_directed()

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def node_list(self) -> list[Node]:
        return list(self.nodes.values())

    def node_at(self, index: int) -> Node:
        """Node by construction order."""
        return list(self.nodes.values())[index]

    def find_node(self, node_id: NodeId | None) -> Node | None:
        """Look a node up by id, accepting '3' for 3 and vice versa."""
        if node_id is None:
            return None
        if node_id in self.nodes:
            return self.nodes[node_id]
        for nid, node in self.nodes.items():
            if str(nid) == str(node_id):
                return node
        return None

    def out_neighbors(self, node_id: NodeId) -> list[NodeId]:
        return self._out[node_id]

    def out_degree(self, node_id: NodeId) -> int:
        return len(self._out[node_id])

    def is_connected(self) -> bool:
        if self.node_count == 0:
            return False
        if self.directed:
            return nx.is_weakly_connected(self.G)
        return nx.is_connected(self.G)

    def validate_connected(self):
        if not self.is_connected():
            logger.error("Graph is NOT connected")
            raise GraphNotConnectedError(
                f"graph with {self.node_count} nodes is not connected; some agents could never be reached"
            )

    def has_dead_end(self) -> bool:
        """Structural check: some node has no outgoing edge."""
        return bool(self._dead_end_ids)

    def agents_dead_ended(self) -> NodeId | None:
        """Id of the dead-end node holding every agent, if there is one."""
        for nid in self._dead_end_ids:
            if self.nodes[nid].agent_count == self.population:
                return nid
        return None

    def can_perform(self, action: Action) -> bool:
        """Does at least one node satisfy the occupancy constraint of action?"""
        if action is Action.INTERACT:
            return any(n.agent_count >= 2 for n in self.nodes.values())
        return any(n.agent_count >= 1 and self._out[nid] for nid, n in self.nodes.items())

    def accepts(self, node: Node, action: Action) -> bool:
        if node.agent_count < action.min_agents:
            return False
        return action is Action.INTERACT or self.out_degree(node.id) >= 1

    # -------- agents --------
    def reset(self, population: int | None = None):
        if population is not None:
            self.population = population
        for node in self.nodes.values():
            node.reset()
        self.agents = []
        self.random_single_node_id = None

    def place(self, node: Node, agents: Iterable[Agent]):
        node.agents.extend(agents)
        self.notify_node(node.id)

    def move(self, src: Node, index: int, edge: Edge) -> Agent:
        """Move the agent at index in src along edge to the edge's far endpoint."""
        agent = src.agents.pop(index)
        dst = self.nodes[edge[1]]
        dst.agents.append(agent)
        self.notify_node(src.id)
        self.notify_edge(edge, True)
        self.notify_node(dst.id)
        self.notify_edge(edge, False)
        return agent

    def agent_probability_spread(self) -> np.ndarray:
        """
        Upper bounds of the cumulative partition of [0, 1): node i owns
        [spread[i-1], spread[i]) with length agents(i) / population.
        """
        counts = np.fromiter((n.agent_count for n in self.nodes.values()), dtype=float, count=self.node_count)
        return np.cumsum(counts) / self.population

    def check_num_agents(self) -> int:
        return sum(n.agent_count for n in self.nodes.values())

    def infection_count(self) -> int:
        leader = self.population - 1
        return sum(n.infection_count(leader) for n in self.nodes.values())

    def election_complete_count(self) -> int:
        return sum(n.election_complete_count() for n in self.nodes.values())

    def agent_counts(self) -> dict[NodeId, int]:
        return {nid: n.agent_count for nid, n in self.nodes.items()}

    # -------- observers --------
    def notify_node(self, node_id: NodeId):
        if self._on_node_update:
            self._on_node_update(node_id, self.nodes[node_id].agent_count)

    def notify_edge(self, edge: Edge, active: bool):
        if self._on_edge_update:
            self._on_edge_update(edge, active)

    def __getstate__(self):
        # Observers stay with the process that attached them
        state = self.__dict__.copy()
        state["_on_node_update"] = None
        state["_on_edge_update"] = None
        return state
