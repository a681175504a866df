"""
Graph generators for the topologies used in experiments: chains, grids and
fully connected graphs, plus custom graphs read from GraphML. Generated node
ids are integers starting from 0, in construction order.
"""
import logging

import networkx as nx
import numpy as np

from global_params import GraphParams
from graph import SimGraph

logger = logging.getLogger(__name__)


def chain(n: int, directed: bool = False, doubly_linked: bool = True, loop_back: bool = False) -> nx.Graph:
    """
    0 - 1 - ... - (n-1). Undirected chains are singly linked regardless of
    doubly_linked; directed chains add the backward edges when it is set.
    """
    G = nx.DiGraph() if directed else nx.Graph()
    G.add_node(0)
    for i in range(1, n):
        G.add_edge(i - 1, i)
        if directed and doubly_linked:
            G.add_edge(i, i - 1)
    if loop_back and n > 1:
        G.add_edge(n - 1, 0)
    return G


def grid(n: int, directed: bool = False, cross_edges: bool = False) -> nx.Graph:
    """
    n * n grid, nodes numbered row by row. Directed grids point right and
    down (and down-right / down-left for cross edges).
    """
    G = nx.DiGraph() if directed else nx.Graph()
    G.add_nodes_from(range(n * n))

    def idx(r: int, c: int) -> int:
        return r * n + c

    for r in range(n):
        for c in range(n):
            if c + 1 < n:
                G.add_edge(idx(r, c), idx(r, c + 1))
            if r + 1 < n:
                G.add_edge(idx(r, c), idx(r + 1, c))
            if cross_edges and r + 1 < n:
                if c + 1 < n:
                    G.add_edge(idx(r, c), idx(r + 1, c + 1))
                if c - 1 >= 0:
                    G.add_edge(idx(r, c), idx(r + 1, c - 1))
    return G


def fully_connected(n: int, directed: bool = False, randomly_directed_edges: bool = False,
                    rng: np.random.Generator | None = None) -> nx.Graph:
    """
    Complete graph on n nodes. Directed graphs get both directions per pair
    unless randomly_directed_edges, in which case each pair keeps one
    direction chosen at random.
    """
    if not directed:
        return nx.complete_graph(n)
    if not randomly_directed_edges:
        return nx.complete_graph(n, create_using=nx.DiGraph)
    rng = rng if rng is not None else np.random.default_rng()
    G = nx.DiGraph()
    G.add_nodes_from(range(n))
    for u in range(n):
        for v in range(u + 1, n):
            if rng.random() < 0.5:
                G.add_edge(u, v)
            else:
                G.add_edge(v, u)
    return G


def load_graph(path: str) -> nx.Graph:
    """Read a GraphML file. Node ids are integers when every id parses as one, strings otherwise."""
    try:
        return nx.read_graphml(path, node_type=int)
    except ValueError:
        logger.info("Node ids in %s are not all integers; keeping them as strings", path)
        return nx.read_graphml(path)


def generate(gp: GraphParams, rng: np.random.Generator | None = None) -> SimGraph:
    logger.info("Graph generation - BEGIN (%s, n=%d, directed=%s)", gp.type, gp.n, gp.directed)
    if gp.type == "chain":
        G = chain(gp.n, gp.directed, gp.doubly_linked, gp.loop_back)
    elif gp.type == "grid":
        G = grid(gp.n, gp.directed, gp.cross_edges)
    elif gp.type == "fully-connected":
        G = fully_connected(gp.n, gp.directed, gp.randomly_directed_edges, rng)
    elif gp.path is not None:
        G = load_graph(gp.path)
    else:
        raise ValueError(f"Cannot generate graph of type {gp.type} without graph.path; pass a networkx graph instead")
    logger.info("Graph generation - COMPLETE (%d nodes, %d edges)", G.number_of_nodes(), G.number_of_edges())
    return SimGraph.from_networkx(G, graph_type=gp.type)
