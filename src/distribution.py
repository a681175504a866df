"""
Initial placement of agents across the graph.

Agents are created with AIDs 0..N-1 and placed by one of five strategies
before a run starts. Each strategy is a plain function of
(graph, agents, random source).
"""
import logging
from typing import Callable

from graph import SimGraph
from models import Agent
from random_source import RandomSource

logger = logging.getLogger(__name__)


def single(g: SimGraph, agents: list[Agent], rs: RandomSource):
    n = g.find_node(g.single_node_id)
    if n is None:
        logger.warning("SINGLE node id %r invalid, either not set or not found; using the first node",
                       g.single_node_id)
        n = g.node_at(0)
        # later runs and the metadata reuse this choice
        g.single_node_id = n.id
    g.place(n, agents)
    logger.info("All agents placed in node %s", n.id)


def random_single(g: SimGraph, agents: list[Agent], rs: RandomSource):
    n = rs.uniform_node()
    g.place(n, agents)
    g.random_single_node_id = n.id
    logger.info("All agents placed in node %s", n.id)


def even_spread(g: SimGraph, agents: list[Agent], rs: RandomSource):
    num_nodes = g.node_count
    nodes = g.node_list()
    remainder = len(agents) % num_nodes
    if remainder:
        logger.info("Number of agents not evenly divisible by the number of nodes; "
                    "first %d nodes get an extra agent", remainder)
        for i in range(remainder):
            g.place(nodes[i], [agents[i]])
    rest = agents[remainder:]
    allocation = len(rest) // num_nodes
    logger.info("Adding %d agents to each node", allocation)
    for k, n in enumerate(nodes):
        g.place(n, rest[k * allocation:(k + 1) * allocation])


def random_spread(g: SimGraph, agents: list[Agent], rs: RandomSource):
    remaining = list(agents)
    while remaining:
        n = rs.uniform_node()
        if len(remaining) == 1:
            allocate = 1
        else:
            # batch size uniform over 0..len(remaining), inclusive
            allocate = rs.integers(len(remaining) + 1)
        g.place(n, remaining[:allocate])
        logger.debug("Allocated %d agents to %s", allocate, n.id)
        remaining = remaining[allocate:]
    for nid, count in g.agent_counts().items():
        logger.debug("node %s: %d agents", nid, count)


def chain_ends(g: SimGraph, agents: list[Agent], rs: RandomSource):
    """Head gets floor(N/2), tail the remainder (one more when N is odd)."""
    head = g.node_at(0)
    tail = g.node_at(g.node_count - 1)
    alloc = len(agents) // 2
    g.place(head, agents[:alloc])
    g.place(tail, agents[alloc:])


DISTRIBUTIONS: dict[str, Callable[[SimGraph, list[Agent], RandomSource], None]] = {
    "single": single,
    "random-single": random_single,
    "even-spread": even_spread,
    "random-spread": random_spread,
    "chain-ends": chain_ends,
}


def distribute(g: SimGraph, population: int, algo: str | None, rs: RandomSource) -> str:
    """
    Reset the graph, create `population` agents and place them.

    Returns the strategy actually used, which is "single" when none was
    configured.
    """
    g.reset(population)
    if algo is None:
        logger.warning("Agent distribution algorithm NOT set or invalid - default to single with all agents "
                       "in the first node")
        g.single_node_id = g.node_at(0).id
        algo = "single"
    if algo not in DISTRIBUTIONS:
        raise ValueError(f"Unknown agent distribution: {algo}")

    agents = Agent.create_agents(population)
    g.agents = agents
    logger.info("%s distribution of agents - BEGIN", algo)
    DISTRIBUTIONS[algo](g, agents, rs)
    logger.info("%s distribution of agents - COMPLETE", algo)
    return algo
