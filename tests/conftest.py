"""Shared fixtures and utilities for tests."""
import sys
from pathlib import Path

# Add src directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
import numpy as np
import networkx as nx
import tempfile
import shutil
from global_params import Params, GraphParams
from graph import SimGraph
from models import Agent
from random_source import RandomSource
import generators


@pytest.fixture
def rng():
    """Provide a deterministic random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def test_params():
    """Provide test parameters with small values for fast tests."""
    return Params(
        population_lower=5,
        population_upper=7,
        runs=2,
        term_a=1,
        term_b=2,
        max_time_steps=20_000,
        node_selection="weighted",
        agent_distribution="single",
        graph=GraphParams(type="chain", n=4),
        seed=42,
    )


@pytest.fixture
def chain_graph():
    """Undirected chain of 5 nodes."""
    return SimGraph.from_networkx(generators.chain(5), graph_type="chain")


@pytest.fixture
def single_node_graph():
    G = nx.Graph()
    G.add_node(0)
    return SimGraph.from_networkx(G)


@pytest.fixture
def temp_data_dir():
    """Provide a temporary directory for test data that is cleaned up after the test."""
    tmpdir = tempfile.mkdtemp(prefix="election_test_")
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


def make_rs(g: SimGraph, seed: int = 42, **kwargs) -> RandomSource:
    return RandomSource(g, np.random.default_rng(seed), **kwargs)


def populate(g: SimGraph, counts: dict) -> list[Agent]:
    """Place agents by hand: counts maps node id -> number of agents, AIDs assigned in order."""
    population = sum(counts.values())
    g.reset(population)
    agents = Agent.create_agents(population)
    g.agents = agents
    start = 0
    for nid, c in counts.items():
        g.place(g.nodes[nid], agents[start:start + c])
        start += c
    return agents
