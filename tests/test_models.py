"""Unit tests for Agent, Node and RunResult models."""
import pytest
from models import Agent, AgentId, Node, RunResult, Action


class TestAgent:
    """Tests for the Agent belief state."""

    def test_initialization(self):
        agent = Agent(id=AgentId(7))

        assert agent.id == 7
        assert agent.believed_leader_id == 7
        assert agent.conversions == 0
        assert agent.met_followers == 0
        assert agent.is_leader is False
        assert agent.election_complete is False
        assert agent.believes_self_leader

    def test_create_agents(self):
        agents = Agent.create_agents(5)

        assert [a.id for a in agents] == [0, 1, 2, 3, 4]
        assert all(a.believed_leader_id == a.id for a in agents)

    def test_met_follower_counts_only_self_believers(self):
        leader = Agent(id=AgentId(3))
        follower = Agent(id=AgentId(1))
        follower.believed_leader_id = 3

        assert leader.met_follower() is True
        assert follower.met_follower() is False
        assert leader.met_followers == 1
        assert follower.met_followers == 0

    def test_heuristic_threshold(self):
        """term_b + term_a * conversions < met_followers"""
        agent = Agent(id=AgentId(0))
        agent.conversions = 2
        agent.met_followers = 4

        # 2 + 1 * 2 = 4, not < 4
        assert agent.check_election_complete(term_a=1, term_b=2) is False
        assert agent.is_leader is False

        agent.met_followers = 5
        assert agent.check_election_complete(term_a=1, term_b=2) is True
        assert agent.is_leader is True
        assert agent.election_complete is True

    def test_heuristic_multiplicative_term(self):
        agent = Agent(id=AgentId(0))
        agent.conversions = 3
        agent.met_followers = 10

        assert agent.check_election_complete(term_a=3, term_b=1) is False  # 10 < 10 is false
        assert agent.check_election_complete(term_a=2, term_b=3) is True  # 9 < 10


class TestNode:
    """Tests for Node agent bookkeeping."""

    def test_counts(self):
        agents = Agent.create_agents(4)
        agents[0].believed_leader_id = 3
        agents[1].election_complete = True
        node = Node(id="a", agents=list(agents))

        assert node.agent_count == 4
        assert node.infection_count(leader_id=3) == 2
        assert node.election_complete_count() == 1
        assert node.contains_agent(2)
        assert not node.contains_agent(9)

    def test_reset(self):
        node = Node(id=0, agents=Agent.create_agents(3))
        node.reset()
        assert node.agent_count == 0


class TestAction:
    def test_min_agents(self):
        assert Action.INTERACT.min_agents == 2
        assert Action.TRAVERSE.min_agents == 1


class TestRunResult:
    """Tests for RunResult serialization."""

    def test_defaults_are_unset_markers(self):
        r = RunResult(population=10)

        assert r.infection_complete_step is None
        assert r.leader_complete_step is None
        assert r.all_complete_step is None
        assert r.infection_timeline == {}

    def test_json_round_trip(self):
        r = RunResult(population=10, repetition=2, interactions=55, traversals=40, infections=10,
                      election_complete_count=10, infection_complete_step=80,
                      infection_complete_interactions=45, infection_timeline={0: 1, 12: 2, 80: 10})

        data = r.to_json()
        assert data["infection_timeline"] == {"0": 1, "12": 2, "80": 10}
        assert data["leader_complete_step"] is None
        assert RunResult.from_json(data) == r
