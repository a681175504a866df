from dataclasses import dataclass, field, asdict
from enum import IntEnum
from typing import NewType, Hashable

AgentId = NewType("AgentId", int)
NodeId = Hashable


class Action(IntEnum):
    INTERACT = 0
    TRAVERSE = 1

    @property
    def min_agents(self) -> int:
        """Minimum occupancy a node needs before this action can run there."""
        return 2 if self is Action.INTERACT else 1


@dataclass(slots=True)
class Agent:
    id: AgentId
    believed_leader_id: int = field(init=False)
    conversions: int = 0
    met_followers: int = 0
    is_leader: bool = False
    election_complete: bool = False

    def __post_init__(self):
        self.believed_leader_id = int(self.id)

    @property
    def believes_self_leader(self) -> bool:
        return self.believed_leader_id == self.id

    def met_follower(self) -> bool:
        """Count a tie with an agent that follows us. Only self-believed leaders count ties."""
        if self.believes_self_leader:
            self.met_followers += 1
            return True
        return False

    def check_election_complete(self, term_a: int, term_b: int) -> bool:
        """
        Completion heuristic: declare the election over once
        term_b + term_a * conversions < met_followers.
        """
        if term_b + term_a * self.conversions < self.met_followers:
            self.is_leader = True
            self.election_complete = True
            return True
        return False

    @staticmethod
    def create_agents(population: int) -> list["Agent"]:
        """AIDs run from 0 to population - 1; the last one is the true leader."""
        return [Agent(id=AgentId(i)) for i in range(population)]


@dataclass(slots=True)
class Node:
    id: NodeId
    agents: list[Agent] = field(default_factory=list)

    @property
    def agent_count(self) -> int:
        return len(self.agents)

    def reset(self):
        self.agents = []

    def infection_count(self, leader_id: int) -> int:
        return sum(1 for a in self.agents if a.believed_leader_id == leader_id)

    def election_complete_count(self) -> int:
        return sum(1 for a in self.agents if a.election_complete)

    def contains_agent(self, aid: int) -> bool:
        return any(a.id == aid for a in self.agents)


@dataclass
class RunResult:
    """
    Outcome of a single simulation run.

    Marker fields hold the step (and the interaction count at that step) at
    which the marker first became true, or None if it never did.
    """
    population: int
    repetition: int = 0
    interactions: int = 0
    traversals: int = 0
    infections: int = 0
    election_complete_count: int = 0

    infection_complete_step: int | None = None
    leader_complete_step: int | None = None
    all_complete_step: int | None = None

    infection_complete_interactions: int | None = None
    leader_complete_interactions: int | None = None
    all_complete_interactions: int | None = None

    # step -> number of agents following the true leader, recorded when it grows
    infection_timeline: dict[int, int] = field(default_factory=dict)

    def to_json(self) -> dict:
        d = asdict(self)
        # JSON object keys must be strings
        d["infection_timeline"] = {str(k): v for k, v in self.infection_timeline.items()}
        return d

    @staticmethod
    def from_json(x: dict) -> "RunResult":
        x = dict(x)
        x["infection_timeline"] = {int(k): int(v) for k, v in x.get("infection_timeline", {}).items()}
        return RunResult(**x)
