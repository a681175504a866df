import logging
from dataclasses import dataclass
from typing import Callable

from global_params import NodeSelection
from graph import SimGraph
from models import Action, Agent, Node, RunResult
from random_source import RandomSource

logger = logging.getLogger(__name__)


NODE_SELECTORS: dict[str, Callable[[RandomSource, Action], Node]] = {
    "weighted": RandomSource.weighted_node,
    "non-weighted": RandomSource.uniform_node,
}


@dataclass
class RunContext:
    """
    Mutable state of one run. Created by TimeStep.new_context() and passed
    through every step() call.
    """
    result: RunResult
    step: int = 0
    interactions: int = 0
    traversals: int = 0
    # agents believing in the true leader; the leader itself counts
    infected: int = 1
    election_complete: int = 0
    dead_end: bool = False
    # no action can ever run again: agents sit alone in separate dead ends
    stalled: bool = False

    infection_complete: bool = False
    leader_complete: bool = False
    all_complete: bool = False

    @property
    def finished(self) -> bool:
        # infection_complete is not part of the cutoff
        return self.leader_complete and self.all_complete


@dataclass
class TimeStep:
    """
    Heart beat of the simulator. Holds the run-wide configuration; the
    per-run counters live in a RunContext.
    """
    graph: SimGraph
    rs: RandomSource
    term_a: int
    term_b: int
    node_selection: NodeSelection = "weighted"

    def __post_init__(self):
        if self.node_selection not in NODE_SELECTORS:
            raise ValueError(f"Unknown node selection: {self.node_selection}")
        self._select_node = NODE_SELECTORS[self.node_selection]

    @property
    def leader_id(self) -> int:
        return self.graph.population - 1

    def new_context(self, repetition: int = 0) -> RunContext:
        result = RunResult(population=self.graph.population, repetition=repetition)
        ctx = RunContext(result=result)
        ctx.infected = sum(1 for a in self.graph.agents if a.believed_leader_id == self.leader_id)
        ctx.election_complete = sum(1 for a in self.graph.agents if a.election_complete)
        result.infection_timeline[0] = ctx.infected
        return ctx

    # -------- the step --------
    def step(self, ctx: RunContext):
        logger.debug("Step: %d BEGIN", ctx.step)

        if not ctx.dead_end and self.graph.has_dead_end():
            trap = self.graph.agents_dead_ended()
            if trap is not None:
                logger.warning("ALL AGENTS HAVE HIT A DEAD END at node %s - NO MORE TRAVERSE ACTION", trap)
                ctx.dead_end = True

        action = self.choose_action(ctx)
        if action is None:
            return
        logger.debug("ACTION: %s", action.name)

        n = self._select_node(self.rs, action)
        if action is Action.INTERACT:
            self.interact(ctx, n)
        else:
            self.traverse(ctx, n)

        self.update_markers(ctx)

        logger.debug("Step: %d COMPLETE", ctx.step)
        ctx.step += 1

    def choose_action(self, ctx: RunContext) -> Action | None:
        """
        Draw the next action, falling back to the other one when the draw
        cannot run on any node. Returns None and marks the run stalled when
        neither can.
        """
        if ctx.dead_end:
            return Action.INTERACT
        action = self.rs.action()
        if self.graph.can_perform(action):
            return action
        other = Action.TRAVERSE if action is Action.INTERACT else Action.INTERACT
        if self.graph.can_perform(other):
            return other
        if not ctx.stalled:
            logger.warning("STEP: %d; No node can interact or traverse - run STALLED", ctx.step)
            ctx.stalled = True
        return None

    # -------- actions --------
    def interact(self, ctx: RunContext, n: Node):
        """Two random agents in node n compare who they believe the leader is."""
        agent_i, agent_j = self.rs.agent_pair(n)
        logger.debug("Agent i - %s", agent_i)
        logger.debug("Agent j - %s", agent_j)

        if agent_i.election_complete or agent_j.election_complete:
            # spread the word
            self._mark_complete(ctx, agent_i)
            self._mark_complete(ctx, agent_j)
        else:
            diff = agent_i.believed_leader_id - agent_j.believed_leader_id
            if diff > 0:
                self.infect(ctx, agent_i, agent_j)
                self.possible_leader(ctx, agent_i)
            elif diff < 0:
                self.infect(ctx, agent_j, agent_i)
                self.possible_leader(ctx, agent_j)
            else:
                # tie: the true leader concludes only through ties
                agent_i.met_follower()
                agent_j.met_follower()
                self.check_complete(ctx, agent_i)
                self.check_complete(ctx, agent_j)

        ctx.interactions += 1
        self.graph.notify_node(n.id)

    def traverse(self, ctx: RunContext, n: Node):
        """A random agent in node n walks along one of its outgoing edges."""
        index = self.rs.agent_index(n)
        edge = self.rs.outgoing_edge(n)
        agent = self.graph.move(n, index, edge)
        ctx.traversals += 1
        logger.debug("Agent %d traversed %s -> %s", agent.id, edge[0], edge[1])

    # -------- election logic --------
    def infect(self, ctx: RunContext, infector: Agent, infected: Agent):
        infected.believed_leader_id = infector.believed_leader_id
        if infector.believed_leader_id == self.leader_id:
            ctx.infected += 1
            ctx.result.infection_timeline[ctx.step] = ctx.infected

    def possible_leader(self, ctx: RunContext, agent: Agent) -> bool:
        """An agent that still believes itself leader counts the conversion."""
        if agent.believes_self_leader:
            agent.conversions += 1
            logger.debug("Possible leader: %s", agent)
            self.check_complete(ctx, agent)
            return True
        return False

    def check_complete(self, ctx: RunContext, agent: Agent) -> bool:
        was_complete = agent.election_complete
        if agent.check_election_complete(self.term_a, self.term_b):
            if not was_complete:
                ctx.election_complete += 1
                logger.info("STEP: %d; Agent believes election is complete and is the leader: %s", ctx.step, agent)
            return True
        return False

    def _mark_complete(self, ctx: RunContext, agent: Agent):
        if not agent.election_complete:
            agent.election_complete = True
            ctx.election_complete += 1

    # -------- markers --------
    def update_markers(self, ctx: RunContext):
        population = self.graph.population
        result = ctx.result

        if not ctx.infection_complete and ctx.infected == population:
            logger.info("STEP: %d; All agents INFECTED", ctx.step)
            result.infection_complete_step = ctx.step
            result.infection_complete_interactions = ctx.interactions
            ctx.infection_complete = True

        if not ctx.leader_complete:
            leader = self.graph.agents[self.leader_id]
            if leader.is_leader and leader.election_complete:
                logger.info("STEP: %d; True leader declares the election complete", ctx.step)
                result.leader_complete_step = ctx.step
                result.leader_complete_interactions = ctx.interactions
                ctx.leader_complete = True

        if not ctx.all_complete and ctx.election_complete == population:
            logger.info("STEP: %d; All agents believe election is complete", ctx.step)
            result.all_complete_step = ctx.step
            result.all_complete_interactions = ctx.interactions
            ctx.all_complete = True

    # -------- end of run --------
    def end(self, ctx: RunContext) -> RunResult:
        result = ctx.result
        result.infections = ctx.infected
        result.election_complete_count = ctx.election_complete
        result.interactions = ctx.interactions
        result.traversals = ctx.traversals

        logger.info("Simulation run COMPLETE after %d steps", ctx.step)
        logger.info("# of INFECTED agents: %d/%d", result.infections, result.population)
        logger.info("# of agents that believe election is COMPLETE: %d/%d",
                    result.election_complete_count, result.population)
        logger.info("# of agent INTERACTIONS: %d", result.interactions)
        logger.info("# of agent TRAVERSALS: %d", result.traversals)
        logger.info("MARKER - Infection Complete: step %s, interactions %s",
                    result.infection_complete_step, result.infection_complete_interactions)
        logger.info("MARKER - Leader Election Complete: step %s, interactions %s",
                    result.leader_complete_step, result.leader_complete_interactions)
        logger.info("MARKER - All Election Complete: step %s, interactions %s",
                    result.all_complete_step, result.all_complete_interactions)
        return result
