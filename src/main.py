from global_params import Params
from graph import SimGraph
from models import RunResult
from random_source import RandomSource
from time_step import TimeStep
from distribution import distribute
from metrics import SweepSummary, summarize
from storage import ResultSink, SweepMetadata, GraphEventLog
from plotter import MarkersChart, InfectionChart
import generators
import networkx as nx
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
import argparse
import logging
import multiprocessing
import sys

logger = logging.getLogger(__name__)


def run_single(graph: SimGraph, rs: RandomSource, params: Params, population: int, repetition: int = 0) -> RunResult:
    """Distribute `population` agents and step until the election settles or max_time_steps."""
    logger.info("-" * 52)
    logger.info("STARTING RUN: population %d, repetition %d", population, repetition + 1)
    distribute(graph, population, params.agent_distribution, rs)

    ts = TimeStep(graph, rs, params.term_a, params.term_b, node_selection=params.node_selection)
    ctx = ts.new_context(repetition)
    for i in range(params.max_time_steps):
        ts.step(ctx)
        if ctx.finished:
            logger.info("STEP: %d; Cutting off simulation - all actions complete", i)
            break
        if ctx.stalled:
            logger.info("STEP: %d; Cutting off simulation - agents stranded in dead ends", i)
            break
    result = ts.end(ctx)
    logger.info("ENDING RUN: population %d, repetition %d", population, repetition + 1)
    return result


def _run_cell(args: tuple) -> RunResult:
    """
    Module-level worker for multiprocessing. Each cell gets its own copy of
    the graph and its own generator spawned from the sweep's SeedSequence.
    """
    graph, params, population, repetition, seed_seq = args
    rs = RandomSource(graph, np.random.default_rng(seed_seq),
                      action_probabilities=params.action_probabilities if params.weighted_actions else None,
                      max_retries=params.max_retries)
    return run_single(graph, rs, params, population, repetition)


@dataclass
class Simulator:
    params: Params
    graph: SimGraph
    rs: RandomSource
    results: list[RunResult] = field(default_factory=list)
    summary: SweepSummary | None = None
    metadata: SweepMetadata | None = None
    event_log: GraphEventLog | None = None
    distribution: str | None = None

    @staticmethod
    def from_params(params: Params, graph: nx.Graph | SimGraph | None = None, enable_vis: bool = False):
        """
        Build a simulator. Without a graph, one is generated from params.graph.
        """
        rng = np.random.default_rng(params.seed)
        if graph is None:
            g = generators.generate(params.graph, rng)
        elif isinstance(graph, SimGraph):
            g = graph
        else:
            g = SimGraph.from_networkx(graph)
        g.single_node_id = params.single_node_id

        rs = RandomSource(g, rng,
                          action_probabilities=params.action_probabilities if params.weighted_actions else None,
                          max_retries=params.max_retries)

        event_log = None
        if enable_vis:
            event_log = GraphEventLog()
            event_log.attach(g)

        return Simulator(params=params, graph=g, rs=rs, event_log=event_log)

    def validate(self):
        """Checks that must pass before any step runs. Disconnected graphs are fatal."""
        logger.info("Simulation SETTINGS: term A %d; term B %d; max time steps %d",
                    self.params.term_a, self.params.term_b, self.params.max_time_steps)
        self.graph.validate_connected()
        if self.graph.has_dead_end():
            logger.warning("The graph has a dead END")
        if self.graph.node_count == 1:
            logger.warning("Single node graph - no traverse actions allowed")
        if self.params.action_probabilities is not None and not self.params.weighted_actions:
            logger.warning("50/50 is the default action split, no need to set it")

        self.distribution = self.params.agent_distribution or "single"
        if self.distribution == "single" and self.graph.find_node(self.graph.single_node_id) is None:
            first = self.graph.node_at(0).id
            logger.warning("SINGLE node id %r invalid, either not set or not found; using the first node %s",
                           self.graph.single_node_id, first)
            self.graph.single_node_id = first

    def run_once(self, population: int, repetition: int = 0) -> RunResult:
        return run_single(self.graph, self.rs, self.params, population, repetition)

    def cells(self) -> list[tuple[int, int]]:
        p = self.params
        return [(n, y) for n in range(p.population_lower, p.population_upper) for y in range(p.runs)]

    def run(self) -> SweepSummary:
        started = datetime.now()
        self.validate()
        cells = self.cells()

        if self.params.workers <= 1:
            self.results = [self.run_once(n, y) for n, y in cells]
        else:
            seed_seqs = np.random.SeedSequence(self.params.seed).spawn(len(cells))
            worker_args = [(self.graph, self.params, n, y, ss) for (n, y), ss in zip(cells, seed_seqs)]
            logger.info("Sweep: %d runs on %d workers", len(cells), self.params.workers)
            with multiprocessing.Pool(self.params.workers) as pool:
                self.results = pool.map(_run_cell, worker_args)

        self.results.sort(key=lambda r: (r.population, r.repetition))
        logger.info("ALL SIMULATION RUNS COMPLETE")

        self.summary = summarize(self.results, self.params.total_runs)
        self.metadata = SweepMetadata.build(self.params, self.graph, self.summary, started, self.distribution)
        logger.info("%r", self.summary)
        self.postmortem()
        return self.summary

    def postmortem(self):
        if self.params.run_dir is None:
            return
        sink = ResultSink(self.params.run_dir)
        sink.write_metadata(self.metadata)
        if self.params.save_data:
            sink.write_runs(self.results)
        sink.write_graph(self.graph)

        chart = MarkersChart()
        chart.plot(self.results, save_path=str(sink.path("markers", ".png")))
        chart.close()
        if self.params.charts:
            infection = InfectionChart()
            infection.plot(self.results, save_path=str(sink.path("infection_count", ".png")))
            infection.plot(self.results, rate=True, save_path=str(sink.path("infection_rate", ".png")))
            infection.close()


_installed_handlers: list[logging.Handler] = []


def configure_logging(level: str = "INFO", log_dir: str | None = None, stdout: bool = False):
    """
    File handler in log_dir (if given) and/or a stream handler on stdout.
    Handlers from an earlier call are replaced, not stacked.
    """
    root = logging.getLogger()
    while _installed_handlers:
        old = _installed_handlers.pop()
        root.removeHandler(old)
        old.close()
    root.setLevel(level.upper())
    formatter = logging.Formatter('%(asctime)s,%(msecs)d %(name)s %(levelname)s %(message)s', '%H:%M:%S')
    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(Path(log_dir) / "log.txt", mode='a')
        handler.setFormatter(formatter)
        root.addHandler(handler)
        _installed_handlers.append(handler)
    if stdout or log_dir is None:
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(formatter)
        root.addHandler(stream)
        _installed_handlers.append(stream)


def main(argv: list[str] | None = None):
    ap = argparse.ArgumentParser(description="Sweep a gossip leader election over a range of population sizes.")
    ap.add_argument("--config", help="YAML file with Params fields (defaults are used when omitted)")
    ap.add_argument("--out", help="output directory, overrides run_dir")
    ap.add_argument("--workers", type=int, help="parallel worker processes, overrides workers")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    ap.add_argument("--stdout", action="store_true", help="also log to standard output")
    args = ap.parse_args(argv)

    params = Params.from_yaml(args.config) if args.config else Params()
    if args.out:
        params.run_dir = args.out
    if args.workers:
        params.workers = args.workers

    configure_logging(args.log_level, params.run_dir, args.stdout)
    sim = Simulator.from_params(params)
    summary = sim.run()
    print(summary)


if __name__ == "__main__":
    main()
