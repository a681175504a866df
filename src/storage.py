import json
import logging
from collections import deque
from dataclasses import dataclass, asdict, field
from datetime import datetime
from pathlib import Path

import networkx as nx
import zstandard as zstd

from global_params import Params
from graph import SimGraph, Edge
from metrics import SweepSummary
from models import NodeId, RunResult

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@dataclass
class SweepMetadata:
    date: str
    duration: str
    version: str = VERSION
    graph_type: str = "custom"
    num_nodes: int = 0
    node_selection: str = "weighted"
    agent_distribution: str = "single"
    agent_dist_single_node_id: str | None = None
    interact_probability: str = "50.0%"
    traversal_probability: str = "50.0%"
    num_agents: list[int] = field(default_factory=list)  # [lower, upper)
    term_a: int = 0
    term_b: int = 0
    max_time_steps: int = 0
    runs_per_population: int = 0
    total_runs: int = 0
    avg_infection_level: str = "0.00%"
    avg_leader_error: str = "0.00%"

    @staticmethod
    def format_duration(seconds: float) -> str:
        seconds = int(seconds)
        hours, rem = divmod(seconds, 3600)
        minutes, secs = divmod(rem, 60)
        return f"{hours} hour, {minutes} min, {secs} sec"

    @staticmethod
    def build(params: Params, g: SimGraph, summary: SweepSummary, started: datetime,
              distribution: str) -> "SweepMetadata":
        single = None
        if distribution == "single" and g.single_node_id is not None:
            single = str(g.single_node_id)
        return SweepMetadata(
            date=started.isoformat(timespec="seconds"),
            duration=SweepMetadata.format_duration((datetime.now() - started).total_seconds()),
            graph_type=g.graph_type,
            num_nodes=g.node_count,
            node_selection=params.node_selection,
            agent_distribution=distribution,
            agent_dist_single_node_id=single,
            interact_probability=f"{params.interact_probability * 100}%",
            traversal_probability=f"{params.traverse_probability * 100}%",
            num_agents=[params.population_lower, params.population_upper],
            term_a=params.term_a,
            term_b=params.term_b,
            max_time_steps=params.max_time_steps,
            runs_per_population=params.runs,
            total_runs=summary.total_runs,
            avg_infection_level=f"{summary.avg_infection_level:.2f}%",
            avg_leader_error=f"{summary.avg_leader_error:.2f}%",
        )

    def to_json(self) -> dict:
        return asdict(self)


class ResultSink:
    """
    Writes a sweep to run_dir:

    - metadata_<ts>.json: SweepMetadata
    - data_<ts>.json.zst: every RunResult, zstd compressed (only if save_data)
    - graph_<ts>.graphml: the topology the sweep ran on
    """

    def __init__(self, run_dir: str | Path, timestamp: str | None = None):
        self.run_dir = Path(run_dir)
        self.timestamp = timestamp or datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    def path(self, name: str, suffix: str) -> Path:
        return self.run_dir / f"{name}_{self.timestamp}{suffix}"

    def write_metadata(self, meta: SweepMetadata) -> Path:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        out = self.path("metadata", ".json")
        with open(out, "w", encoding="utf-8") as f:
            json.dump(meta.to_json(), f, ensure_ascii=False, indent=2)
        logger.info("Metadata written to %s", out)
        return out

    def write_runs(self, results: list[RunResult]) -> Path:
        """Run data can reach hundreds of MB for large sweeps, hence compression."""
        self.run_dir.mkdir(parents=True, exist_ok=True)
        out = self.path("data", ".json.zst")
        raw = json.dumps([r.to_json() for r in results], ensure_ascii=False).encode("utf-8")
        cctx = zstd.ZstdCompressor(level=3)
        with open(out, "wb") as f:
            f.write(cctx.compress(raw))
        logger.info("Run data (%d runs) written to %s", len(results), out)
        return out

    @staticmethod
    def read_runs(path: str | Path) -> list[RunResult]:
        dctx = zstd.ZstdDecompressor()
        with open(path, "rb") as f:
            raw = dctx.decompress(f.read())
        return [RunResult.from_json(x) for x in json.loads(raw)]

    def write_graph(self, g: SimGraph) -> Path:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        out = self.path("graph", ".graphml")
        # GraphML needs string-able scalar ids
        nx.write_graphml(nx.relabel_nodes(g.G, str), out)
        logger.info("Graph written to %s", out)
        return out


class GraphEventLog:
    """
    Buffers node/edge updates for a visualization front end. Appending never
    blocks; when full, the oldest events are dropped.
    """

    def __init__(self, maxlen: int = 100_000):
        self.events: deque[tuple] = deque(maxlen=maxlen)

    def on_node_update(self, node_id: NodeId, count: int):
        self.events.append(("node", node_id, count))

    def on_edge_update(self, edge: Edge, active: bool):
        self.events.append(("edge", edge, active))

    def attach(self, g: SimGraph):
        g._on_node_update = self.on_node_update
        g._on_edge_update = self.on_edge_update

    def drain(self) -> list[tuple]:
        out = list(self.events)
        self.events.clear()
        return out

    def node_counts(self) -> dict[NodeId, int]:
        """Latest reported agent count per node."""
        counts = {}
        for kind, key, value in self.events:
            if kind == "node":
                counts[key] = value
        return counts
