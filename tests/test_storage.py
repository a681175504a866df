"""Tests for result files and the graph event log."""
import json
from datetime import datetime, timedelta

import networkx as nx
import zstandard as zstd

from global_params import Params
from metrics import summarize
from models import RunResult
from storage import ResultSink, SweepMetadata, GraphEventLog, VERSION
from conftest import populate


def results() -> list[RunResult]:
    return [
        RunResult(population=3, interactions=12, infections=3, infection_complete_step=8,
                  infection_complete_interactions=6, infection_timeline={0: 1, 3: 2, 8: 3}),
        RunResult(population=4, repetition=1, interactions=30, infections=2, infection_timeline={0: 1, 5: 2}),
    ]


class TestResultSink:
    def test_paths_share_timestamp(self, temp_data_dir):
        sink = ResultSink(temp_data_dir, timestamp="T")

        assert sink.path("metadata", ".json") == temp_data_dir / "metadata_T.json"
        assert sink.path("data", ".json.zst") == temp_data_dir / "data_T.json.zst"

    def test_runs_round_trip(self, temp_data_dir):
        sink = ResultSink(temp_data_dir / "nested", timestamp="T")

        path = sink.write_runs(results())

        assert path.exists()
        assert ResultSink.read_runs(path) == results()

    def test_runs_are_compressed_json(self, temp_data_dir):
        path = ResultSink(temp_data_dir, timestamp="T").write_runs(results())

        raw = zstd.ZstdDecompressor().decompress(path.read_bytes())
        data = json.loads(raw)
        assert data[0]["infection_timeline"] == {"0": 1, "3": 2, "8": 3}
        assert data[1]["infection_complete_step"] is None

    def test_metadata_written(self, temp_data_dir, chain_graph):
        params = Params(population_lower=3, population_upper=5)
        meta = SweepMetadata.build(params, chain_graph, summarize(results()), datetime.now(), "even-spread")

        path = ResultSink(temp_data_dir, timestamp="T").write_metadata(meta)

        data = json.loads(path.read_text())
        assert data["version"] == VERSION
        assert data["graph_type"] == "chain"
        assert data["num_nodes"] == 5
        assert data["agent_distribution"] == "even-spread"
        assert data["agent_dist_single_node_id"] is None
        assert data["num_agents"] == [3, 5]
        assert data["total_runs"] == 2

    def test_graph_written(self, temp_data_dir, chain_graph):
        path = ResultSink(temp_data_dir, timestamp="T").write_graph(chain_graph)

        G = nx.read_graphml(path)
        assert set(G.nodes()) == {"0", "1", "2", "3", "4"}
        assert G.number_of_edges() == 4


class TestSweepMetadata:
    def test_format_duration(self):
        assert SweepMetadata.format_duration(3725.9) == "1 hour, 2 min, 5 sec"
        assert SweepMetadata.format_duration(0) == "0 hour, 0 min, 0 sec"

    def test_build(self, chain_graph):
        params = Params(population_lower=3, population_upper=5, runs=2, action_probabilities=(0.75, 0.25))
        chain_graph.single_node_id = 2
        started = datetime.now() - timedelta(seconds=61)

        meta = SweepMetadata.build(params, chain_graph, summarize(results(), params.total_runs), started, "single")

        assert meta.agent_dist_single_node_id == "2"
        assert meta.interact_probability == "75.0%"
        assert meta.traversal_probability == "25.0%"
        assert meta.runs_per_population == 2
        assert meta.total_runs == 4
        assert meta.duration.startswith("0 hour, 1 min")


class TestGraphEventLog:
    def test_attach_records_updates(self, chain_graph):
        log = GraphEventLog()
        log.attach(chain_graph)

        populate(chain_graph, {0: 3})
        chain_graph.move(chain_graph.nodes[0], 0, (0, 1))

        assert log.node_counts() == {0: 2, 1: 1}
        assert ("edge", (0, 1), True) in log.events

    def test_bounded(self):
        log = GraphEventLog(maxlen=3)
        for i in range(10):
            log.on_node_update(i, i)

        assert log.drain() == [("node", 7, 7), ("node", 8, 8), ("node", 9, 9)]
        assert log.drain() == []
