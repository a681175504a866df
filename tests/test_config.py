"""Tests for YAML configuration loading and validation."""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from pydantic import ValidationError
from global_params import Params, GraphParams


class TestParamsBasicInstantiation:
    """Test basic Params instantiation."""

    def test_default_params(self):
        params = Params()
        assert params.population_lower == 10
        assert params.population_upper == 11
        assert params.runs == 1
        assert params.node_selection == "weighted"
        assert params.action_probabilities is None
        assert params.graph.type == "chain"

    def test_custom_params(self):
        params = Params(
            population_lower=100,
            population_upper=120,
            runs=5,
            term_a=2,
            term_b=7,
            agent_distribution="even-spread",
            graph=GraphParams(type="grid", n=3, cross_edges=True),
        )
        assert params.total_runs == 20 * 5
        assert params.term_a == 2
        assert params.term_b == 7
        assert params.agent_distribution == "even-spread"
        assert params.graph.n == 3
        assert params.graph.cross_edges is True

    def test_default_action_split_is_fair(self):
        params = Params()
        assert params.weighted_actions is False
        assert params.interact_probability == 0.5
        assert params.traverse_probability == 0.5


class TestActionProbabilities:
    """Action probabilities must sum to exactly 1.0."""

    def test_weighted_pair_accepted(self):
        params = Params(action_probabilities=(0.75, 0.25))
        assert params.weighted_actions is True
        assert params.interact_probability == 0.75
        assert params.traverse_probability == 0.25

    def test_pair_not_summing_to_one_rejected(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            Params(action_probabilities=(0.3, 0.6))

    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            Params(action_probabilities=(1.5, -0.5))

    def test_even_pair_is_not_weighted(self):
        params = Params(action_probabilities=(0.5, 0.5))
        assert params.weighted_actions is False

    def test_assignment_is_validated(self):
        params = Params()
        with pytest.raises(ValidationError):
            params.action_probabilities = (0.2, 0.2)


class TestSweepValidation:
    """Cross-field validation of the sweep."""

    def test_empty_population_range_rejected(self):
        with pytest.raises(ValidationError, match="population_upper"):
            Params(population_lower=5, population_upper=5)

    def test_population_below_two_rejected(self):
        with pytest.raises(ValidationError):
            Params(population_lower=1, population_upper=3)

    def test_chain_ends_needs_chain(self):
        with pytest.raises(ValidationError, match="chain-ends"):
            Params(agent_distribution="chain-ends", graph=GraphParams(type="grid", n=3))

    def test_chain_ends_on_chain(self):
        params = Params(agent_distribution="chain-ends", graph=GraphParams(type="chain", n=3))
        assert params.agent_distribution == "chain-ends"

    def test_unknown_distribution_rejected(self):
        with pytest.raises(ValidationError):
            Params(agent_distribution="everywhere")

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            Params(num_agents=5)

    def test_distribution_can_be_unset(self):
        params = Params(agent_distribution=None)
        assert params.agent_distribution is None


class TestYAMLLoading:
    """Test loading parameters from YAML files and strings."""

    def test_from_yaml_string_minimal(self):
        yaml_str = """
population_lower: 20
population_upper: 25
seed: 999
"""
        params = Params.from_yaml_string(yaml_str)
        assert params.population_lower == 20
        assert params.population_upper == 25
        assert params.seed == 999
        # defaults preserved
        assert params.term_a == 1
        assert params.term_b == 2

    def test_from_yaml_string_full(self):
        yaml_str = """
population_lower: 1000
population_upper: 1001
runs: 3
term_a: 1
term_b: 4
max_time_steps: 5000000
node_selection: non-weighted
action_probabilities: [0.75, 0.25]
agent_distribution: chain-ends
graph:
  type: chain
  n: 12
  directed: true
  doubly_linked: true
  loop_back: false
seed: 7
workers: 2
run_dir: "out"
save_data: true
charts: true
"""
        params = Params.from_yaml_string(yaml_str)
        assert params.runs == 3
        assert params.max_time_steps == 5_000_000
        assert params.node_selection == "non-weighted"
        assert params.action_probabilities == (0.75, 0.25)
        assert params.agent_distribution == "chain-ends"
        assert params.graph.directed is True
        assert params.graph.n == 12
        assert params.workers == 2
        assert params.run_dir == "out"
        assert params.save_data is True

    def test_from_yaml_string_invalid_probabilities(self):
        with pytest.raises(ValidationError):
            Params.from_yaml_string("action_probabilities: [0.3, 0.6]\n")

    def test_from_yaml_string_empty(self):
        params = Params.from_yaml_string("")
        assert params == Params()

    def test_from_yaml_file(self, temp_data_dir):
        path = temp_data_dir / "config.yaml"
        path.write_text("population_lower: 3\npopulation_upper: 4\nsingle_node_id: 2\n")
        params = Params.from_yaml(str(path))
        assert params.population_lower == 3
        assert params.single_node_id == 2

    def test_bundled_config(self):
        path = Path(__file__).parent.parent / "config" / "grid_even_spread.yaml"
        params = Params.from_yaml(str(path))
        assert params.graph.type == "grid"
        assert params.weighted_actions is True
        assert params.total_runs == 50

    def test_from_yaml_missing_file(self, temp_data_dir):
        with pytest.raises(FileNotFoundError):
            Params.from_yaml(str(temp_data_dir / "nope.yaml"))
