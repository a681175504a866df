from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from typing import Literal


NodeSelection = Literal["weighted", "non-weighted"]
Distribution = Literal["single", "random-single", "even-spread", "random-spread", "chain-ends"]
GraphType = Literal["chain", "grid", "fully-connected", "custom"]


class GraphParams(BaseModel):
    """
    Settings for the graph generator.

    `n` is the number of nodes for chain and fully-connected graphs, and the
    side length for grids (n * n nodes).
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    type: GraphType = "chain"
    n: int = Field(default=10, ge=1)
    directed: bool = False
    # chain only
    doubly_linked: bool = True
    loop_back: bool = False
    # grid only
    cross_edges: bool = False
    # fully-connected only
    randomly_directed_edges: bool = False
    # custom only: GraphML file, e.g. the graph_<ts>.graphml of an earlier sweep
    path: str | None = None


class Params(BaseModel):
    """
    Configuration parameters for a leader election sweep.

    Can be instantiated programmatically or loaded from YAML using from_yaml().
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    # population sweep: every size in [population_lower, population_upper)
    population_lower: int = Field(default=10, ge=2)
    population_upper: int = Field(default=11, ge=3)
    runs: int = Field(default=1, ge=1)  # repetitions per population size

    # completion heuristic: term_b + term_a * conversions < met_followers
    term_a: int = Field(default=1, ge=0)  # multiplicative
    term_b: int = Field(default=2, ge=0)  # additive
    max_time_steps: int = Field(default=100_000, ge=1)

    node_selection: NodeSelection = "weighted"
    # (interact, traverse); None means a fair coin flip
    action_probabilities: tuple[float, float] | None = None
    agent_distribution: Distribution | None = "single"
    single_node_id: int | str | None = None

    graph: GraphParams = Field(default_factory=GraphParams)

    seed: int | None = 42
    workers: int = Field(default=1, ge=1)
    max_retries: int = Field(default=100_000, ge=1)

    # output
    run_dir: str | None = None
    save_data: bool = False
    charts: bool = False

    @field_validator("action_probabilities")
    @classmethod
    def validate_action_probabilities(cls, v: tuple[float, float] | None) -> tuple[float, float] | None:
        """Both probabilities lie in [0, 1] and sum to exactly 1.0."""
        if v is None:
            return v
        interact, traverse = v
        if not (0.0 <= interact <= 1.0 and 0.0 <= traverse <= 1.0):
            raise ValueError("action probabilities must lie in [0, 1]")
        if interact + traverse != 1.0:
            raise ValueError(f"action probabilities must sum to 1.0, got {interact} + {traverse}")
        return v

    @model_validator(mode="after")
    def validate_sweep(self) -> "Params":
        if self.population_upper <= self.population_lower:
            raise ValueError("population_upper must be greater than population_lower (range is [lower, upper))")
        if self.agent_distribution == "chain-ends" and self.graph.type not in ("chain", "custom"):
            raise ValueError(f"chain-ends distribution requires a chain graph, got {self.graph.type}")
        return self

    @property
    def weighted_actions(self) -> bool:
        """True when actions are drawn from an uneven probability split."""
        return self.action_probabilities is not None and self.action_probabilities[0] != self.action_probabilities[1]

    @property
    def interact_probability(self) -> float:
        return 0.5 if self.action_probabilities is None else self.action_probabilities[0]

    @property
    def traverse_probability(self) -> float:
        return 0.5 if self.action_probabilities is None else self.action_probabilities[1]

    @property
    def total_runs(self) -> int:
        return (self.population_upper - self.population_lower) * self.runs

    @classmethod
    def from_yaml(cls, path: str) -> "Params":
        """
        Load parameters from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Validated Params instance

        Example:
            params = Params.from_yaml("config/chain_1000.yaml")
        """
        import yaml
        from pathlib import Path

        yaml_path = Path(path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(yaml_path, "r") as f:
            config_dict = yaml.safe_load(f)

        return cls(**(config_dict or {}))

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "Params":
        """
        Load parameters from a YAML string (useful for testing).

        Args:
            yaml_string: YAML configuration as a string

        Returns:
            Validated Params instance
        """
        import yaml

        config_dict = yaml.safe_load(yaml_string)
        return cls(**(config_dict or {}))
