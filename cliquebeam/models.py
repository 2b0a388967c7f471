"""Pydantic models for the cliquebeam public API.

These are thin wrappers over the engine types (cliquebeam.engine), providing
validation at the API boundary and serialization for the CLI and MCP server.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from cliquebeam.engine.errors import ConfigurationError


class EdgeRecord(BaseModel):
    """One typed edge of the input stream.

    ``graph_id`` lets a single request carry several independent graphs.
    """

    source: int
    source_type: str
    target: int
    target_type: str
    relation: str
    graph_id: int = 0

    def as_tuple(self) -> tuple[int, str, int, str, str]:
        return (self.source, self.source_type, self.target, self.target_type, self.relation)


class MiningConfig(BaseModel):
    """Options of a mining run, validated before any search starts.

    See ``cliquebeam.engine.SearchConfig`` for the meaning of each field.
    """

    beam_size: int = Field(default=20, ge=1)
    alpha: float = Field(default=0.5, ge=0.0, le=1.0)
    global_thresh: float = Field(default=0.0, ge=0.0, le=1.0)
    local_thresh: float = Field(default=0.0, ge=0.0, le=1.0)
    num_to_search: int | None = Field(default=None, ge=1)
    epochs: int = Field(default=100, ge=1)
    max_repeated_prior_scores: int = Field(default=3, ge=1)
    min_degree: int = Field(default=0, ge=0)
    core_type: str | None = None
    seed: list[int] | None = None
    random_seed: int = 0
    num_workers: int = Field(default=4, ge=1)
    expansion_limit: int | None = Field(default=None, ge=1)
    max_core_nodes: int | None = Field(default=None, ge=1)
    return_beam: bool = False

    @model_validator(mode="after")
    def _check_seed(self) -> MiningConfig:
        if self.seed is not None and len(set(self.seed)) != len(self.seed):
            raise ValueError(f"seed contains duplicate node ids: {self.seed}")
        return self

    @classmethod
    def load(
        cls, data: MiningConfig | dict[str, Any] | None = None, **overrides: Any
    ) -> MiningConfig:
        """Validate ``data`` merged with ``overrides``.

        Raises:
            ConfigurationError: If any value is out of range
        """
        if isinstance(data, MiningConfig):
            data = data.model_dump()
        merged = {**(data or {}), **overrides}
        try:
            return cls.model_validate(merged)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ConfigurationError(
                f"Invalid mining configuration: {exc}",
                field=field,
                value=first.get("input"),
            ) from exc


class CliqueRecord(BaseModel):
    """One mined (quasi-)clique.

    ``noncore_types`` is parallel to ``noncore_ids``, ``local_densities`` to
    ``core_ids``, and ``type_densities`` to the TypeSpec's non-core types.
    ``clique_id`` is the clique's rank within its graph's result (0 = best), so
    ``(graph_id, clique_id)`` identifies a clique across a multi-graph run.
    """

    clique_id: int
    graph_id: int = 0
    core_count: int
    noncore_count: int
    core_ids: list[int]
    noncore_ids: list[int]
    noncore_types: list[str]
    global_density: float = Field(ge=0.0, le=1.0)
    local_densities: list[float]
    type_densities: list[float]
    score: float

    def __repr__(self) -> str:
        return (
            f"CliqueRecord({self.clique_id}: core={self.core_ids}, "
            f"noncore={self.noncore_ids}, density={self.global_density:.3f})"
        )


class MiningResult(BaseModel):
    """Result of mining one graph.

    ``cliques`` holds the best valid clique (or the whole terminal beam when
    ``return_beam`` was set) and is empty when nothing valid was found.
    """

    graph_id: int = 0
    cliques: list[CliqueRecord] = Field(default_factory=list)
    epochs_run: int = 0
    stop_reason: str = "empty"
    score_history: list[float | None] = Field(default_factory=list)


class GraphStats(BaseModel):
    """Summary counts for a typed graph."""

    node_count: int
    edge_count: int
    nodes_by_type: dict[str, int]
    edges_by_relation: dict[str, int]


class MiningRequest(BaseModel):
    """A complete mining job: schema, edges and configuration.

    This is the document read by ``cliquebeam mine``.
    """

    typespec: list[tuple[str, str, str]]
    core_relation: str = "core"
    edges: list[EdgeRecord] = Field(default_factory=list)
    config: MiningConfig = Field(default_factory=MiningConfig)
