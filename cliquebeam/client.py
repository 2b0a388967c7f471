"""CliqueMiner client — the primary interface for mining typed quasi-cliques."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Any

from cliquebeam.engine.beam import BeamSearchEngine, ScoredCandidate, SearchConfig
from cliquebeam.engine.graph import TypedHypergraph
from cliquebeam.engine.typespec import DEFAULT_CORE_RELATION, TypeSpec
from cliquebeam.models import (
    CliqueRecord,
    EdgeRecord,
    GraphStats,
    MiningConfig,
    MiningRequest,
    MiningResult,
)

EdgeInput = EdgeRecord | dict[str, Any] | Sequence[Any]

# --- Conversion helpers: engine types <-> pydantic models ---


def _to_search_config(config: MiningConfig) -> SearchConfig:
    values = config.model_dump()
    if values["seed"] is not None:
        values["seed"] = tuple(values["seed"])
    return SearchConfig(**values)


def _candidate_to_record(scored: ScoredCandidate, clique_id: int, graph_id: int) -> CliqueRecord:
    candidate = scored.candidate
    spec = candidate.graph.type_spec
    core_ids = sorted(candidate.core_nodes)
    typed = sorted(
        (node_id, node_type)
        for node_type, ids in candidate.noncore_nodes.items()
        for node_id in ids
    )
    local = candidate.local_densities()
    return CliqueRecord(
        clique_id=clique_id,
        graph_id=graph_id,
        core_count=candidate.core_count,
        noncore_count=candidate.noncore_count,
        core_ids=core_ids,
        noncore_ids=[node_id for node_id, _ in typed],
        noncore_types=[node_type for _, node_type in typed],
        global_density=candidate.global_density(),
        local_densities=[local[node_id] for node_id in core_ids],
        type_densities=[candidate.type_density(t) for t in spec.non_core_types],
        score=scored.score.value,
    )


def _stats_to_model(graph: TypedHypergraph) -> GraphStats:
    raw = graph.stats()
    return GraphStats(
        node_count=raw["num_nodes"],
        edge_count=raw["num_edges"],
        nodes_by_type=raw["nodes_by_type"],
        edges_by_relation=raw["edges_by_relation"],
    )


def _as_edge_record(edge: EdgeInput) -> EdgeRecord:
    if isinstance(edge, EdgeRecord):
        return edge
    if isinstance(edge, dict):
        return EdgeRecord.model_validate(edge)
    source, source_type, target, target_type, relation = edge
    return EdgeRecord(
        source=source,
        source_type=source_type,
        target=target,
        target_type=target_type,
        relation=relation,
    )


class CliqueMiner:
    """Typed quasi-clique miner.

    Holds a TypeSpec and one immutable graph per graph id, and runs the beam
    search over them.

    Example:
        ```python
        miner = CliqueMiner([("author", "published", "article")])
        miner.load([
            (1, "author", 3, "article", "published"),
            (2, "author", 3, "article", "published"),
        ])
        result = miner.mine(beam_size=10, global_thresh=0.5)
        for clique in result.cliques:
            print(clique.core_ids, clique.noncore_ids)
        ```
    """

    def __init__(
        self,
        typespec: TypeSpec | Iterable[Sequence[str]],
        *,
        core_relation: str = DEFAULT_CORE_RELATION,
        edges: Iterable[EdgeInput] | None = None,
    ) -> None:
        if isinstance(typespec, TypeSpec):
            self._spec = typespec
        else:
            self._spec = TypeSpec.from_triples(typespec, core_relation=core_relation)
        self._graphs: dict[int, TypedHypergraph] = {}
        if edges is not None:
            self.load(edges)

    @classmethod
    def from_request(cls, request: MiningRequest) -> CliqueMiner:
        return cls(request.typespec, core_relation=request.core_relation, edges=request.edges)

    @property
    def type_spec(self) -> TypeSpec:
        return self._spec

    # ========== Graphs ==========

    def load(self, edges: Iterable[EdgeInput]) -> list[int]:
        """Build one graph per graph id from an edge stream, replacing loaded graphs.

        Plain 5-tuples belong to graph 0.

        Returns:
            Sorted graph ids that were built

        Raises:
            InvalidEdgeError: If any edge violates the TypeSpec
        """
        grouped: dict[int, list[EdgeRecord]] = defaultdict(list)
        for edge in edges:
            record = _as_edge_record(edge)
            grouped[record.graph_id].append(record)
        self._graphs = {
            graph_id: TypedHypergraph.build(self._spec, records)
            for graph_id, records in sorted(grouped.items())
        }
        return sorted(self._graphs)

    @property
    def graph_ids(self) -> list[int]:
        return sorted(self._graphs)

    def graph(self, graph_id: int = 0) -> TypedHypergraph:
        """The graph loaded under ``graph_id``; an empty graph if none was loaded."""
        graph = self._graphs.get(graph_id)
        if graph is None:
            return TypedHypergraph.build(self._spec, [])
        return graph

    def stats(self, graph_id: int = 0) -> GraphStats:
        return _stats_to_model(self.graph(graph_id))

    def neighbors(
        self,
        node_id: int,
        *,
        relation: str | None = None,
        graph_id: int = 0,
    ) -> list[int]:
        """Sorted neighbors of a node, optionally over one relation only.

        Raises:
            UnknownNodeError: If the node is not in the graph
        """
        graph = self.graph(graph_id)
        if relation is None:
            return sorted(graph.neighbors(node_id))
        return sorted(graph.neighbors_of(node_id, relation))

    # ========== Mining ==========

    def mine(
        self,
        config: MiningConfig | dict[str, Any] | None = None,
        *,
        graph_id: int = 0,
        **overrides: Any,
    ) -> MiningResult:
        """Mine the graph loaded under ``graph_id``.

        Args:
            config: Base configuration
            graph_id: Which loaded graph to mine
            **overrides: Individual options overriding ``config``

        Returns:
            MiningResult with the best clique, or the terminal beam if
            ``return_beam`` is set, numbered from 0 in rank order.

        Raises:
            ConfigurationError: If the configuration is invalid
            UnknownNodeError: If the seed references an absent node
        """
        mining_config = MiningConfig.load(config, **overrides)
        engine = BeamSearchEngine(self.graph(graph_id), _to_search_config(mining_config))
        outcome = engine.run()

        if mining_config.return_beam:
            chosen = [sc for sc in outcome.beam if sc.valid]
        else:
            chosen = [outcome.best] if outcome.best is not None else []
        return MiningResult(
            graph_id=graph_id,
            cliques=[
                _candidate_to_record(sc, rank, graph_id) for rank, sc in enumerate(chosen)
            ],
            epochs_run=outcome.epochs_run,
            stop_reason=outcome.stop_reason,
            score_history=list(outcome.score_history),
        )

    def mine_many(
        self,
        config: MiningConfig | dict[str, Any] | None = None,
        **overrides: Any,
    ) -> list[MiningResult]:
        """Mine every loaded graph independently, in graph id order."""
        mining_config = MiningConfig.load(config, **overrides)
        return [self.mine(mining_config, graph_id=graph_id) for graph_id in self.graph_ids]
