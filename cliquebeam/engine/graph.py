"""Typed heterogeneous graph used by the clique miner.

A TypedHypergraph holds integer-labelled nodes of one core type and several
non-core types, joined by relation-tagged edges declared in a TypeSpec.
Adjacency is indexed per (node type, relation) pair, so a typed neighbor lookup
is a pair of dict hits.

Thread Safety:
    The graph is built once by ``TypedHypergraph.build`` and exposes no mutation
    afterwards. It can be shared by any number of reader threads without locking.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from typing import Any

from .errors import InvalidEdgeError, UnknownNodeError
from .typespec import TypeSpec

logger = logging.getLogger(__name__)

EdgeTuple = tuple[int, str, int, str, str]

_EMPTY: frozenset[int] = frozenset()


def _as_edge_tuple(edge: Any) -> EdgeTuple:
    """Accept a 5-tuple or any object exposing ``as_tuple()``."""
    if hasattr(edge, "as_tuple"):
        edge = edge.as_tuple()
    try:
        node_a, type_a, node_b, type_b, relation = edge
    except (TypeError, ValueError):
        raise InvalidEdgeError(
            f"Edge must be (node_a, type_a, node_b, type_b, relation), got: {edge!r}",
            edge=edge if isinstance(edge, tuple) else None,
        ) from None
    return (node_a, type_a, node_b, type_b, relation)


class TypedHypergraph:
    """Immutable typed graph validated against a TypeSpec.

    Use ``TypedHypergraph.build(type_spec, edges)`` rather than the constructor.

    Design principles:
    - One adjacency index per (node type, relation), no catch-all map
    - Degrees precomputed at build time
    - Duplicate edges (same pair, same relation) stored once
    """

    def __init__(self, type_spec: TypeSpec) -> None:
        self.type_spec = type_spec
        self._node_types: dict[int, str] = {}
        self._nodes_by_type: dict[str, frozenset[int]] = {}
        # (node_type, relation) -> node -> neighbors
        self._adjacency: dict[tuple[str, str], dict[int, frozenset[int]]] = {}
        self._degree: dict[int, int] = {}
        # Canonical (low, high, relation) triples
        self._edges: frozenset[tuple[int, int, str]] = frozenset()

    # ========== Construction ==========

    @classmethod
    def build(cls, type_spec: TypeSpec, edges: Iterable[Any]) -> "TypedHypergraph":
        """Validate an edge stream against ``type_spec`` and index it.

        Args:
            type_spec: The declared schema
            edges: (node_a, type_a, node_b, type_b, relation) tuples, or records
                with an ``as_tuple()`` method

        Returns:
            The built graph. An empty TypeSpec yields an empty graph.

        Raises:
            InvalidEdgeError: On the first edge that violates the TypeSpec, is a
                self-loop, or re-types a node seen earlier with another type
        """
        graph = cls(type_spec)
        if type_spec.is_empty:
            ignored = sum(1 for _ in edges)
            if ignored:
                logger.warning("TypeSpec declares no triples; ignoring %d edges", ignored)
            return graph

        node_types: dict[int, str] = {}
        adjacency: dict[tuple[str, str], dict[int, set[int]]] = defaultdict(
            lambda: defaultdict(set)
        )
        canonical: set[tuple[int, int, str]] = set()

        for raw in edges:
            edge = _as_edge_tuple(raw)
            node_a, type_a, node_b, type_b, relation = edge
            for node_id in (node_a, node_b):
                if isinstance(node_id, bool) or not isinstance(node_id, int):
                    raise InvalidEdgeError(
                        f"Node ids must be integers, got: {node_id!r}", edge=edge
                    )
            if node_a == node_b:
                raise InvalidEdgeError(f"Self-loop on node {node_a}", edge=edge)
            if not type_spec.allows(type_a, relation, type_b):
                raise InvalidEdgeError(
                    f"Edge ({node_a}:{type_a}) -[{relation}]- ({node_b}:{type_b}) "
                    f"is not declared by the TypeSpec",
                    edge=edge,
                )
            for node_id, node_type in ((node_a, type_a), (node_b, type_b)):
                known = node_types.setdefault(node_id, node_type)
                if known != node_type:
                    raise InvalidEdgeError(
                        f"Node {node_id} has type {known!r} but edge declares {node_type!r}",
                        edge=edge,
                    )

            low, high = (node_a, node_b) if node_a < node_b else (node_b, node_a)
            key = (low, high, relation)
            if key in canonical:
                continue
            canonical.add(key)
            adjacency[(type_a, relation)][node_a].add(node_b)
            adjacency[(type_b, relation)][node_b].add(node_a)

        by_type: dict[str, set[int]] = defaultdict(set)
        for node_id, node_type in node_types.items():
            by_type[node_type].add(node_id)

        degree: dict[int, int] = dict.fromkeys(node_types, 0)
        frozen: dict[tuple[str, str], dict[int, frozenset[int]]] = {}
        for index_key, index in adjacency.items():
            frozen[index_key] = {node: frozenset(nbrs) for node, nbrs in index.items()}
            for node, nbrs in index.items():
                degree[node] += len(nbrs)

        graph._node_types = node_types
        graph._nodes_by_type = {t: frozenset(ids) for t, ids in by_type.items()}
        graph._adjacency = frozen
        graph._degree = degree
        graph._edges = frozenset(canonical)
        logger.debug(
            "Built typed graph: %d nodes, %d edges", len(node_types), len(canonical)
        )
        return graph

    # ========== Node Queries ==========

    def __len__(self) -> int:
        return len(self._node_types)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._node_types

    def has_node(self, node_id: int) -> bool:
        return node_id in self._node_types

    def node_type(self, node_id: int) -> str:
        """Type of a node.

        Raises:
            UnknownNodeError: If the node is not in the graph
        """
        try:
            return self._node_types[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def is_core(self, node_id: int) -> bool:
        return self.node_type(node_id) == self.type_spec.core_type

    def nodes(self) -> list[int]:
        """All node ids, sorted."""
        return sorted(self._node_types)

    def core_nodes(self) -> frozenset[int]:
        core_type = self.type_spec.core_type
        if core_type is None:
            return _EMPTY
        return self._nodes_by_type.get(core_type, _EMPTY)

    def noncore_nodes(self, node_type: str) -> frozenset[int]:
        return self._nodes_by_type.get(node_type, _EMPTY)

    def degree(self, node_id: int) -> int:
        """Total incident edges; parallel edges with different relations count separately.

        Raises:
            UnknownNodeError: If the node is not in the graph
        """
        try:
            return self._degree[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def admissible_nodes(self, min_degree: int) -> frozenset[int]:
        """Nodes whose degree is at least ``min_degree``."""
        return frozenset(n for n, d in self._degree.items() if d >= min_degree)

    # ========== Adjacency Queries ==========

    def neighbors_of(self, node_id: int, relation: str) -> frozenset[int]:
        """Neighbors reached from ``node_id`` over one relation.

        Raises:
            UnknownNodeError: If the node is not in the graph
        """
        index = self._adjacency.get((self.node_type(node_id), relation))
        if index is None:
            return _EMPTY
        return index.get(node_id, _EMPTY)

    def neighbors(self, node_id: int) -> frozenset[int]:
        """Neighbors over every relation the node's type takes part in."""
        node_type = self.node_type(node_id)
        result: set[int] = set()
        for relation in self.type_spec.relations_of(node_type):
            index = self._adjacency.get((node_type, relation))
            if index is not None:
                result |= index.get(node_id, _EMPTY)
        return frozenset(result)

    def ties(self, node_id: int, others: frozenset[int] | set[int]) -> int:
        """Number of edges between ``node_id`` and the nodes in ``others``."""
        if not others:
            return 0
        node_type = self.node_type(node_id)
        count = 0
        for relation in self.type_spec.relations_of(node_type):
            index = self._adjacency.get((node_type, relation))
            if index is not None:
                count += len(index.get(node_id, _EMPTY) & others)
        return count

    def edges(self) -> Iterator[EdgeTuple]:
        """Iterate stored edges as (low, type, high, type, relation), sorted."""
        for low, high, relation in sorted(self._edges):
            yield (low, self._node_types[low], high, self._node_types[high], relation)

    # ========== Statistics ==========

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    def stats(self) -> dict[str, Any]:
        """Summary counts of the graph."""
        edges_by_relation: dict[str, int] = defaultdict(int)
        for _, _, relation in self._edges:
            edges_by_relation[relation] += 1
        return {
            "num_nodes": len(self._node_types),
            "num_edges": len(self._edges),
            "nodes_by_type": {t: len(ids) for t, ids in sorted(self._nodes_by_type.items())},
            "edges_by_relation": dict(sorted(edges_by_relation.items())),
        }
