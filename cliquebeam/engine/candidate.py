"""Immutable clique candidates with incremental density bookkeeping.

A candidate is a set of core nodes plus non-core nodes grouped by type. Edge
counters are computed by lookup when a candidate is seeded and then updated
incrementally: ``with_added`` returns a new candidate whose counters differ from
its parent's by exactly the edges the new node brings in.

Expansions share structure with their parent: the node sets are frozensets and
only the set (and counter maps) touched by the new node are copied, so beam
workers can expand the same parent concurrently. Counter maps are exposed as
read-only mapping proxies.
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from math import comb
from types import MappingProxyType

from .errors import InvalidExpansionError
from .graph import TypedHypergraph

CandidateKey = tuple[int, ...]


@dataclass(frozen=True)
class CliqueCandidate:
    """One partial or complete quasi-clique.

    Attributes:
        graph: The (read-only) graph the candidate lives in
        core_nodes: Core-type member nodes
        noncore_nodes: Non-core member nodes keyed by non-core type
        core_edges_present: Edges among ``core_nodes``
        edges_present: Per non-core type, edges between core and non-core members
        core_ties: Per core member, edges to the candidate's non-core members

    Equal candidates hash alike: the hash is taken over ``key``.
    """

    graph: TypedHypergraph = field(repr=False, compare=False)
    core_nodes: frozenset[int]
    noncore_nodes: Mapping[str, frozenset[int]]
    core_edges_present: int
    edges_present: Mapping[str, int]
    core_ties: Mapping[int, int] = field(repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("noncore_nodes", "edges_present", "core_ties"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def __hash__(self) -> int:
        return hash(self.key)

    # ========== Construction ==========

    @classmethod
    def empty(cls, graph: TypedHypergraph) -> "CliqueCandidate":
        non_core_types = graph.type_spec.non_core_types
        return cls(
            graph=graph,
            core_nodes=frozenset(),
            noncore_nodes={t: frozenset() for t in non_core_types},
            core_edges_present=0,
            edges_present=dict.fromkeys(non_core_types, 0),
            core_ties={},
        )

    @classmethod
    def seed(cls, graph: TypedHypergraph, nodes: int | Iterable[int]) -> "CliqueCandidate":
        """Create a candidate from one node or a node set, counting edges by lookup.

        Raises:
            UnknownNodeError: If any node is absent from the graph
        """
        members = {nodes} if isinstance(nodes, int) else set(nodes)
        core: set[int] = set()
        noncore: dict[str, set[int]] = {t: set() for t in graph.type_spec.non_core_types}
        for node_id in sorted(members):
            if graph.is_core(node_id):
                core.add(node_id)
            else:
                noncore[graph.node_type(node_id)].add(node_id)

        frozen_core = frozenset(core)
        frozen_noncore = {t: frozenset(ids) for t, ids in noncore.items()}
        core_edges = 0
        edges_present: dict[str, int] = {}
        core_ties: dict[int, int] = {}
        for node_type, ids in frozen_noncore.items():
            edges_present[node_type] = sum(graph.ties(n, frozen_core) for n in ids)
        for node_id in frozen_core:
            core_edges += graph.ties(node_id, frozen_core - {node_id})
            core_ties[node_id] = sum(graph.ties(node_id, ids) for ids in frozen_noncore.values())
        return cls(
            graph=graph,
            core_nodes=frozen_core,
            noncore_nodes=frozen_noncore,
            # Each core-core edge was seen from both ends
            core_edges_present=core_edges // 2,
            edges_present=edges_present,
            core_ties=core_ties,
        )

    def with_added(self, node_id: int) -> "CliqueCandidate":
        """Return a new candidate with ``node_id`` added.

        Raises:
            InvalidExpansionError: If the node is already a member
            UnknownNodeError: If the node is absent from the graph
        """
        if self.contains(node_id):
            raise InvalidExpansionError(node_id)
        graph = self.graph
        node_type = graph.node_type(node_id)
        core_ties = dict(self.core_ties)

        spec = graph.type_spec
        if node_type == spec.core_type:
            core_links = graph.neighbors_of(node_id, spec.core_relation) & self.core_nodes
            edges_present = dict(self.edges_present)
            own = 0
            for other_type, ids in self.noncore_nodes.items():
                links = graph.ties(node_id, ids)
                edges_present[other_type] += links
                own += links
            core_ties[node_id] = own
            return CliqueCandidate(
                graph=graph,
                core_nodes=self.core_nodes | {node_id},
                noncore_nodes=self.noncore_nodes,
                core_edges_present=self.core_edges_present + len(core_links),
                edges_present=edges_present,
                core_ties=core_ties,
            )

        added = 0
        for relation in spec.relations_between(node_type):
            for core_id in graph.neighbors_of(node_id, relation) & self.core_nodes:
                core_ties[core_id] += 1
                added += 1
        noncore_nodes = dict(self.noncore_nodes)
        noncore_nodes[node_type] = noncore_nodes[node_type] | {node_id}
        edges_present = dict(self.edges_present)
        edges_present[node_type] += added
        return CliqueCandidate(
            graph=graph,
            core_nodes=self.core_nodes,
            noncore_nodes=noncore_nodes,
            core_edges_present=self.core_edges_present,
            edges_present=edges_present,
            core_ties=core_ties,
        )

    # ========== Membership ==========

    def contains(self, node_id: int) -> bool:
        if node_id in self.core_nodes:
            return True
        return any(node_id in ids for ids in self.noncore_nodes.values())

    def members(self) -> frozenset[int]:
        result = set(self.core_nodes)
        for ids in self.noncore_nodes.values():
            result |= ids
        return frozenset(result)

    @property
    def core_count(self) -> int:
        return len(self.core_nodes)

    @property
    def noncore_count(self) -> int:
        return sum(len(ids) for ids in self.noncore_nodes.values())

    @property
    def total_size(self) -> int:
        return self.core_count + self.noncore_count

    def size(self) -> tuple[int, int]:
        """(core_count, noncore_count)."""
        return (self.core_count, self.noncore_count)

    def type_counts(self) -> dict[str, int]:
        return {t: len(ids) for t, ids in self.noncore_nodes.items()}

    @property
    def key(self) -> CandidateKey:
        """Canonical node-set key: every member id, sorted."""
        return tuple(sorted(self.members()))

    # ========== Densities ==========

    def global_density(self) -> float:
        """Fraction of possible core-core edges present; 1.0 below two core nodes."""
        possible = comb(self.core_count, 2)
        if possible == 0:
            return 1.0
        return self.core_edges_present / possible

    def possible_core_ties(self) -> int:
        """Edges a single core member could have to the candidate's non-core members."""
        spec = self.graph.type_spec
        possible = 0
        for node_type, ids in self.noncore_nodes.items():
            possible += len(ids) * len(spec.relations_between(node_type))
        return possible

    def local_density(self, core_node: int) -> float:
        """Fraction of ``core_node``'s possible non-core edges that are present.

        Core-core edges are measured by ``global_density`` only.

        Raises:
            KeyError: If ``core_node`` is not a core member
        """
        ties = self.core_ties[core_node]
        possible = self.possible_core_ties()
        if possible == 0:
            return 1.0
        return ties / possible

    def local_densities(self) -> dict[int, float]:
        """Local density of every core member, keyed by node id."""
        possible = self.possible_core_ties()
        if possible == 0:
            return dict.fromkeys(self.core_nodes, 1.0)
        return {node: self.core_ties[node] / possible for node in self.core_nodes}

    def min_local_density(self) -> float:
        if not self.core_nodes:
            return 1.0
        possible = self.possible_core_ties()
        if possible == 0:
            return 1.0
        return min(self.core_ties[node] for node in self.core_nodes) / possible

    def type_density(self, node_type: str) -> float:
        """Fraction of possible core to ``node_type`` edges present."""
        relations = len(self.graph.type_spec.relations_between(node_type))
        possible = self.core_count * len(self.noncore_nodes.get(node_type, ())) * relations
        if possible == 0:
            return 1.0
        return self.edges_present[node_type] / possible

    # ========== Expansion ==========

    def frontier(self, admissible: frozenset[int] | None = None) -> Counter[int]:
        """Nodes adjacent to the candidate but outside it, with their tie counts.

        Args:
            admissible: If given, only nodes in this set are returned
        """
        graph = self.graph
        members = self.members()
        ties: Counter[int] = Counter()
        for node_id in members:
            node_type = graph.node_type(node_id)
            for relation in graph.type_spec.relations_of(node_type):
                for neighbor in graph.neighbors_of(node_id, relation):
                    if neighbor in members:
                        continue
                    if admissible is not None and neighbor not in admissible:
                        continue
                    ties[neighbor] += 1
        return ties

    def recount(self) -> tuple[int, dict[str, int]]:
        """Brute-force (core_edges_present, edges_present) by scanning every edge.

        Only used to validate the incremental counters.
        """
        members = self.members()
        core_type = self.graph.type_spec.core_type
        core_edges = 0
        per_type = dict.fromkeys(self.noncore_nodes, 0)
        for low, type_low, high, type_high, _ in self.graph.edges():
            if low not in members or high not in members:
                continue
            if type_low == core_type and type_high == core_type:
                core_edges += 1
            elif type_low == core_type:
                per_type[type_high] += 1
            else:
                per_type[type_low] += 1
        return core_edges, per_type
