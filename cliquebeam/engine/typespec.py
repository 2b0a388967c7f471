"""Schema of a typed graph: which node types may be joined by which relations."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .errors import ConfigurationError

DEFAULT_CORE_RELATION = "core"


@dataclass(frozen=True)
class TypeSpec:
    """Ordered (core_type, relation, non_core_type) triples.

    Every triple shares the same core type. Two core nodes may additionally be
    linked by the implicit ``core_relation``, which must not be reused by a
    declared triple.

    Attributes:
        triples: Declared relation triples, in declaration order
        core_relation: Relation tag of core-core edges

    Raises:
        ConfigurationError: If the triples disagree on the core type, a triple is
            repeated, a non-core type equals the core type, or a triple reuses
            the core-core relation
    """

    triples: tuple[tuple[str, str, str], ...]
    core_relation: str = DEFAULT_CORE_RELATION
    _by_type: dict[str, tuple[str, ...]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        triples = tuple(tuple(t) for t in self.triples)
        object.__setattr__(self, "triples", triples)

        seen: set[tuple[str, str, str]] = set()
        by_type: dict[str, list[str]] = {}
        for triple in triples:
            if len(triple) != 3 or not all(isinstance(part, str) for part in triple):
                raise ConfigurationError(
                    f"TypeSpec triples must be (core_type, relation, non_core_type) strings, "
                    f"got: {triple!r}",
                    field="triples",
                    value=triple,
                )
            core_type, relation, non_core_type = triple
            if core_type != triples[0][0]:
                raise ConfigurationError(
                    f"All triples must share one core type: {triples[0][0]!r} != {core_type!r}",
                    field="triples",
                    value=triple,
                )
            if non_core_type == core_type:
                raise ConfigurationError(
                    f"Non-core type cannot equal the core type: {triple!r}",
                    field="triples",
                    value=triple,
                )
            if relation == self.core_relation:
                raise ConfigurationError(
                    f"Relation {relation!r} is reserved for core-core edges",
                    field="triples",
                    value=triple,
                )
            if triple in seen:
                raise ConfigurationError(
                    f"Duplicate triple: {triple!r}", field="triples", value=triple
                )
            seen.add(triple)
            by_type.setdefault(non_core_type, []).append(relation)

        object.__setattr__(self, "_by_type", {t: tuple(rels) for t, rels in by_type.items()})

    @classmethod
    def from_triples(
        cls,
        triples: Iterable[Sequence[str]],
        core_relation: str = DEFAULT_CORE_RELATION,
    ) -> "TypeSpec":
        """Build a TypeSpec from any iterable of 3-item sequences."""
        return cls(tuple(tuple(t) for t in triples), core_relation=core_relation)

    @property
    def is_empty(self) -> bool:
        return not self.triples

    @property
    def core_type(self) -> str | None:
        """The shared core type, or None for an empty spec."""
        return self.triples[0][0] if self.triples else None

    @property
    def non_core_types(self) -> tuple[str, ...]:
        """Non-core types in order of first declaration."""
        return tuple(self._by_type)

    @property
    def relations(self) -> tuple[str, ...]:
        """Distinct declared relations in order of first declaration."""
        return tuple(dict.fromkeys(relation for _, relation, _ in self.triples))

    def declares_type(self, node_type: str) -> bool:
        return node_type == self.core_type or node_type in self._by_type

    def relations_between(self, non_core_type: str) -> tuple[str, ...]:
        """Relations that may join a core node to a node of ``non_core_type``.

        The tuple length is the number of possible edges between one core node
        and one node of that type.
        """
        return self._by_type.get(non_core_type, ())

    def relations_of(self, node_type: str) -> tuple[str, ...]:
        """Every relation a node of ``node_type`` may take part in."""
        if node_type == self.core_type:
            return (self.core_relation, *self.relations)
        return self.relations_between(node_type)

    def allows(self, type_a: str, relation: str, type_b: str) -> bool:
        """Whether an edge between these endpoint types and relation is declared.

        Endpoint order does not matter.
        """
        core = self.core_type
        if core is None:
            return False
        if type_a == core and type_b == core:
            return relation == self.core_relation
        if type_a == core:
            return relation in self.relations_between(type_b)
        if type_b == core:
            return relation in self.relations_between(type_a)
        return False
