"""Scoring of clique candidates.

The score of a valid candidate is::

    alpha * core_count + (1 - alpha) * global_density + sum(log(1 + n_t))

where ``n_t`` is the number of non-core members of type ``t``. ``alpha`` trades
clique size against core density; the last term rewards attaching more (and
more diverse) non-core nodes to the same core set.

A candidate is valid when its global density reaches ``global_thresh`` and every
core member's local density reaches ``local_thresh``. Invalid candidates get
``value - ceiling - 1``, where ``ceiling`` bounds every valid value in the graph
(derived from the candidate's graph unless one is given), so they score below all
valid candidates while keeping their relative order. Ranking also puts validity
first, so a caller-supplied ceiling cannot lift an invalid candidate above a
valid one.
"""

from dataclasses import dataclass
from math import log1p
from typing import NamedTuple

from .candidate import CandidateKey, CliqueCandidate
from .errors import ConfigurationError
from .graph import TypedHypergraph

RankKey = tuple[bool, float, int, int, CandidateKey]


class Score(NamedTuple):
    value: float
    valid: bool


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(
            f"{name} must be between 0.0 and 1.0, got: {value}", field=name, value=value
        )


def score_ceiling(graph: TypedHypergraph, alpha: float) -> float:
    """Upper bound of the valid score of any candidate in ``graph``."""
    bound = alpha * len(graph.core_nodes()) + (1.0 - alpha)
    for node_type in graph.type_spec.non_core_types:
        bound += log1p(len(graph.noncore_nodes(node_type)))
    return bound


def is_valid(candidate: CliqueCandidate, global_thresh: float, local_thresh: float) -> bool:
    if not candidate.core_nodes:
        return False
    if candidate.global_density() < global_thresh:
        return False
    return candidate.min_local_density() >= local_thresh


def raw_score(candidate: CliqueCandidate, alpha: float) -> float:
    value = alpha * candidate.core_count + (1.0 - alpha) * candidate.global_density()
    for ids in candidate.noncore_nodes.values():
        value += log1p(len(ids))
    return value


def score(
    candidate: CliqueCandidate,
    alpha: float,
    global_thresh: float,
    local_thresh: float,
) -> Score:
    """Score one candidate without a prebuilt ScoringFunction."""
    return ScoringFunction.for_graph(candidate.graph, alpha, global_thresh, local_thresh)(
        candidate
    )


@dataclass(frozen=True)
class ScoringFunction:
    """Configured scorer. Pure: holds no per-candidate state and is safe to share.

    Attributes:
        alpha: Size/density tradeoff in [0, 1]
        global_thresh: Minimum global density of a valid candidate
        local_thresh: Minimum local density of every core member
        ceiling: Upper bound of any valid value (None: computed per graph);
            see ``score_ceiling``
    """

    alpha: float
    global_thresh: float
    local_thresh: float
    ceiling: float | None = None

    def __post_init__(self) -> None:
        _check_unit("alpha", self.alpha)
        _check_unit("global_thresh", self.global_thresh)
        _check_unit("local_thresh", self.local_thresh)

    @classmethod
    def for_graph(
        cls,
        graph: TypedHypergraph,
        alpha: float,
        global_thresh: float,
        local_thresh: float,
    ) -> "ScoringFunction":
        return cls(alpha, global_thresh, local_thresh, ceiling=score_ceiling(graph, alpha))

    def __call__(self, candidate: CliqueCandidate) -> Score:
        value = raw_score(candidate, self.alpha)
        if is_valid(candidate, self.global_thresh, self.local_thresh):
            return Score(value, True)
        ceiling = self.ceiling
        if ceiling is None:
            ceiling = score_ceiling(candidate.graph, self.alpha)
        return Score(value - ceiling - 1.0, False)

    @staticmethod
    def rank_key(candidate: CliqueCandidate, candidate_score: Score) -> RankKey:
        """Ascending sort key: valid before invalid, best score first, then more
        core nodes, then fewer nodes overall, then the lowest canonical key."""
        return (
            not candidate_score.valid,
            -candidate_score.value,
            -candidate.core_count,
            candidate.total_size,
            candidate.key,
        )
