"""Beam search over typed clique candidates.

Each epoch expands every not-yet-expanded candidate in the beam by one node,
merges the expansions with the current beam, and keeps the ``beam_size`` best
distinct candidates. Expansion runs on a bounded thread pool, one task per
candidate; the graph and the candidates are immutable, so workers share nothing
writable. Merging, ranking and the best-result update happen sequentially at
the epoch barrier.

Expansion is pure Python, so under the GIL the pool interleaves tasks rather
than running them in parallel; ``num_workers`` bounds concurrency, not CPU
parallelism, and never changes the result.

The search stops after ``epochs`` epochs, when the best score has repeated for
``max_repeated_prior_scores`` consecutive epochs, or when every candidate in the
beam has already been expanded (nothing new can be produced).

Example:
    graph = TypedHypergraph.build(spec, edges)
    engine = BeamSearchEngine(graph, SearchConfig(beam_size=10, alpha=0.5))
    outcome = engine.run()
    if outcome.best is not None:
        print(outcome.best.candidate.key, outcome.best.score.value)
"""

import logging
import random
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Literal

from .candidate import CliqueCandidate
from .errors import ConfigurationError
from .graph import TypedHypergraph
from .scoring import RankKey, Score, ScoringFunction

logger = logging.getLogger(__name__)

StopReason = Literal["epochs", "stagnation", "converged", "empty"]


def _positive(name: str, value: int | None, *, allow_none: bool = False, minimum: int = 1) -> None:
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigurationError(
            f"{name} must be an integer >= {minimum}, got: {value!r}", field=name, value=value
        )


@dataclass(frozen=True)
class SearchConfig:
    """Options of one mining run.

    Attributes:
        beam_size: Maximum number of candidates kept per epoch
        alpha: Size/density tradeoff in [0, 1]
        global_thresh: Minimum global density of a valid clique
        local_thresh: Minimum local density of every core member
        num_to_search: How many starting core nodes to launch (None = all)
        epochs: Maximum number of epochs
        max_repeated_prior_scores: Stagnation window, in epochs
        min_degree: Nodes of lower degree are never added to a candidate
        core_type: Expected core type; must match the graph's TypeSpec if given
        seed: Explicit initial clique (node ids)
        random_seed: Seed of the sampler used for starting nodes
        num_workers: Size of the expansion thread pool
        expansion_limit: Expand each candidate by at most this many of its
            best-tied frontier nodes (None = every frontier node)
        max_core_nodes: Stop adding core nodes once a candidate has this many
        return_beam: Report the whole terminal beam instead of the best clique

    Raises:
        ConfigurationError: If any value is out of range
    """

    beam_size: int = 20
    alpha: float = 0.5
    global_thresh: float = 0.0
    local_thresh: float = 0.0
    num_to_search: int | None = None
    epochs: int = 100
    max_repeated_prior_scores: int = 3
    min_degree: int = 0
    core_type: str | None = None
    seed: tuple[int, ...] | None = None
    random_seed: int = 0
    num_workers: int = 4
    expansion_limit: int | None = None
    max_core_nodes: int | None = None
    return_beam: bool = False

    def __post_init__(self) -> None:
        _positive("beam_size", self.beam_size)
        _positive("epochs", self.epochs)
        _positive("max_repeated_prior_scores", self.max_repeated_prior_scores)
        _positive("num_workers", self.num_workers)
        _positive("min_degree", self.min_degree, minimum=0)
        _positive("num_to_search", self.num_to_search, allow_none=True)
        _positive("expansion_limit", self.expansion_limit, allow_none=True)
        _positive("max_core_nodes", self.max_core_nodes, allow_none=True)
        # Range checks for alpha and the thresholds live in ScoringFunction
        ScoringFunction(self.alpha, self.global_thresh, self.local_thresh)
        if self.seed is not None:
            object.__setattr__(self, "seed", tuple(self.seed) or None)


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate with its score and ranking key, computed once."""

    candidate: CliqueCandidate
    score: Score
    rank: RankKey

    @classmethod
    def of(cls, candidate: CliqueCandidate, scorer: ScoringFunction) -> "ScoredCandidate":
        candidate_score = scorer(candidate)
        return cls(candidate, candidate_score, ScoringFunction.rank_key(candidate, candidate_score))

    @property
    def key(self) -> tuple[int, ...]:
        return self.rank[-1]

    @property
    def valid(self) -> bool:
        return self.score.valid


@dataclass(frozen=True)
class Beam:
    """Ranked candidates, best first, without duplicate node sets."""

    entries: tuple[ScoredCandidate, ...] = ()

    @classmethod
    def select(cls, pool: Iterable[ScoredCandidate], beam_size: int) -> "Beam":
        """Deduplicate by node set, rank, and keep the ``beam_size`` best."""
        ranked = sorted(pool, key=lambda sc: sc.rank)
        unique: dict[tuple[int, ...], ScoredCandidate] = {}
        for scored in ranked:
            if len(unique) >= beam_size:
                break
            unique.setdefault(scored.key, scored)
        return cls(tuple(unique.values()))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ScoredCandidate]:
        return iter(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def best_valid(self) -> ScoredCandidate | None:
        return next((sc for sc in self.entries if sc.valid), None)


@dataclass
class BestResult:
    """Best valid candidate seen so far and the best score after each epoch.

    ``history[0]`` is the best score after initialization, ``history[i]`` the
    best score after epoch ``i`` (None while no valid candidate exists).
    """

    best: ScoredCandidate | None = None
    history: list[float | None] = field(default_factory=list)

    @property
    def score(self) -> float | None:
        return self.best.score.value if self.best is not None else None

    def offer(self, scored: ScoredCandidate | None) -> bool:
        """Keep ``scored`` if it is valid and strictly beats the stored best."""
        if scored is None or not scored.valid:
            return False
        if self.best is not None and scored.score.value <= self.best.score.value:
            return False
        self.best = scored
        return True

    def close_epoch(self) -> int:
        """Record the current best score; return how many epochs in a row it repeated."""
        self.history.append(self.score)
        repeats = 0
        for previous in reversed(self.history[:-1]):
            if previous != self.history[-1]:
                break
            repeats += 1
        return repeats


@dataclass(frozen=True)
class SearchOutcome:
    best: ScoredCandidate | None
    beam: Beam
    epochs_run: int
    stop_reason: StopReason
    score_history: tuple[float | None, ...] = ()

    @classmethod
    def empty(cls) -> "SearchOutcome":
        return cls(best=None, beam=Beam(), epochs_run=0, stop_reason="empty")


@dataclass(frozen=True)
class _ExpansionBatch:
    expansions: tuple[ScoredCandidate, ...]
    local_best: ScoredCandidate | None


class BeamSearchEngine:
    """Runs the epoch loop over one immutable graph.

    The engine keeps no state between ``run`` calls; the same engine can be run
    again (for example with a different seed) and produces identical results
    for identical inputs.
    """

    def __init__(self, graph: TypedHypergraph, config: SearchConfig | None = None) -> None:
        self.graph = graph
        self.config = config or SearchConfig()
        spec_core = graph.type_spec.core_type
        if self.config.core_type is not None and spec_core is not None:
            if self.config.core_type != spec_core:
                raise ConfigurationError(
                    f"core_type {self.config.core_type!r} does not match the TypeSpec "
                    f"core type {spec_core!r}",
                    field="core_type",
                    value=self.config.core_type,
                )
        self.scorer = ScoringFunction.for_graph(
            graph, self.config.alpha, self.config.global_thresh, self.config.local_thresh
        )
        self._admissible = graph.admissible_nodes(self.config.min_degree)

    # ========== Initialization ==========

    def starting_nodes(self) -> list[int]:
        """Admissible core nodes to start from, sampled down to ``num_to_search``."""
        nodes = sorted(self.graph.core_nodes() & self._admissible)
        limit = self.config.num_to_search
        if limit is not None and len(nodes) > limit:
            rng = random.Random(self.config.random_seed)
            nodes = sorted(rng.sample(nodes, limit))
        return nodes

    def initial_beam(self, seed: Iterable[int] | None = None) -> Beam:
        """Seed clique if given, otherwise one single-node candidate per starting node.

        Raises:
            UnknownNodeError: If the seed references a node absent from the graph
        """
        if seed is not None:
            seed_nodes = tuple(seed)
            if seed_nodes:
                candidate = CliqueCandidate.seed(self.graph, seed_nodes)
                return Beam((ScoredCandidate.of(candidate, self.scorer),))

        pool = [
            ScoredCandidate.of(CliqueCandidate.seed(self.graph, node_id), self.scorer)
            for node_id in self.starting_nodes()
        ]
        if len(pool) > self.config.beam_size:
            # Equal scores at the cut are broken by the seeded shuffle, not by node id
            rng = random.Random(self.config.random_seed)
            rng.shuffle(pool)
            pool.sort(key=lambda sc: sc.rank[:-1])
            pool = pool[: self.config.beam_size]
        return Beam.select(pool, self.config.beam_size)

    # ========== Expansion ==========

    def expansion_nodes(self, candidate: CliqueCandidate) -> list[int]:
        """Frontier nodes a candidate is expanded with, most-tied first."""
        frontier = candidate.frontier(self._admissible)
        max_core = self.config.max_core_nodes
        if max_core is not None and candidate.core_count >= max_core:
            core_nodes = self.graph.core_nodes()
            frontier = {n: t for n, t in frontier.items() if n not in core_nodes}
        ordered = sorted(frontier.items(), key=lambda item: (-item[1], item[0]))
        if self.config.expansion_limit is not None:
            ordered = ordered[: self.config.expansion_limit]
        return [node_id for node_id, _ in ordered]

    def expand(self, candidate: CliqueCandidate) -> _ExpansionBatch:
        """Score every one-node expansion of ``candidate``. Runs on worker threads."""
        expansions = tuple(
            ScoredCandidate.of(candidate.with_added(node_id), self.scorer)
            for node_id in self.expansion_nodes(candidate)
        )
        valid = [sc for sc in expansions if sc.valid]
        local_best = min(valid, key=lambda sc: sc.rank) if valid else None
        return _ExpansionBatch(expansions, local_best)

    # ========== Search ==========

    def run(self, seed: Sequence[int] | None = None) -> SearchOutcome:
        """Run the beam search.

        Args:
            seed: Initial clique; overrides ``config.seed`` when given

        Returns:
            SearchOutcome with the best valid candidate (or None), the terminal
            beam, the number of epochs run and why the search stopped

        Raises:
            UnknownNodeError: If the seed references a node absent from the graph
        """
        config = self.config
        if seed is None:
            seed = config.seed
        beam = self.initial_beam(seed)
        if not beam:
            logger.info("Nothing to search: graph has no admissible core nodes")
            return SearchOutcome.empty()

        best = BestResult()
        for scored in beam:
            best.offer(scored)
        best.close_epoch()

        expanded: set[tuple[int, ...]] = set()
        stop_reason: StopReason = "epochs"
        epochs_run = 0
        with ThreadPoolExecutor(max_workers=config.num_workers) as executor:
            for epoch in range(1, config.epochs + 1):
                pending = [sc for sc in beam if sc.key not in expanded]
                if not pending:
                    stop_reason = "converged"
                    break
                batches = list(executor.map(self.expand, [sc.candidate for sc in pending]))
                expanded.update(sc.key for sc in pending)

                pool: list[ScoredCandidate] = list(beam)
                for batch in batches:
                    pool.extend(batch.expansions)
                    best.offer(batch.local_best)
                beam = Beam.select(pool, config.beam_size)

                epochs_run = epoch
                repeats = best.close_epoch()
                logger.debug(
                    "Epoch %d: expanded %d candidates, beam %d, best score %s",
                    epoch,
                    len(pending),
                    len(beam),
                    best.score,
                )
                if repeats >= config.max_repeated_prior_scores:
                    stop_reason = "stagnation"
                    break

        logger.info(
            "Search stopped after %d epochs (%s); best score %s",
            epochs_run,
            stop_reason,
            best.score,
        )
        return SearchOutcome(
            best=best.best,
            beam=beam,
            epochs_run=epochs_run,
            stop_reason=stop_reason,
            score_history=tuple(best.history),
        )
