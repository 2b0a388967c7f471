"""Tests for candidate scoring and ranking."""

from math import log

import pytest

from cliquebeam.engine import (
    CliqueCandidate,
    ConfigurationError,
    Score,
    ScoringFunction,
    TypedHypergraph,
    score,
)
from cliquebeam.engine.scoring import score_ceiling


@pytest.fixture()
def unlinked_graph(author_spec) -> TypedHypergraph:
    return TypedHypergraph.build(
        author_spec,
        [
            (1, "author", 3, "article", "published"),
            (1, "author", 4, "article", "published"),
            (2, "author", 3, "article", "published"),
        ],
    )


class TestScore:
    """Tests for score values and validity."""

    def test_full_clique_value(self, author_graph):
        candidate = CliqueCandidate.seed(author_graph, [1, 2, 3, 4])
        result = score(candidate, alpha=0.5, global_thresh=1.0, local_thresh=1.0)
        assert result.valid
        assert result.value == pytest.approx(0.5 * 2 + 0.5 * 1.0 + log(3))

    def test_alpha_one_ignores_density(self, unlinked_graph):
        candidate = CliqueCandidate.seed(unlinked_graph, [1, 2])
        result = score(candidate, alpha=1.0, global_thresh=0.0, local_thresh=0.0)
        assert result == Score(2.0, True)

    def test_alpha_zero_ignores_size(self, author_graph):
        candidate = CliqueCandidate.seed(author_graph, [1, 2])
        result = score(candidate, alpha=0.0, global_thresh=0.0, local_thresh=0.0)
        assert result.value == pytest.approx(1.0)

    def test_more_noncore_nodes_score_higher(self, author_graph):
        scorer = ScoringFunction.for_graph(author_graph, 0.5, 1.0, 1.0)
        core_only = scorer(CliqueCandidate.seed(author_graph, [1, 2]))
        with_articles = scorer(CliqueCandidate.seed(author_graph, [1, 2, 3, 4]))
        assert with_articles.value > core_only.value

    def test_global_threshold_invalidates(self, unlinked_graph):
        candidate = CliqueCandidate.seed(unlinked_graph, [1, 2, 3])
        result = score(candidate, alpha=0.5, global_thresh=0.5, local_thresh=0.0)
        assert not result.valid
        assert result.value < 0

    def test_local_threshold_invalidates(self, unlinked_graph):
        # Global density is ignored with a single core node
        candidate = CliqueCandidate.seed(unlinked_graph, [1, 3])
        assert score(candidate, 0.5, 1.0, 1.0).valid
        # Author 2 reached article 3 but not article 4
        sparse = CliqueCandidate.seed(unlinked_graph, [1, 2, 3, 4])
        assert not score(sparse, 0.5, 0.0, 0.9).valid

    def test_empty_candidate_is_invalid(self, author_graph):
        result = score(CliqueCandidate.empty(author_graph), 0.5, 0.0, 0.0)
        assert not result.valid

    def test_invalid_ranks_below_every_valid(self, unlinked_graph):
        scorer = ScoringFunction.for_graph(unlinked_graph, 0.5, 0.5, 0.0)
        big_invalid = scorer(CliqueCandidate.seed(unlinked_graph, [1, 2, 3]))
        small_valid = scorer(CliqueCandidate.seed(unlinked_graph, 1))
        assert not big_invalid.valid
        assert small_valid.valid
        assert big_invalid.value < small_valid.value

    def test_bare_scorer_keeps_invalid_below_valid(self, author_spec):
        graph = TypedHypergraph.build(
            author_spec,
            [(n, "author", 10, "article", "published") for n in range(1, 6)],
        )
        scorer = ScoringFunction(0.5, 1.0, 0.0)
        big_invalid = scorer(CliqueCandidate.seed(graph, [1, 2, 3, 4, 5]))
        small_valid = scorer(CliqueCandidate.seed(graph, 1))
        assert not big_invalid.valid
        assert small_valid.valid
        assert big_invalid.value < small_valid.value

    def test_rank_puts_valid_first_whatever_the_ceiling(self, author_spec):
        graph = TypedHypergraph.build(
            author_spec,
            [(n, "author", 10, "article", "published") for n in range(1, 6)],
        )
        scorer = ScoringFunction(0.5, 1.0, 0.0, ceiling=0.0)
        big = CliqueCandidate.seed(graph, [1, 2, 3, 4, 5])
        small = CliqueCandidate.seed(graph, 1)
        big_score, small_score = scorer(big), scorer(small)
        assert big_score.value > small_score.value
        assert ScoringFunction.rank_key(small, small_score) < ScoringFunction.rank_key(
            big, big_score
        )

    def test_ceiling_bounds_valid_scores(self, random_graph):
        ceiling = score_ceiling(random_graph, 0.5)
        candidate = CliqueCandidate.seed(random_graph, random_graph.nodes())
        assert score(candidate, 0.5, 0.0, 0.0).value <= ceiling

    def test_scoring_is_deterministic(self, random_graph):
        candidate = CliqueCandidate.seed(random_graph, random_graph.nodes()[:6])
        scorer = ScoringFunction.for_graph(random_graph, 0.3, 0.2, 0.1)
        assert scorer(candidate) == scorer(candidate)


class TestValidation:
    """Tests for ScoringFunction parameter checks."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"alpha": 1.5, "global_thresh": 0.0, "local_thresh": 0.0},
            {"alpha": -0.1, "global_thresh": 0.0, "local_thresh": 0.0},
            {"alpha": 0.5, "global_thresh": 1.1, "local_thresh": 0.0},
            {"alpha": 0.5, "global_thresh": 0.0, "local_thresh": -1.0},
        ],
    )
    def test_out_of_range(self, kwargs):
        with pytest.raises(ConfigurationError):
            ScoringFunction(**kwargs)

    def test_error_names_field(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ScoringFunction(alpha=2.0, global_thresh=0.0, local_thresh=0.0)
        assert exc_info.value.field == "alpha"
        assert exc_info.value.value == 2.0


class TestRankKey:
    """Tests for the ranking order of equal scores."""

    def test_more_core_nodes_first(self, author_graph):
        tied = Score(1.0, True)
        two_core = CliqueCandidate.seed(author_graph, [1, 2])
        one_core = CliqueCandidate.seed(author_graph, [1, 3])
        assert ScoringFunction.rank_key(two_core, tied) < ScoringFunction.rank_key(
            one_core, tied
        )

    def test_fewer_nodes_first(self, author_graph):
        tied = Score(1.0, True)
        small = CliqueCandidate.seed(author_graph, [1, 3])
        large = CliqueCandidate.seed(author_graph, [1, 3, 4])
        assert ScoringFunction.rank_key(small, tied) < ScoringFunction.rank_key(large, tied)

    def test_lowest_key_last_resort(self, author_graph):
        scorer = ScoringFunction.for_graph(author_graph, 0.5, 0.0, 0.0)
        first = CliqueCandidate.seed(author_graph, [1, 3])
        second = CliqueCandidate.seed(author_graph, [1, 4])
        assert scorer(first) == scorer(second)
        assert ScoringFunction.rank_key(first, scorer(first)) < ScoringFunction.rank_key(
            second, scorer(second)
        )

    def test_higher_score_first(self, author_graph):
        scorer = ScoringFunction.for_graph(author_graph, 0.5, 0.0, 0.0)
        better = CliqueCandidate.seed(author_graph, [1, 2, 3, 4])
        worse = CliqueCandidate.seed(author_graph, [1, 2])
        assert ScoringFunction.rank_key(better, scorer(better)) < ScoringFunction.rank_key(
            worse, scorer(worse)
        )
