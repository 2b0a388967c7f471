"""Shared fixtures for cliquebeam tests."""

import random

import pytest

from cliquebeam.engine import SearchConfig, TypedHypergraph, TypeSpec

AUTHOR_SPEC = [("author", "published", "article")]

# Two authors who co-published two articles and are linked to each other
AUTHOR_EDGES = [
    (1, "author", 3, "article", "published"),
    (1, "author", 4, "article", "published"),
    (2, "author", 3, "article", "published"),
    (2, "author", 4, "article", "published"),
    (1, "author", 2, "author", "core"),
]


def generate_typed_graph(
    num_core: int,
    num_noncore: int,
    edge_prob: float = 0.3,
    core_edge_prob: float = 0.2,
    seed: int = 42,
) -> TypedHypergraph:
    """Random typed graph over two non-core types and two relations.

    Core ids are 0..num_core-1; non-core ids follow. Odd non-core ids are
    "venue" nodes, even ones "article" nodes.

    Args:
        num_core: Number of core ("author") nodes
        num_noncore: Number of non-core nodes
        edge_prob: Probability of each allowed core/non-core edge
        core_edge_prob: Probability of each core-core edge
        seed: Random seed for reproducibility
    """
    rng = random.Random(seed)
    spec = TypeSpec.from_triples(
        [
            ("author", "published", "article"),
            ("author", "reviewed", "article"),
            ("author", "attended", "venue"),
        ]
    )
    edges = []
    for a in range(num_core):
        for b in range(a + 1, num_core):
            if rng.random() < core_edge_prob:
                edges.append((a, "author", b, "author", "core"))
        for offset in range(num_noncore):
            node_id = num_core + offset
            if node_id % 2:
                if rng.random() < edge_prob:
                    edges.append((a, "author", node_id, "venue", "attended"))
            else:
                for relation in ("published", "reviewed"):
                    if rng.random() < edge_prob:
                        edges.append((a, "author", node_id, "article", relation))
    return TypedHypergraph.build(spec, edges)


@pytest.fixture()
def author_spec() -> TypeSpec:
    return TypeSpec.from_triples(AUTHOR_SPEC)


@pytest.fixture()
def author_graph(author_spec) -> TypedHypergraph:
    """Worked example: authors {1, 2} and articles {3, 4}, fully connected."""
    return TypedHypergraph.build(author_spec, AUTHOR_EDGES)


@pytest.fixture()
def strict_config() -> SearchConfig:
    return SearchConfig(
        beam_size=10,
        alpha=0.5,
        global_thresh=1.0,
        local_thresh=1.0,
        epochs=20,
        max_repeated_prior_scores=3,
        min_degree=1,
        num_workers=2,
    )


@pytest.fixture()
def random_graph() -> TypedHypergraph:
    return generate_typed_graph(num_core=12, num_noncore=20, seed=7)
