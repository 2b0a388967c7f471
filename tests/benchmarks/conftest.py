"""Benchmark fixtures for typed graph and beam search performance tests."""

import random

import pytest

from cliquebeam.engine import TypedHypergraph, TypeSpec

BENCH_TRIPLES = [
    ("author", "published", "article"),
    ("author", "reviewed", "article"),
    ("author", "attended", "venue"),
]


def generate_typed_edges(
    num_core: int,
    num_noncore: int,
    num_edges: int,
    core_ratio: float = 0.2,
    seed: int = 42,
) -> list[tuple[int, str, int, str, str]]:
    """Generate a random typed edge stream for benchmarking.

    Args:
        num_core: Number of "author" nodes, ids 0..num_core-1
        num_noncore: Number of non-core nodes; a quarter of them are venues
        num_edges: Number of edges to draw (duplicates are kept in the stream)
        core_ratio: Fraction of edges that link two authors
        seed: Random seed for reproducibility

    Returns:
        List of (node_a, type_a, node_b, type_b, relation) tuples
    """
    rng = random.Random(seed)
    venues = num_noncore // 4
    edges = []
    for _ in range(num_edges):
        author = rng.randrange(num_core)
        if rng.random() < core_ratio:
            other = rng.randrange(num_core)
            if other != author:
                edges.append((author, "author", other, "author", "core"))
            continue
        offset = rng.randrange(num_noncore)
        node_id = num_core + offset
        if offset < venues:
            edges.append((author, "author", node_id, "venue", "attended"))
        else:
            relation = rng.choice(("published", "reviewed"))
            edges.append((author, "author", node_id, "article", relation))
    return edges


@pytest.fixture
def bench_spec() -> TypeSpec:
    return TypeSpec.from_triples(BENCH_TRIPLES)


@pytest.fixture
def make_edges():
    """The edge generator, for tests that vary the graph size."""
    return generate_typed_edges


@pytest.fixture
def graph_1k(bench_spec) -> TypedHypergraph:
    """200 authors, 800 non-core nodes, 5K edges - small benchmark graph."""
    return TypedHypergraph.build(
        bench_spec, generate_typed_edges(num_core=200, num_noncore=800, num_edges=5000)
    )


@pytest.fixture
def graph_10k(bench_spec) -> TypedHypergraph:
    """2K authors, 8K non-core nodes, 50K edges - medium benchmark graph."""
    return TypedHypergraph.build(
        bench_spec, generate_typed_edges(num_core=2000, num_noncore=8000, num_edges=50000)
    )


@pytest.fixture
def dense_graph(bench_spec) -> TypedHypergraph:
    """100 authors sharing 200 non-core nodes, 10K edges - many overlapping cliques."""
    return TypedHypergraph.build(
        bench_spec,
        generate_typed_edges(num_core=100, num_noncore=200, num_edges=10000, core_ratio=0.4),
    )
