"""Benchmarks for the ball tree and the layout engine.

Run with:
    pytest benchmarks/bench_spatial.py --benchmark-only -v
"""

import numpy as np
import pytest

import hyperlayout as hl
from hyperlayout.layout import from_parents
from hyperlayout.utils import helpers


def _random_tree(n_nodes: int, seed: int = 0) -> dict:
    rng = np.random.default_rng(seed)
    parents = {0: None}
    for i in range(1, n_nodes):
        parents[i] = int(rng.integers(0, i))
    return from_parents(parents)


# ============================================================================
# Ball Tree Benchmarks
# ============================================================================


def test_ball_tree_build(benchmark, hyperboloid_points):
    """Benchmark ball tree construction."""
    points = np.asarray(hyperboloid_points)
    benchmark(hl.BallTree.build, points)


@pytest.mark.parametrize("k", [1, 10])
def test_ball_tree_knn(benchmark, hyperboloid_points, k):
    """Benchmark k-nearest-neighbour queries."""
    points = np.asarray(hyperboloid_points)
    tree = hl.BallTree.build(points)
    benchmark(tree.knn, points[0], k)


def test_brute_force_knn(benchmark, hyperboloid_points):
    """Benchmark exhaustive search (baseline for the tree)."""
    points = np.asarray(hyperboloid_points)
    ids = list(range(len(points)))
    benchmark(helpers.brute_force_knn, points[0], points, ids, 10)


def test_ball_tree_range_query(benchmark, hyperboloid_points):
    """Benchmark range queries."""
    points = np.asarray(hyperboloid_points)
    tree = hl.BallTree.build(points)
    benchmark(tree.range_query, points[0], 1.0)


# ============================================================================
# Layout Benchmarks
# ============================================================================


@pytest.mark.parametrize("n_nodes", [50, 500])
def test_layout_hyperbolic(benchmark, n_nodes):
    """Benchmark BFS placement of a random tree."""
    graph = _random_tree(n_nodes)
    benchmark(hl.layout_hyperbolic, graph)


def test_relayout_around_pins(benchmark):
    """Benchmark relaxation around two pins."""
    graph = _random_tree(200)
    hl.layout_hyperbolic(graph)
    benchmark.pedantic(hl.relayout_around_pins, args=(graph, [0, 17]), kwargs={"iterations": 5}, rounds=3)
