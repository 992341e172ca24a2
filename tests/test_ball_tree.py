"""Tests for the hyperbolic ball tree.

Query results are compared with exhaustive search over the same points.
"""

import logging

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from hyperlayout import BallTree, IndexConfig
from hyperlayout.spatial.ball_tree import _project
from hyperlayout.manifolds import isometry_mappings
from hyperlayout.utils import helpers

jax.config.update("jax_enable_x64", True)


@pytest.fixture(params=[1, 4, 8])
def leaf_size(request: pytest.FixtureRequest) -> int:
    return request.param


@pytest.fixture
def cloud(seed: int) -> np.ndarray:
    """200 disk points lifted onto the hyperboloid."""
    rng = np.random.default_rng(seed)
    radii = 0.95 * np.sqrt(rng.uniform(size=200))
    thetas = rng.uniform(-np.pi, np.pi, size=200)
    disk = jnp.asarray(np.stack([radii * np.cos(thetas), radii * np.sin(thetas)], axis=-1))
    return np.asarray(jax.vmap(isometry_mappings.to_hyperboloid)(disk))


@pytest.fixture
def queries() -> np.ndarray:
    disk = jnp.array([[0.0, 0.0], [0.5, 0.1], [-0.7, -0.6], [0.2, 0.94]])
    return np.asarray(jax.vmap(isometry_mappings.to_hyperboloid)(disk))


class TestConstruction:
    def test_introspection(self, cloud, leaf_size):
        tree = BallTree.build(cloud, leaf_size=leaf_size)
        assert len(tree) == 200
        assert tree.node_count >= 1
        assert tree.depth >= 1
        assert tree.ids == list(range(200))

    def test_radii_cover_points(self, cloud):
        tree = BallTree.build(cloud, leaf_size=4)
        for node in range(tree.node_count):
            chunk = tree._points[tree._start[node] : tree._end[node]]
            dist = helpers.lorentz_distances(tree._centers[node], chunk)
            assert np.all(dist <= tree._radii[node] + 1e-12)

    def test_single_leaf(self, cloud):
        tree = BallTree.build(cloud[:5], ids=list("abcde"), leaf_size=8)
        assert tree.node_count == 1
        assert tree.depth == 1

    def test_empty(self):
        tree = BallTree.build(np.zeros((0, 9)))
        assert len(tree) == 0
        assert tree.depth == 0
        assert tree.knn(np.array([1.0] + [0.0] * 8), 3) == []
        assert tree.range_query(np.array([1.0] + [0.0] * 8), 1.0) == []

    def test_config_defaults(self, cloud):
        tree = BallTree.build(cloud, config=IndexConfig(leaf_size=50, centroid_iterations=1))
        assert tree.node_count <= 7

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"ids": [1, 2, 3]},
            {"leaf_size": 0},
            {"centroid_iterations": -1},
        ],
    )
    def test_invalid_arguments(self, cloud, kwargs):
        with pytest.raises(ValueError):
            BallTree.build(cloud[:10], **kwargs)

    def test_invalid_points(self):
        with pytest.raises(ValueError):
            BallTree.build(np.zeros(9))
        with pytest.raises(ValueError):
            BallTree.build(np.full((3, 9), np.nan))
        with pytest.raises(ValueError):
            BallTree.from_disk(np.zeros((3, 3)))

    def test_build_logs_stats(self, cloud, caplog):
        with caplog.at_level(logging.DEBUG, logger="hyperlayout.spatial.ball_tree"):
            BallTree.build(cloud[:20], leaf_size=4)
        assert "Built ball tree" in caplog.text


class TestKnn:
    @pytest.mark.parametrize("k", [1, 5, 17])
    def test_matches_brute_force(self, cloud, queries, leaf_size, k):
        ids = [f"n{i}" for i in range(len(cloud))]
        tree = BallTree.build(cloud, ids=ids, leaf_size=leaf_size)
        for q in queries:
            expected = helpers.brute_force_knn(q, cloud, ids, k)
            got = tree.knn_with_distances(q, k)
            assert [i for i, _ in got] == [i for i, _ in expected]
            assert set(tree.knn(q, k)) == {i for i, _ in expected}
            assert np.allclose([d for _, d in got], [d for _, d in expected])

    def test_nearest_first(self, cloud, queries):
        tree = BallTree.build(cloud)
        dists = [d for _, d in tree.knn_with_distances(queries[1], 20)]
        assert dists == sorted(dists)

    def test_k_larger_than_size(self, cloud):
        tree = BallTree.build(cloud[:7], leaf_size=2)
        assert sorted(tree.knn(cloud[0], 50)) == list(range(7))

    @pytest.mark.parametrize("k", [0, -3])
    def test_non_positive_k(self, cloud, k):
        assert BallTree.build(cloud).knn(cloud[0], k) == []

    def test_invalid_query(self, cloud):
        tree = BallTree.build(cloud)
        assert tree.knn(np.full(9, np.nan), 3) == []
        assert tree.knn(np.zeros(4), 3) == []

    def test_point_finds_itself(self, cloud):
        tree = BallTree.build(cloud, leaf_size=3)
        assert tree.knn(cloud[42], 1) == [42]


class TestRangeQuery:
    @pytest.mark.parametrize("radius", [0.0, 0.3, 1.0, 2.5])
    def test_matches_brute_force(self, cloud, queries, leaf_size, radius):
        tree = BallTree.build(cloud, leaf_size=leaf_size)
        ids = list(range(len(cloud)))
        for q in queries:
            assert tree.range_query(q, radius) == helpers.brute_force_range(q, cloud, ids, radius)

    def test_negative_radius(self, cloud):
        assert BallTree.build(cloud).range_query(cloud[0], -1.0) == []

    def test_huge_radius_returns_everything(self, cloud):
        tree = BallTree.build(cloud)
        assert tree.range_query(cloud[0], 1e6) == list(range(len(cloud)))


class TestDiskQueries:
    def test_from_disk(self):
        positions = jnp.array([[0.0, 0.0], [0.5, 0.0], [0.0, 0.5], [-0.3, -0.3]])
        tree = BallTree.from_disk(positions, ids=["a", "b", "c", "d"], leaf_size=2)
        assert tree.knn_disk(jnp.array([0.45, 0.0]), 2) == ["b", "a"]
        assert tree.range_query_disk(jnp.array([0.0, 0.0]), 0.1) == ["a"]
        assert tree.knn_disk(jnp.array([jnp.nan, 0.0]), 2) == []


class TestClusteredPoints:
    """Points packed much tighter than the rounding of ``arccosh`` near 1."""

    @pytest.fixture(params=[1e-3, 1e-7, 1e-9])
    def cluster(self, request: pytest.FixtureRequest, seed: int) -> tuple[np.ndarray, np.ndarray]:
        rng = np.random.default_rng(seed)
        base = np.asarray(isometry_mappings.to_hyperboloid(jnp.array([0.3, -0.2])))
        spatial = base[1:] + request.param * rng.normal(size=(301, 8))
        points = _project(np.concatenate([np.ones((301, 1)), spatial], axis=1))
        return points[1:], points[0]

    @pytest.mark.parametrize("leaf_size", [1, 4])
    def test_range_matches_brute_force(self, cluster, leaf_size):
        points, query = cluster
        ids = list(range(len(points)))
        tree = BallTree.build(points, leaf_size=leaf_size)
        dist = helpers.lorentz_distances(query, points)
        for radius in np.quantile(dist, [0.05, 0.5, 0.95]):
            assert tree.range_query(query, radius) == helpers.brute_force_range(query, points, ids, radius)

    @pytest.mark.parametrize("leaf_size", [1, 4])
    def test_knn_matches_brute_force(self, cluster, leaf_size):
        points, query = cluster
        ids = list(range(len(points)))
        tree = BallTree.build(points, leaf_size=leaf_size)
        for k in (1, 7, 60):
            expected = helpers.brute_force_knn(query, points, ids, k)
            assert tree.knn_with_distances(query, k) == expected

    def test_distances_resolve_the_cluster(self, cluster):
        points, query = cluster
        dist = helpers.lorentz_distances(query, points)
        assert np.all(dist > 0.0)
        assert len(np.unique(dist)) > len(dist) // 2
