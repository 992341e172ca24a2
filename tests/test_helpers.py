"""Tests for host-side distance helpers and exhaustive search."""

import math

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from hyperlayout.manifolds import hyperboloid, isometry_mappings, poincare
from hyperlayout.utils import helpers

jax.config.update("jax_enable_x64", True)


@pytest.fixture
def lifted() -> np.ndarray:
    disk = jnp.array([[0.0, 0.0], [0.5, 0.0], [0.0, 0.5], [-0.5, 0.0], [0.5, 0.0]])
    return np.asarray(jax.vmap(isometry_mappings.to_hyperboloid)(disk))


class TestLorentzDistances:
    def test_matches_jax_kernel(self, hyperboloid_points):
        points = np.asarray(hyperboloid_points)
        expected = jax.vmap(hyperboloid.distance, in_axes=(None, 0))(hyperboloid_points[3], hyperboloid_points)
        assert np.allclose(helpers.lorentz_distances(points[3], points), np.asarray(expected), atol=1e-6)

    def test_known_value(self, lifted):
        dist = helpers.lorentz_distances(lifted[0], lifted)
        assert dist.dtype == np.float64
        assert math.isclose(dist[1], 2 * math.atanh(0.5), rel_tol=1e-9)
        assert dist[0] == 0.0

    @pytest.mark.parametrize("r", [1e-12, 1e-9, 1e-6, 0.1, 0.4, 0.7, 0.99999])
    def test_accurate_from_tiny_to_far(self, r):
        disk = jnp.array([[0.0, 0.0], [r, 0.0]])
        points = np.asarray(jax.vmap(isometry_mappings.to_hyperboloid)(disk))
        dist = helpers.lorentz_distances(points[0], points[1:])[0]
        assert math.isclose(dist, 2 * math.atanh(r), rel_tol=1e-8)

    def test_row_independent_of_batch(self, hyperboloid_points):
        points = np.asarray(hyperboloid_points)
        batch = helpers.lorentz_distances(points[0], points)
        single = [helpers.lorentz_distances(points[0], points[i : i + 1])[0] for i in range(len(points))]
        assert batch.tolist() == single

    def test_non_finite_rows_are_inf(self, lifted):
        points = lifted.copy()
        points[2, 4] = np.nan
        dist = helpers.lorentz_distances(lifted[0], points)
        assert np.isinf(dist[2])
        assert np.all(np.isfinite(np.delete(dist, 2)))
        assert np.all(np.isinf(helpers.lorentz_distances(np.full(9, np.nan), lifted)))


class TestBruteForce:
    def test_knn_order_and_ties(self, lifted):
        ids = ["o", "a", "b", "c", "a2"]
        result = helpers.brute_force_knn(lifted[1], lifted, ids, 3)
        # "a" and "a2" coincide; insertion order breaks the tie
        assert [i for i, _ in result] == ["a", "a2", "o"]
        assert result[0][1] == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.parametrize("k", [0, -1])
    def test_knn_non_positive_k(self, lifted, k):
        assert helpers.brute_force_knn(lifted[0], lifted, list(range(5)), k) == []

    def test_knn_skips_invalid_points(self, lifted):
        points = lifted.copy()
        points[3] = np.inf
        result = helpers.brute_force_knn(lifted[0], points, list(range(5)), 5)
        assert [i for i, _ in result] == [0, 1, 2, 4]

    def test_range_is_inclusive_and_in_insertion_order(self, lifted):
        radius = float(helpers.lorentz_distances(lifted[0], lifted[1:2])[0])
        assert helpers.brute_force_range(lifted[0], lifted, list("oabcd"), radius) == list("oabcd")
        assert helpers.brute_force_range(lifted[0], lifted, list("oabcd"), 0.5) == ["o"]
        assert helpers.brute_force_range(lifted[0], lifted, list("oabcd"), -1.0) == []


class TestPairwiseDistances:
    def test_disk_matrix(self):
        positions = jnp.array([[0.0, 0.0], [0.5, 0.0], [0.0, 0.5]])
        dist = helpers.compute_pairwise_distances(positions, poincare)
        assert dist.shape == (3, 3)
        assert jnp.allclose(dist, dist.T)
        assert jnp.allclose(jnp.diag(dist), 0.0)
        assert jnp.isclose(dist[1, 2], 1.6806, atol=1e-4)

    def test_models_agree(self, disk_points, hyperboloid_points):
        disk = helpers.compute_pairwise_distances(disk_points, poincare)
        lorentz = helpers.compute_pairwise_distances(hyperboloid_points, hyperboloid)
        assert jnp.allclose(disk, lorentz, atol=1e-5)
