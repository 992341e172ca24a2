"""Tests for the Lorentz (hyperboloid) kernel."""

import math

import jax
import jax.numpy as jnp
import pytest

import hyperlayout as hl
from hyperlayout.manifolds import hyperboloid, isometry_mappings, poincare

jax.config.update("jax_enable_x64", True)


def _lift(re: float, im: float) -> jax.Array:
    return isometry_mappings.to_hyperboloid(jnp.array([re, im]))


class TestBasics:
    def test_origin(self):
        o = hyperboloid.origin()
        assert o.shape == (hyperboloid.LORENTZ_DIM + 1,)
        assert jnp.isclose(hyperboloid.minkowski_norm_sq(o), -1.0)

    def test_points_on_manifold(self, hyperboloid_points):
        assert jnp.all(jax.vmap(hyperboloid.is_in_manifold)(hyperboloid_points))

    def test_normalize_invalid_gives_origin(self):
        x = jnp.zeros(9).at[3].set(jnp.nan)
        assert jnp.array_equal(hyperboloid.normalize(x), hyperboloid.origin())

    def test_normalize_recomputes_time_component(self):
        x = jnp.array([5.0, 0.3, 0.4, 0.0])
        assert jnp.isclose(hyperboloid.normalize(x)[0], math.sqrt(1.25))


class TestDistance:
    def test_matches_disk_distance(self, disk_points, hyperboloid_points):
        disk = jax.vmap(poincare.distance, in_axes=(None, 0))(disk_points[0], disk_points)
        lorentz = jax.vmap(hyperboloid.distance, in_axes=(None, 0))(hyperboloid_points[0], hyperboloid_points)
        assert jnp.allclose(disk, lorentz, atol=1e-6)

    def test_scenario_value(self):
        assert jnp.isclose(hyperboloid.distance(_lift(0.5, 0.0), _lift(0.0, 0.5)), 1.6806, atol=1e-4)

    def test_self_distance_is_zero(self, hyperboloid_points):
        d = jax.vmap(hyperboloid.distance)(hyperboloid_points, hyperboloid_points)
        assert jnp.allclose(d, 0.0, atol=1e-6)

    def test_invalid_is_inf(self):
        bad = jnp.full(9, jnp.nan)
        assert jnp.isinf(hyperboloid.distance(bad, hyperboloid.origin()))

    def test_is_closer_than(self):
        a, b = _lift(0.5, 0.0), _lift(0.0, 0.5)
        assert bool(hyperboloid.is_closer_than(a, b, 1.7))
        assert not bool(hyperboloid.is_closer_than(a, b, 1.6))


class TestBoost:
    def test_sends_center_to_origin(self):
        c = _lift(0.3, -0.4)
        assert jnp.allclose(hyperboloid.boost(c, c), hyperboloid.origin(), atol=1e-9)
        assert jnp.allclose(hyperboloid.boost_inv(c, hyperboloid.origin()), c, atol=1e-9)

    def test_agrees_with_mobius(self, disk_points):
        # The boost and the disk Möbius map are the same isometry in two models
        a = jnp.array([0.25, 0.55])
        c = isometry_mappings.to_hyperboloid(a)
        lifted = jax.vmap(isometry_mappings.to_hyperboloid)(disk_points)
        boosted = jax.vmap(hyperboloid.boost, in_axes=(None, 0))(c, lifted)
        via_boost = jax.vmap(isometry_mappings.to_disk)(boosted)
        via_mobius = jax.vmap(poincare.mobius, in_axes=(None, 0))(a, disk_points)
        assert jnp.allclose(via_boost, via_mobius, atol=1e-6)

    def test_preserves_distance(self, hyperboloid_points):
        c = _lift(0.3, 0.2)
        moved = jax.vmap(hyperboloid.boost, in_axes=(None, 0))(c, hyperboloid_points)
        before = hl.utils.compute_pairwise_distances(hyperboloid_points, hyperboloid)
        after = hl.utils.compute_pairwise_distances(moved, hyperboloid)
        assert jnp.allclose(before, after, atol=1e-5)

    def test_rotate_preserves_distance_to_origin(self):
        x = _lift(0.4, 0.2)
        r = hyperboloid.rotate(x, 0, 1, 0.7)
        assert jnp.isclose(r[0], x[0])
        assert jnp.isclose(hyperboloid.distance(hyperboloid.origin(), r), hyperboloid.distance(hyperboloid.origin(), x))
        assert jnp.isclose(jnp.arctan2(r[2], r[1]), jnp.arctan2(x[2], x[1]) + 0.7)


class TestExpLog:
    def test_log_then_exp_is_identity(self, hyperboloid_points):
        x = hyperboloid_points[0]
        v = jax.vmap(hyperboloid.log, in_axes=(None, 0))(x, hyperboloid_points)
        back = jax.vmap(hyperboloid.exp, in_axes=(None, 0))(x, v)
        assert jnp.allclose(back, hyperboloid_points, atol=1e-6)

    def test_log_norm_is_distance(self, hyperboloid_points):
        x, y = hyperboloid_points[1], hyperboloid_points[2]
        v = hyperboloid.log(x, y)
        assert jnp.isclose(hyperboloid.tangent_norm(v), hyperboloid.distance(x, y), atol=1e-6)
        assert jnp.isclose(hyperboloid.minkowski_inner(x, v), 0.0, atol=1e-9)

    def test_exp_step_length_uses_minkowski_norm(self):
        x, y = _lift(0.5, 0.0), _lift(0.0, 0.6)
        half = 0.5 * hyperboloid.log(x, y)
        # Tangent vectors away from the origin carry a time component
        assert abs(float(half[0])) > 1e-3
        z = hyperboloid.exp(x, half)
        assert jnp.isclose(hyperboloid.distance(x, z), hyperboloid.tangent_norm(half), atol=1e-6)
        assert jnp.isclose(hyperboloid.distance(x, z), 0.5 * hyperboloid.distance(x, y), atol=1e-6)

    def test_zero_vector(self):
        x = _lift(0.2, 0.1)
        assert jnp.allclose(hyperboloid.exp(x, jnp.zeros(9)), x)
        assert jnp.allclose(hyperboloid.log(x, x), 0.0)

    def test_exp_projects_to_tangent_space(self):
        o = hyperboloid.origin()
        v = jnp.zeros(9).at[0].set(3.0).at[1].set(0.5)
        assert jnp.isclose(hyperboloid.distance(o, hyperboloid.exp(o, v)), 0.5, atol=1e-9)


class TestCentroid:
    def test_empty_and_single(self):
        assert jnp.array_equal(hyperboloid.centroid(jnp.zeros((0, 9))), hyperboloid.origin())
        x = _lift(0.3, 0.3)
        assert jnp.allclose(hyperboloid.centroid(x[None]), x)

    def test_symmetric_set_has_origin_centroid(self):
        points = jnp.stack([_lift(0.4, 0.0), _lift(-0.4, 0.0), _lift(0.0, 0.4), _lift(0.0, -0.4)])
        assert jnp.allclose(hyperboloid.centroid(points, iterations=20), hyperboloid.origin(), atol=1e-6)

    def test_two_points_centroid_is_midpoint(self):
        a, b = _lift(0.5, 0.0), _lift(0.0, 0.5)
        c = hyperboloid.centroid(jnp.stack([a, b]), iterations=10)
        assert jnp.allclose(c, hyperboloid.midpoint(a, b), atol=1e-6)

    def test_jit(self, hyperboloid_points):
        c = jax.jit(hyperboloid.centroid, static_argnames=["iterations"])(hyperboloid_points, iterations=3)
        assert bool(hyperboloid.is_in_manifold(c))


class TestInterpolation:
    @pytest.mark.parametrize("t", [0.2, 0.5, 0.9])
    def test_on_path(self, t):
        a, b = _lift(0.5, 0.0), _lift(-0.2, 0.6)
        p = hyperboloid.geodesic_lerp(a, b, t)
        total = hyperboloid.distance(a, b)
        assert jnp.isclose(hyperboloid.distance(a, p), t * total, atol=1e-6)
        assert jnp.isclose(hyperboloid.distance(p, b), (1 - t) * total, atol=1e-6)

    def test_endpoints(self):
        a, b = _lift(0.5, 0.0), _lift(-0.2, 0.6)
        assert jnp.allclose(hyperboloid.geodesic_lerp(a, b, 0.0), a)
        assert jnp.allclose(hyperboloid.geodesic_lerp(a, b, 1.0), b)

    def test_midpoint_matches_disk(self):
        m = isometry_mappings.to_disk(hyperboloid.midpoint(_lift(0.5, 0.0), _lift(0.0, 0.5)))
        assert jnp.allclose(m, poincare.midpoint(jnp.array([0.5, 0.0]), jnp.array([0.0, 0.5])), atol=1e-6)


class TestLevelOfDetail:
    @pytest.mark.parametrize("dist,expected", [(0.3, 0), (0.6, 0), (1.1, 1), (2.1, 2), (4.5, 3), (9.0, 4), (50.0, 4)])
    def test_compute_lod(self, dist, expected):
        x = jnp.zeros(9).at[0].set(math.cosh(dist)).at[1].set(math.sinh(dist))
        assert int(hyperboloid.compute_lod(hyperboloid.origin(), x)) == expected

    def test_invalid_is_max_lod(self):
        assert int(hyperboloid.compute_lod(hyperboloid.origin(), jnp.full(9, jnp.nan), max_lod=3)) == 3

    def test_visibility(self):
        assert bool(hyperboloid.is_visible_at_lod(2, 3))
        assert not bool(hyperboloid.is_visible_at_lod(3, 2))


class TestHyperboloidClass:
    def test_dtype(self):
        manifold = hl.Hyperboloid(dtype=jnp.float32)
        assert manifold.origin().dtype == jnp.float32
        assert manifold.distance(_lift(0.1, 0.2), _lift(0.3, 0.0)).dtype == jnp.float32

    def test_centroid_empty(self):
        manifold = hl.Hyperboloid(dtype=jnp.float64, dim=4)
        assert jnp.array_equal(manifold.centroid(jnp.zeros((0, 5))), manifold.origin())
