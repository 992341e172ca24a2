"""Benchmarks for the disk and hyperboloid kernels with JIT compilation.

These benchmarks measure:
1. Non-JIT baseline performance
2. JIT runtime performance (subsequent calls)

Run with:
    pytest benchmarks/bench_kernels.py --benchmark-only -v
"""

import jax
import jax.numpy as jnp

from hyperlayout.manifolds import hyperboloid, poincare

# ============================================================================
# Poincaré Disk Benchmarks
# ============================================================================


def test_disk_distance_no_jit(benchmark, disk_points):
    """Benchmark disk distance without JIT (baseline)."""
    points_a, points_b = jnp.array_split(disk_points, 2)
    dist_fn = jax.vmap(poincare.distance)

    def run():
        return dist_fn(points_a, points_b).block_until_ready()

    benchmark(run)


def test_disk_distance_with_jit(benchmark, disk_points):
    """Benchmark disk distance with JIT (after warmup)."""
    points_a, points_b = jnp.array_split(disk_points, 2)
    dist_fn = jax.jit(jax.vmap(poincare.distance))
    _ = dist_fn(points_a, points_b).block_until_ready()

    def run():
        return dist_fn(points_a, points_b).block_until_ready()

    benchmark(run)


def test_mobius_camera_transform(benchmark, disk_points):
    """Benchmark re-centring every point on a camera."""
    camera = jnp.array([0.3, -0.2])
    transform = jax.jit(jax.vmap(poincare.mobius, in_axes=(None, 0)))
    _ = transform(camera, disk_points).block_until_ready()

    def run():
        return transform(camera, disk_points).block_until_ready()

    benchmark(run)


# ============================================================================
# Hyperboloid Benchmarks
# ============================================================================


def test_hyperboloid_distance_with_jit(benchmark, hyperboloid_points):
    """Benchmark hyperboloid distance with JIT."""
    points_a, points_b = jnp.array_split(hyperboloid_points, 2)
    dist_fn = jax.jit(jax.vmap(hyperboloid.distance))
    _ = dist_fn(points_a, points_b).block_until_ready()

    def run():
        return dist_fn(points_a, points_b).block_until_ready()

    benchmark(run)


def test_hyperboloid_boost_with_jit(benchmark, hyperboloid_points):
    """Benchmark boosting every point into a camera frame."""
    center = hyperboloid_points[0]
    boost_fn = jax.jit(jax.vmap(hyperboloid.boost, in_axes=(None, 0)))
    _ = boost_fn(center, hyperboloid_points).block_until_ready()

    def run():
        return boost_fn(center, hyperboloid_points).block_until_ready()

    benchmark(run)


def test_hyperboloid_centroid_with_jit(benchmark, hyperboloid_points):
    """Benchmark the iterative Karcher centroid."""
    centroid_fn = jax.jit(hyperboloid.centroid, static_argnames=["iterations"])
    _ = centroid_fn(hyperboloid_points, iterations=3).block_until_ready()

    def run():
        return centroid_fn(hyperboloid_points, iterations=3).block_until_ready()

    benchmark(run)
