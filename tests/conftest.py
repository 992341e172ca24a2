"""This file contains global fixtures that are used across all our tests."""

import jax
import jax.numpy as jnp
import pytest

from hyperlayout.manifolds import isometry_mappings

# Enable float64 support in JAX for numerical precision
jax.config.update("jax_enable_x64", True)


@pytest.fixture(scope="package", params=[10, 11, 12])
def seed(request: pytest.FixtureRequest) -> int:
    """Global seed for reproducibility."""
    return request.param


@pytest.fixture
def tolerance() -> tuple[float, float]:
    """Tolerance for float64 comparisons (atol, rtol)."""
    return (1e-6, 1e-6)


@pytest.fixture
def disk_points(seed: int) -> jax.Array:
    """Random Poincaré disk points with |z| <= 0.9."""
    key_r, key_theta = jax.random.split(jax.random.PRNGKey(seed))
    n_points = 24
    radii = 0.9 * jnp.sqrt(jax.random.uniform(key_r, (n_points,), dtype=jnp.float64))
    thetas = jax.random.uniform(key_theta, (n_points,), dtype=jnp.float64, minval=-jnp.pi, maxval=jnp.pi)
    return jnp.stack([radii * jnp.cos(thetas), radii * jnp.sin(thetas)], axis=-1)


@pytest.fixture
def hyperboloid_points(disk_points: jax.Array) -> jax.Array:
    """Disk points lifted onto the 8-dimensional hyperboloid."""
    return jax.vmap(isometry_mappings.to_hyperboloid)(disk_points)
