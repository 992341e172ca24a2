"""Shared fixtures for benchmarks."""

import jax
import jax.numpy as jnp
import pytest

from hyperlayout.manifolds import isometry_mappings

# Enable float64 for numerical accuracy
jax.config.update("jax_enable_x64", True)


@pytest.fixture(params=[100, 1000])
def batch_size(request):
    """Parametrize over batch sizes."""
    return request.param


@pytest.fixture
def random_key():
    """Random key for reproducibility."""
    return jax.random.PRNGKey(42)


@pytest.fixture
def disk_points(batch_size, random_key):
    """Random disk points, uniform in area up to |z| = 0.95."""
    key_r, key_theta = jax.random.split(random_key)
    radii = 0.95 * jnp.sqrt(jax.random.uniform(key_r, (batch_size,)))
    thetas = jax.random.uniform(key_theta, (batch_size,), minval=-jnp.pi, maxval=jnp.pi)
    return jnp.stack([radii * jnp.cos(thetas), radii * jnp.sin(thetas)], axis=-1)


@pytest.fixture
def hyperboloid_points(disk_points):
    """Disk points lifted onto the 8-dimensional hyperboloid."""
    return jax.vmap(isometry_mappings.to_hyperboloid)(disk_points)
