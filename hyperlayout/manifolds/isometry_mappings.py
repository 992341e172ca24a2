"""Isometry mappings between hyperbolic models.

Conversions between the Poincaré ball, the hyperboloid (Lorentz) model and
the Klein disk, all at unit curvature. All functions operate on single points
and use JAX's vmap for batch operations.

Supported Models:
    - Hyperboloid model (Lorentz model): Points in R^(d+1) satisfying ⟨x,x⟩_L = -1
    - Poincaré ball model: Points in R^d with ||y||² < 1
    - Klein disk model: Points in R^d with ||k||² < 1, geodesics are chords

The Poincaré/hyperboloid pair is the stereographic projection through the
point [-1, 0, ..., 0].

JIT Compilation & Batching
---------------------------
    >>> import jax
    >>> import jax.numpy as jnp
    >>> from hyperlayout.manifolds import isometry_mappings
    >>>
    >>> positions = jnp.array([[0.1, 0.2], [0.5, 0.0]])
    >>> lifted = jax.vmap(isometry_mappings.to_hyperboloid)(positions)  # (2, 9)
    >>> back = jax.vmap(isometry_mappings.to_disk)(lifted)

References:
    Wikipedia: Hyperboloid model
    https://en.wikipedia.org/wiki/Hyperboloid_model#Relation_to_other_models
"""

import jax.numpy as jnp
from jaxtyping import Array, Float

from .hyperboloid import LORENTZ_DIM

# Default numerical parameter for safe division
MIN_DENOM = 1e-15

# Inputs with |y|² at or above this are pulled back to norm BOUNDARY_RESCALE
BOUNDARY_NORM_SQ = 0.9999
BOUNDARY_RESCALE = 0.999


def poincare_to_hyperboloid(y: Float[Array, "dim"]) -> Float[Array, "dim_plus_1"]:
    """Lift a Poincaré ball point onto the hyperboloid.

    Formula:
        x = ((1 + ||y||²) / (1 - ||y||²), 2y / (1 - ||y||²))

    Args:
        y: Point in the Poincaré ball, shape (dim,)

    Returns:
        Point on the hyperboloid, shape (dim+1,). Points at or beyond
        ||y||² = BOUNDARY_NORM_SQ are rescaled to norm BOUNDARY_RESCALE first;
        invalid input maps to the hyperboloid origin.
    """
    valid = jnp.all(jnp.isfinite(y))
    y = jnp.where(jnp.isfinite(y), y, 0.0)
    y_sqnorm = jnp.dot(y, y)

    scale = BOUNDARY_RESCALE / jnp.sqrt(jnp.maximum(y_sqnorm, MIN_DENOM))
    y = jnp.where(y_sqnorm >= BOUNDARY_NORM_SQ, y * scale, y)
    y_sqnorm = jnp.dot(y, y)

    denom = jnp.maximum(1.0 - y_sqnorm, MIN_DENOM)
    t = (1.0 + y_sqnorm) / denom
    x = jnp.concatenate([t[None], 2.0 * y / denom])
    return jnp.where(valid, x, jnp.zeros_like(x).at[0].set(1.0))


def hyperboloid_to_poincare(x: Float[Array, "dim_plus_1"]) -> Float[Array, "dim"]:
    """Project a hyperboloid point into the Poincaré ball: y = x_spatial / (1 + x₀).

    Args:
        x: Point on the hyperboloid, shape (dim+1,)

    Returns:
        Point in the Poincaré ball, shape (dim,); the origin for invalid input
    """
    valid = jnp.all(jnp.isfinite(x))
    x = jnp.where(jnp.isfinite(x), x, 0.0)
    y = x[1:] / jnp.maximum(1.0 + x[0], MIN_DENOM)
    return jnp.where(valid, y, jnp.zeros_like(y))


def to_hyperboloid(z: Float[Array, "2"], dim: int = LORENTZ_DIM) -> Float[Array, "dim_plus_1"]:
    """Lift a disk point into the ``dim``-dimensional hyperboloid, padding unused axes with zeros."""
    ball = jnp.zeros(dim, dtype=jnp.result_type(z, 0.0)).at[:2].set(z)
    return poincare_to_hyperboloid(ball)


def to_disk(x: Float[Array, "dim_plus_1"]) -> Float[Array, "2"]:
    """Project a hyperboloid point to the disk, keeping the first two spatial axes."""
    return hyperboloid_to_poincare(x)[:2]


def poincare_to_klein(p: Float[Array, "dim"]) -> Float[Array, "dim"]:
    """Poincaré to Klein: k = 2p / (1 + ||p||²)."""
    return 2.0 * p / (1.0 + jnp.dot(p, p))


def klein_to_poincare(k: Float[Array, "dim"]) -> Float[Array, "dim"]:
    """Klein to Poincaré: p = k / (1 + sqrt(1 - ||k||²))."""
    return k / (1.0 + jnp.sqrt(jnp.maximum(1.0 - jnp.dot(k, k), 0.0)))
