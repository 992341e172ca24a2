"""Domain- and overflow-guarded transcendental functions.

The hyperbolic kernels evaluate ``atanh`` and ``acosh`` right next to their
singularities (disk boundary, coincident points), so every call goes through
one of the wrappers below instead of the raw ``jnp`` function.
"""

import jax.nn as nn
import jax.numpy as jnp
from jaxtyping import Array, Float


def smooth_clamp(
    x: Float[Array, "..."], min_value: float, max_value: float, smoothing_factor: float = 50.0
) -> Float[Array, "..."]:
    """Keep values inside ``[min_value, max_value]`` with softplus knees at both bounds.

    Values more than one machine epsilon inside the band pass through
    untouched; values beyond a bound approach it smoothly instead of hitting a
    hard corner. ``smoothing_factor`` is the softplus beta.
    """
    eps = jnp.finfo(x.dtype).eps
    upper = max_value - eps
    lower = min_value + eps
    x = jnp.where(x > upper, upper - nn.softplus(smoothing_factor * (upper - x)) / smoothing_factor, x)
    return jnp.where(x < lower, lower + nn.softplus(smoothing_factor * (x - lower)) / smoothing_factor, x)


def _overflow_limit(x: Float[Array, "..."]) -> Float[Array, ""]:
    # cosh(x) ~ exp(|x|)/2, keep |x| below log(max) with a 1% margin
    return jnp.log(jnp.finfo(x.dtype).max) * 0.99


def cosh(x: Float[Array, "..."]) -> Float[Array, "..."]:
    """Hyperbolic cosine that saturates instead of overflowing to ``inf``."""
    x = jnp.asarray(x, dtype=jnp.result_type(x, 0.0))
    limit = _overflow_limit(x)
    return jnp.cosh(smooth_clamp(x, -limit, limit))


def sinh(x: Float[Array, "..."]) -> Float[Array, "..."]:
    """Hyperbolic sine that saturates instead of overflowing to ``inf``."""
    x = jnp.asarray(x, dtype=jnp.result_type(x, 0.0))
    limit = _overflow_limit(x)
    return jnp.sinh(smooth_clamp(x, -limit, limit))


def acosh(x: Float[Array, "..."]) -> Float[Array, "..."]:
    """Inverse hyperbolic cosine with the argument clipped to ``[1, inf)``.

    Minkowski inner products of hyperboloid points drift slightly above -1
    in floating point; clipping absorbs that drift instead of returning NaN.
    """
    return jnp.arccosh(jnp.clip(x, 1.0, None))


def atanh(x: Float[Array, "..."], max_arg: float | None = None) -> Float[Array, "..."]:
    """Inverse hyperbolic tangent with the argument kept inside ``(-1, 1)``.

    Args:
        x: Input array of any shape
        max_arg: Largest admissible magnitude. Defaults to ``1 - eps`` of the dtype.

    Returns:
        atanh(x), finite for every finite input
    """
    x = jnp.asarray(x, dtype=jnp.result_type(x, 0.0))
    bound = 1.0 - jnp.finfo(x.dtype).eps if max_arg is None else max_arg
    return jnp.arctanh(jnp.clip(x, -bound, bound))
