"""Total complex arithmetic for Poincaré disk coordinates.

A complex number is a length-2 float array ``[re, im]``. Every operation here
is total: non-finite inputs are replaced by zero, non-finite results are
filtered back to zero and near-zero denominators yield the origin. The disk
kernel is evaluated inside a per-frame render loop, so no function in this
module raises or returns NaN/inf.

All functions are branch-free (``jnp.where``) and therefore compatible with
``jax.jit`` and ``jax.vmap``:

    >>> import jax
    >>> import jax.numpy as jnp
    >>> from hyperlayout.utils import complex_ops as cx
    >>>
    >>> a = cx.make(0.3, 0.4)
    >>> cx.absolute(a)  # 0.5
    >>>
    >>> zs = jnp.array([[0.1, 0.2], [jnp.nan, 0.5]])
    >>> jax.vmap(cx.clamp_disk)(zs)  # second row becomes the origin
"""

import jax.numpy as jnp
from jaxtyping import Array, Float

# Numerical guards
EPSILON = 1e-10
DISK_BOUNDARY_EPS = 1e-5


def _float_dtype(*args) -> jnp.dtype:
    return jnp.result_type(*args, 0.0)


def finite(x: Float[Array, "..."]) -> Float[Array, "..."]:
    """Replace NaN/inf entries with zero."""
    return jnp.where(jnp.isfinite(x), x, 0.0)


def make(re: Float[Array, ""] | float, im: Float[Array, ""] | float = 0.0) -> Float[Array, "2"]:
    """Build a complex number, substituting 0 for non-finite components."""
    dtype = _float_dtype(re, im)
    z = jnp.stack([jnp.asarray(re, dtype=dtype), jnp.asarray(im, dtype=dtype)])
    return finite(z)


def origin(dtype=None) -> Float[Array, "2"]:
    """The disk origin ``0 + 0i``."""
    return jnp.zeros(2, dtype=_float_dtype() if dtype is None else dtype)


def one_like(z: Float[Array, "2"]) -> Float[Array, "2"]:
    """The complex unit ``1 + 0i`` with the dtype of ``z``."""
    return jnp.array([1.0, 0.0], dtype=_float_dtype(z))


def is_valid(z: Float[Array, "2"]) -> Array:
    """True if both components are finite."""
    return jnp.all(jnp.isfinite(z))


def add(a: Float[Array, "2"], b: Float[Array, "2"]) -> Float[Array, "2"]:
    return finite(a + b)


def sub(a: Float[Array, "2"], b: Float[Array, "2"]) -> Float[Array, "2"]:
    return finite(a - b)


def mul(a: Float[Array, "2"], b: Float[Array, "2"]) -> Float[Array, "2"]:
    re = a[0] * b[0] - a[1] * b[1]
    im = a[0] * b[1] + a[1] * b[0]
    return finite(jnp.stack([re, im]))


def conj(a: Float[Array, "2"]) -> Float[Array, "2"]:
    a = finite(a)
    return jnp.stack([a[0], -a[1]])


def _saturate(x: Float[Array, ""]) -> Float[Array, ""]:
    # Overflow to inf becomes the largest finite float
    return jnp.minimum(x, jnp.finfo(x.dtype).max)


def absolute_sq(a: Float[Array, "2"]) -> Float[Array, ""]:
    """Squared modulus ``|a|²``, saturating instead of overflowing."""
    a = finite(a)
    return _saturate(jnp.dot(a, a))


def absolute(a: Float[Array, "2"]) -> Float[Array, ""]:
    """Modulus ``|a|``."""
    a = finite(a)
    return _saturate(jnp.hypot(a[0], a[1]))


def arg(a: Float[Array, "2"]) -> Float[Array, ""]:
    """Argument in ``(-pi, pi]``; 0 for the origin or invalid input."""
    a = finite(a)
    return jnp.arctan2(a[1], a[0])


def scale(a: Float[Array, "2"], k: Float[Array, ""] | float) -> Float[Array, "2"]:
    """Real scaling ``k·a``; an invalid ``k`` yields the origin."""
    k = jnp.asarray(k, dtype=_float_dtype(a, k))
    res = finite(a * k)
    return jnp.where(jnp.isfinite(k), res, jnp.zeros_like(res))


def polar(r: Float[Array, ""] | float, theta: Float[Array, ""] | float) -> Float[Array, "2"]:
    """Complex number ``r·e^{iθ}``; invalid ``r`` or ``θ`` yields the origin."""
    dtype = _float_dtype(r, theta)
    r = jnp.asarray(r, dtype=dtype)
    theta = jnp.asarray(theta, dtype=dtype)
    valid = jnp.isfinite(r) & jnp.isfinite(theta)
    z = finite(jnp.stack([r * jnp.cos(theta), r * jnp.sin(theta)]))
    return jnp.where(valid, z, jnp.zeros_like(z))


def div(a: Float[Array, "2"], b: Float[Array, "2"]) -> Float[Array, "2"]:
    """Complex division ``a / b``.

    Returns the origin when ``|b|² < EPSILON²`` rather than a non-finite
    quotient.
    """
    d = absolute_sq(b)
    degenerate = d < EPSILON * EPSILON
    safe_d = jnp.where(degenerate, 1.0, d)
    re = (a[0] * b[0] + a[1] * b[1]) / safe_d
    im = (a[1] * b[0] - a[0] * b[1]) / safe_d
    q = finite(jnp.stack([re, im]))
    return jnp.where(degenerate, jnp.zeros_like(q), q)


def normalize(a: Float[Array, "2"]) -> Float[Array, "2"]:
    """Unit vector in the direction of ``a``; the origin if ``|a| < EPSILON``."""
    a = finite(a)
    r = absolute(a)
    small = r < EPSILON
    unit = a / jnp.where(small, 1.0, r)
    return jnp.where(small, jnp.zeros_like(a), unit)


def clamp_disk(z: Float[Array, "2"], eps: float = DISK_BOUNDARY_EPS) -> Float[Array, "2"]:
    """Pull ``z`` strictly inside the unit disk.

    Args:
        z: Complex number, shape (2,)
        eps: Distance kept from the boundary

    Returns:
        ``z`` rescaled to radius ``1 - eps`` if ``|z| >= 1 - eps``; the origin
        for invalid input or ``|z| < EPSILON``; ``z`` unchanged otherwise.
    """
    valid = is_valid(z)
    z = finite(z)
    r = absolute(z)
    max_r = 1.0 - eps
    factor = jnp.where(r >= max_r, max_r / jnp.maximum(r, EPSILON), 1.0)
    res = z * factor
    return jnp.where(valid & (r >= EPSILON), res, jnp.zeros_like(res))
