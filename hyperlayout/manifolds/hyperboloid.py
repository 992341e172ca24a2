"""Lorentz (hyperboloid) kernel - boosts, exp/log maps, centroids, level of detail.

Points live on the upper sheet of the unit hyperboloid

    -x₀² + x₁² + ... + x_n² = -1,  x₀ > 0

embedded in Minkowski space R^(n+1). The layout engine uses n = LORENTZ_DIM = 8,
so a point is a float array of shape (9,); index 0 is the timelike component.
Every function also accepts other ambient dimensions.

JIT Compilation & Batching
---------------------------
All functions work with single points and return scalars or vectors.
Use jax.vmap for batching and jax.jit for compilation:

    >>> import jax
    >>> import jax.numpy as jnp
    >>> from hyperlayout.manifolds import hyperboloid
    >>>
    >>> x = hyperboloid.normalize(jnp.zeros(9).at[1].set(0.5))
    >>> y = hyperboloid.origin()
    >>> hyperboloid.distance(x, y)
    >>>
    >>> # Distances from a camera to a batch of nodes
    >>> nodes = jnp.stack([x, y])
    >>> jax.vmap(hyperboloid.distance, in_axes=(None, 0))(y, nodes)

Invalid input (NaN/inf components) never propagates: point-valued results
fall back to the origin and distances to ``inf``.
"""

import jax
import jax.lax as lax
import jax.numpy as jnp
from jaxtyping import Array, Float

from ..utils.math_utils import acosh, cosh, sinh

# Spatial dimension of the layout hyperboloid
LORENTZ_DIM = 8

# Default numerical parameters
MIN_NORM = 1e-15
MIN_DIST = 1e-4


def _is_valid(x: Float[Array, "dim_plus_1"]) -> Array:
    return jnp.all(jnp.isfinite(x))


def origin(dim: int = LORENTZ_DIM, dtype=None) -> Float[Array, "dim_plus_1"]:
    """Hyperboloid origin (1, 0, ..., 0) in R^(dim+1)."""
    dtype = jnp.result_type(float) if dtype is None else dtype
    return jnp.zeros(dim + 1, dtype=dtype).at[0].set(1.0)


def minkowski_inner(x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, ""]:
    """Minkowski inner product ⟨x, y⟩_L = -x₀y₀ + Σᵢ xᵢyᵢ."""
    return -x[0] * y[0] + jnp.dot(x[1:], y[1:])


def minkowski_norm_sq(x: Float[Array, "dim_plus_1"]) -> Float[Array, ""]:
    """⟨x, x⟩_L; equals -1 for points on the hyperboloid."""
    return minkowski_inner(x, x)


def normalize(x: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
    """Project onto the upper sheet by recomputing x₀ = sqrt(1 + |x_spatial|²).

    Args:
        x: Ambient vector, shape (dim+1,)

    Returns:
        Point on the hyperboloid, shape (dim+1,). The origin for invalid input.
    """
    valid = _is_valid(x)
    x = jnp.where(jnp.isfinite(x), x, 0.0)
    x_s = x[1:]
    x0 = jnp.sqrt(1.0 + jnp.dot(x_s, x_s))
    res = jnp.concatenate([x0[None], x_s])
    base = jnp.zeros_like(res).at[0].set(1.0)
    return jnp.where(valid & jnp.isfinite(x0), res, base)


def distance_cosh(x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, ""]:
    """cosh of the hyperbolic distance, -⟨x, y⟩_L. Monotone in the distance."""
    return -minkowski_inner(x, y)


def distance(x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, ""]:
    """Hyperbolic distance d(x, y) = acosh(max(1, -⟨x, y⟩_L)).

    Args:
        x: Hyperboloid point, shape (dim+1,)
        y: Hyperboloid point, shape (dim+1,)

    Returns:
        Distance, scalar. ``inf`` if either point is invalid.
    """
    valid = _is_valid(x) & _is_valid(y)
    d = acosh(jnp.maximum(1.0, distance_cosh(x, y)))
    return jnp.where(valid & jnp.isfinite(d), d, jnp.inf)


def is_closer_than(x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"], max_dist: float) -> Array:
    """d(x, y) < max_dist, decided on cosh values without an acosh."""
    return distance_cosh(x, y) < cosh(max_dist)


def boost(center: Float[Array, "dim_plus_1"], x: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
    """Lorentz boost sending ``center`` to the origin, applied to ``x``.

    This is the hyperboloid counterpart of the disk Möbius map ``mobius(a, z)``:
    a pure translation along the geodesic through ``center``. For
    c = (c₀, c_s) it reads

        B(x)₀ = -⟨c, x⟩_L
        B(x)_s = x_s - x₀·c_s + (c_s·x_s)/(c₀ + 1)·c_s

    Args:
        center: Point that becomes the new origin, shape (dim+1,)
        x: Point to transform, shape (dim+1,)

    Returns:
        Boosted point, re-normalized onto the hyperboloid
    """
    valid = _is_valid(center) & _is_valid(x)
    center = normalize(center)
    x = normalize(x)
    c0 = center[0]
    c_s = center[1:]
    x_s = x[1:]
    res_0 = -minkowski_inner(center, x)
    res_s = x_s - x[0] * c_s + (jnp.dot(c_s, x_s) / (c0 + 1.0)) * c_s
    res = normalize(jnp.concatenate([res_0[None], res_s]))
    return jnp.where(valid, res, jnp.zeros_like(res).at[0].set(1.0))


def boost_inv(center: Float[Array, "dim_plus_1"], x: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
    """Inverse boost, sending the origin to ``center``."""
    reflected = jnp.concatenate([center[:1], -center[1:]])
    return boost(reflected, x)


def rotate(
    x: Float[Array, "dim_plus_1"], i: int, j: int, theta: Float[Array, ""] | float
) -> Float[Array, "dim_plus_1"]:
    """Rotate ``x`` by ``theta`` in the plane of spatial axes ``i`` and ``j``.

    Axes are 0-based spatial indices (ambient indices ``i + 1`` and ``j + 1``);
    they must be static under ``jax.jit``. The timelike component is untouched.
    """
    c = jnp.cos(theta)
    s = jnp.sin(theta)
    xi = x[i + 1]
    xj = x[j + 1]
    return x.at[i + 1].set(c * xi - s * xj).at[j + 1].set(s * xi + c * xj)


def tangent_proj(v: Float[Array, "dim_plus_1"], x: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
    """Project an ambient vector onto the tangent space at ``x``: v + ⟨x, v⟩_L·x."""
    return v + minkowski_inner(x, v) * x


def tangent_norm(v: Float[Array, "dim_plus_1"]) -> Float[Array, ""]:
    """Riemannian norm of a tangent vector, sqrt(max(⟨v, v⟩_L, 0))."""
    return jnp.sqrt(jnp.maximum(minkowski_norm_sq(v), MIN_NORM))


def exp(x: Float[Array, "dim_plus_1"], v: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
    """Exponential map exp_x(v) = cosh(|v|)·x + sinh(|v|)·v/|v|.

    Args:
        x: Base point, shape (dim+1,)
        v: Ambient vector, projected onto the tangent space at ``x`` first

    Returns:
        Point on the hyperboloid; ``x`` itself for |v| < MIN_DIST
    """
    x = normalize(x)
    v = jnp.where(jnp.isfinite(v), v, 0.0)
    v = tangent_proj(v, x)
    v_norm = tangent_norm(v)
    res = normalize(cosh(v_norm) * x + (sinh(v_norm) / v_norm) * v)
    return jnp.where(v_norm < MIN_DIST, x, res)


def log(x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
    """Logarithmic map log_x(y) = d/sinh(d)·(y - cosh(d)·x), the tangent vector at x towards y.

    Args:
        x: Base point, shape (dim+1,)
        y: Target point, shape (dim+1,)

    Returns:
        Tangent vector at ``x`` of Riemannian norm d(x, y); zero for d < MIN_DIST
    """
    x = normalize(x)
    y = normalize(y)
    cosh_d = jnp.maximum(1.0, distance_cosh(x, y))
    d = acosh(cosh_d)
    safe_d = jnp.maximum(d, MIN_DIST)
    v = (safe_d / sinh(safe_d)) * (y - cosh_d * x)
    return jnp.where(d < MIN_DIST, jnp.zeros_like(v), v)


def centroid(points: Float[Array, "n dim_plus_1"], iterations: int = 5) -> Float[Array, "dim_plus_1"]:
    """Approximate Fréchet mean by a fixed number of tangent-averaging steps.

    Starting from the first point, each step maps all points into the tangent
    space at the current estimate, averages them and moves along the mean.

    Args:
        points: Hyperboloid points, shape (n, dim+1)
        iterations: Number of steps (static)

    Returns:
        Centroid, shape (dim+1,). The origin for an empty set and the point
        itself for a single point.
    """
    points = jnp.asarray(points, dtype=jnp.result_type(points, 0.0))
    if points.shape[0] == 0:
        return origin(points.shape[-1] - 1, dtype=points.dtype)
    points = jax.vmap(normalize)(points)
    if points.shape[0] == 1:
        return points[0]

    def step(_, mu):
        tangents = jax.vmap(log, in_axes=(None, 0))(mu, points)
        return exp(mu, jnp.mean(tangents, axis=0))

    return lax.fori_loop(0, iterations, step, points[0])


def geodesic_lerp(
    x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"], t: Float[Array, ""] | float
) -> Float[Array, "dim_plus_1"]:
    """Point at fraction ``t`` along the geodesic from x to y.

    γ(t) = cosh(t·d)·x + sinh(t·d)/sinh(d)·(y - cosh(d)·x). ``t`` is clamped to
    [0, 1]; coincident endpoints return ``x``.
    """
    x = normalize(x)
    y = normalize(y)
    t = jnp.clip(jnp.where(jnp.isfinite(t), t, 0.0), 0.0, 1.0)
    cosh_d = jnp.maximum(1.0, distance_cosh(x, y))
    d = acosh(cosh_d)
    safe_d = jnp.maximum(d, MIN_DIST)
    res = normalize(cosh(t * d) * x + (sinh(t * d) / sinh(safe_d)) * (y - cosh_d * x))
    res = jnp.where(d < MIN_DIST, x, res)
    res = jnp.where(t <= 0.0, x, res)
    return jnp.where(t >= 1.0, y, res)


def midpoint(x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
    """Geodesic midpoint of x and y."""
    return geodesic_lerp(x, y, 0.5)


def compute_lod(
    camera: Float[Array, "dim_plus_1"], x: Float[Array, "dim_plus_1"], max_lod: int = 4, detail_radius: float = 0.5
) -> Array:
    """Level of detail from 0 (full) to ``max_lod``; each doubling of distance past ``detail_radius`` adds one."""
    d = distance(camera, x)
    lod = jnp.floor(jnp.log2(jnp.maximum(1.0, d / detail_radius)))
    return jnp.minimum(lod, max_lod).astype(jnp.int32)


def is_visible_at_lod(node_lod: Array | int, importance: Array | int) -> Array:
    """A node stays visible while its importance is at least its level of detail."""
    return jnp.asarray(importance) >= jnp.asarray(node_lod)


def is_in_manifold(x: Float[Array, "dim_plus_1"], atol: float = 1e-5) -> Array:
    """Check ⟨x, x⟩_L = -1 and x₀ > 0 within tolerance."""
    return _is_valid(x) & (jnp.abs(minkowski_norm_sq(x) + 1.0) < atol) & (x[0] > 0)


# ---------------------------------------------------------------------------
# Class-based API
# ---------------------------------------------------------------------------


class Hyperboloid:
    """Lorentz kernel with automatic dtype casting.

    Args:
        dtype: Target JAX dtype for computations (default: jnp.float32)
        dim: Spatial dimension used by ``origin`` (default: LORENTZ_DIM)

    Examples:
        >>> import jax.numpy as jnp
        >>> from hyperlayout.manifolds.hyperboloid import Hyperboloid
        >>>
        >>> manifold = Hyperboloid(dtype=jnp.float64)
        >>> o = manifold.origin()
        >>> manifold.distance(o, o)  # 0.0
    """

    def __init__(self, dtype: jnp.dtype = jnp.float32, dim: int = LORENTZ_DIM) -> None:
        self.dtype = dtype
        self.dim = dim

    def _cast(self, x: Array) -> Array:
        """Cast array to target dtype if it's a floating-point array."""
        if isinstance(x, jax.Array) and jnp.issubdtype(x.dtype, jnp.inexact):
            return x.astype(self.dtype)
        return x

    def origin(self) -> Float[Array, "dim_plus_1"]:
        """Create the hyperboloid origin."""
        return origin(self.dim, dtype=self.dtype)

    def minkowski_inner(self, x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, ""]:
        """Compute the Minkowski inner product."""
        return minkowski_inner(self._cast(x), self._cast(y))

    def normalize(self, x: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
        """Project onto the hyperboloid."""
        return normalize(self._cast(x))

    def distance(self, x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, ""]:
        """Compute the hyperbolic distance."""
        return distance(self._cast(x), self._cast(y))

    def boost(self, center: Float[Array, "dim_plus_1"], x: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
        """Boost sending ``center`` to the origin."""
        return boost(self._cast(center), self._cast(x))

    def boost_inv(
        self, center: Float[Array, "dim_plus_1"], x: Float[Array, "dim_plus_1"]
    ) -> Float[Array, "dim_plus_1"]:
        """Boost sending the origin to ``center``."""
        return boost_inv(self._cast(center), self._cast(x))

    def exp(self, x: Float[Array, "dim_plus_1"], v: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
        """Exponential map at ``x``."""
        return exp(self._cast(x), self._cast(v))

    def log(self, x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
        """Logarithmic map at ``x``."""
        return log(self._cast(x), self._cast(y))

    def centroid(self, points: Float[Array, "n dim_plus_1"], iterations: int = 5) -> Float[Array, "dim_plus_1"]:
        """Approximate Fréchet mean."""
        points = self._cast(jnp.asarray(points))
        if points.shape[0] == 0:
            return self.origin()
        return centroid(points, iterations=iterations)

    def geodesic_lerp(
        self, x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"], t: float
    ) -> Float[Array, "dim_plus_1"]:
        """Geodesic interpolation."""
        return geodesic_lerp(self._cast(x), self._cast(y), t)

    def midpoint(self, x: Float[Array, "dim_plus_1"], y: Float[Array, "dim_plus_1"]) -> Float[Array, "dim_plus_1"]:
        """Geodesic midpoint."""
        return midpoint(self._cast(x), self._cast(y))

    def compute_lod(self, camera: Float[Array, "dim_plus_1"], x: Float[Array, "dim_plus_1"], max_lod: int = 4) -> Array:
        """Level of detail of ``x`` seen from ``camera``."""
        return compute_lod(self._cast(camera), self._cast(x), max_lod=max_lod)
