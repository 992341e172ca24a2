"""Poincaré disk kernel - Möbius isometries, distances, geodesics, circles.

Points are complex numbers stored as float arrays ``[re, im]`` of shape (2,)
with ``re² + im² < 1``. Every function is total: invalid input (NaN, inf,
points outside the disk) yields the origin for point-valued results and
``inf`` for distances, and results that would reach the boundary are
clamped to radius ``1 - DISK_BOUNDARY_EPS``.

JIT Compilation & Batching
---------------------------
All point-valued and scalar-valued functions operate on single points and
are written without Python branching, so they compose with ``jax.jit`` and
``jax.vmap``:

    >>> import jax
    >>> import jax.numpy as jnp
    >>> from hyperlayout.manifolds import poincare
    >>>
    >>> z = jnp.array([0.5, 0.0])
    >>> w = jnp.array([0.0, 0.5])
    >>> poincare.distance(z, w)  # ~1.6806
    >>>
    >>> # Re-centre a whole layout on a camera position
    >>> camera = jnp.array([0.2, -0.1])
    >>> positions = jnp.array([[0.1, 0.2], [0.3, -0.4], [0.0, 0.0]])
    >>> view = jax.vmap(poincare.mobius, in_axes=(None, 0))(camera, positions)
    >>>
    >>> dist_jit = jax.jit(poincare.distance)

``geodesic_arc`` is the exception: it returns a tagged ``GeodesicLine`` /
``GeodesicArc`` value chosen with host-side control flow and is meant to be
called eagerly by drawing code.
"""

import math
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from ..utils import complex_ops as cx
from ..utils.complex_ops import DISK_BOUNDARY_EPS, EPSILON
from ..utils.math_utils import atanh

# Largest ratio passed to atanh in distance computations
MAX_ATANH_ARG = 0.99999

# Below this |z1 × z2| two points are treated as lying on a diameter
COLLINEAR_THRESHOLD = 1e-4


class GeodesicLine(NamedTuple):
    """Geodesic through the disk centre, drawn as a straight segment."""

    start: Float[Array, "2"]
    end: Float[Array, "2"]


class GeodesicArc(NamedTuple):
    """Geodesic drawn as an arc of a Euclidean circle orthogonal to the unit circle."""

    center: Float[Array, "2"]
    radius: float
    start: Float[Array, "2"]
    end: Float[Array, "2"]


Geodesic = GeodesicLine | GeodesicArc


class EuclideanCircle(NamedTuple):
    """Euclidean centre and radius of a curve drawn in disk coordinates."""

    center: Float[Array, "2"]
    radius: Float[Array, ""]


def is_in_disk(z: Float[Array, "2"]) -> Array:
    """True if ``z`` is finite and strictly inside the unit disk."""
    return cx.is_valid(z) & (cx.absolute_sq(cx.finite(z)) < 1.0)


def mobius(a: Float[Array, "2"], z: Float[Array, "2"]) -> Float[Array, "2"]:
    """Möbius isometry T_a(z) = (z - a) / (1 - ā z), which sends ``a`` to the origin.

    Args:
        a: New centre (camera position), shape (2,)
        z: Point to transform, shape (2,)

    Returns:
        T_a(z) clamped into the disk, shape (2,). The origin if either input
        is invalid.
    """
    valid = cx.is_valid(a) & cx.is_valid(z)
    a = cx.finite(a)
    z = cx.finite(z)
    num = cx.sub(z, a)
    den = cx.sub(cx.one_like(z), cx.mul(cx.conj(a), z))
    res = cx.clamp_disk(cx.div(num, den))
    res = jnp.where(cx.absolute(a) < EPSILON, cx.clamp_disk(z), res)
    return jnp.where(valid, res, jnp.zeros_like(res))


def mobius_inv(a: Float[Array, "2"], w: Float[Array, "2"]) -> Float[Array, "2"]:
    """Inverse isometry T_a⁻¹(w) = (w + a) / (1 + ā w), which sends the origin to ``a``.

    Args:
        a: Centre of the transform, shape (2,)
        w: Point in the frame centred at ``a``, shape (2,)

    Returns:
        T_a⁻¹(w) clamped into the disk, shape (2,). The origin if either input
        is invalid.
    """
    valid = cx.is_valid(a) & cx.is_valid(w)
    a = cx.finite(a)
    w = cx.finite(w)
    num = cx.add(w, a)
    den = cx.add(cx.one_like(w), cx.mul(cx.conj(a), w))
    res = cx.clamp_disk(cx.div(num, den))
    res = jnp.where(cx.absolute(a) < EPSILON, cx.clamp_disk(w), res)
    return jnp.where(valid, res, jnp.zeros_like(res))


def distance(z: Float[Array, "2"], w: Float[Array, "2"]) -> Float[Array, ""]:
    """Hyperbolic distance d(z, w) = 2·atanh(|z - w| / |1 - z̄ w|).

    Args:
        z: Disk point, shape (2,)
        w: Disk point, shape (2,)

    Returns:
        Distance, scalar. ``0`` for coincident points, ``inf`` if either
        point is invalid or outside the open disk, or if the ratio reaches 1.
        Finite distances saturate at ``2·atanh(MAX_ATANH_ARG)``.

    References:
        Anderson. "Hyperbolic Geometry." Springer, 2005. Ch. 4.
    """
    valid = is_in_disk(z) & is_in_disk(w)
    z = cx.finite(z)
    w = cx.finite(w)
    num = cx.absolute(cx.sub(z, w))
    den = cx.absolute(cx.sub(cx.one_like(z), cx.mul(cx.conj(z), w)))
    ratio = num / jnp.maximum(den, EPSILON)
    d = 2.0 * atanh(jnp.minimum(ratio, MAX_ATANH_ARG))
    d = jnp.where((den < EPSILON) | (ratio >= 1.0), jnp.inf, d)
    d = jnp.where(num < EPSILON, 0.0, d)
    return jnp.where(valid, d, jnp.inf)


def distance_0(z: Float[Array, "2"]) -> Float[Array, ""]:
    """Hyperbolic distance from the origin, 2·atanh(|z|)."""
    valid = is_in_disk(z)
    r = cx.absolute(cx.finite(z))
    d = 2.0 * atanh(jnp.minimum(r, MAX_ATANH_ARG))
    return jnp.where(valid, d, jnp.inf)


def mobius_add(x: Float[Array, "2"], y: Float[Array, "2"]) -> Float[Array, "2"]:
    """Möbius gyrovector addition.

        x ⊕ y = ((1 + 2⟨x, y⟩ + |y|²) x + (1 - |x|²) y) / (1 + 2⟨x, y⟩ + |x|²|y|²)

    In complex form this is (x + y) / (1 + x̄ y), i.e. ``mobius_inv(x, y)``.
    ``(-x) ⊕ y`` equals ``mobius(x, y)``.

    Args:
        x: Disk point, shape (2,)
        y: Disk point, shape (2,)

    Returns:
        x ⊕ y clamped into the disk. ``x`` if the denominator vanishes, the
        origin if either input is invalid.

    References:
        Ungar. "A Gyrovector Space Approach to Hyperbolic Geometry." Morgan & Claypool, 2008.
    """
    valid = cx.is_valid(x) & cx.is_valid(y)
    x = cx.clamp_disk(x)
    y = cx.clamp_disk(y)
    xy = jnp.dot(x, y)
    x2 = cx.absolute_sq(x)
    y2 = cx.absolute_sq(y)
    num = (1.0 + 2.0 * xy + y2) * x + (1.0 - x2) * y
    den = 1.0 + 2.0 * xy + x2 * y2
    degenerate = jnp.abs(den) < EPSILON
    res = cx.clamp_disk(num / jnp.where(degenerate, 1.0, den))
    res = jnp.where(degenerate, x, res)
    return jnp.where(valid, res, jnp.zeros_like(res))


def gyration(a: Float[Array, "2"], b: Float[Array, "2"], v: Float[Array, "2"]) -> Float[Array, "2"]:
    """Apply the gyration gyr[a, b] to ``v``.

    In the disk a gyration is a rotation by the unit complex factor
    (1 + a b̄) / (1 + ā b). It measures the failure of ``mobius_add`` to
    commute: a ⊕ b = gyr[a, b](b ⊕ a).

    Args:
        a: Disk point, shape (2,)
        b: Disk point, shape (2,)
        v: Vector to rotate, shape (2,)

    Returns:
        Rotated ``v``. ``v`` itself (with non-finite entries zeroed) if ``a``
        or ``b`` is invalid or the factor is undefined.
    """
    valid = cx.is_valid(a) & cx.is_valid(b)
    a = cx.clamp_disk(a)
    b = cx.clamp_disk(b)
    v = cx.finite(v)
    one = cx.one_like(v)
    den = cx.add(one, cx.mul(cx.conj(a), b))
    factor = cx.div(cx.add(one, cx.mul(a, cx.conj(b))), den)
    res = cx.mul(factor, v)
    return jnp.where(valid & (cx.absolute(den) >= EPSILON), res, v)


def einstein_midpoint(
    points: Float[Array, "n 2"], weights: Float[Array, "n"] | None = None
) -> Float[Array, "2"]:
    """Weighted Einstein midpoint of disk points.

    Points are mapped to the Klein model, averaged with weights wᵢ·γᵢ where
    γᵢ = 1/sqrt(1 - |kᵢ|²) is the Lorentz factor, and mapped back. For two
    points with equal weights this is the geodesic midpoint.

    Args:
        points: Disk points, shape (n, 2)
        weights: Non-negative weights, shape (n,). Defaults to equal weights.

    Returns:
        Midpoint clamped into the disk. Points that are invalid or outside the
        disk, and non-finite or negative weights, are ignored; the origin if
        nothing remains.
    """
    points = jnp.asarray(points)
    points = points.astype(jnp.result_type(points, 0.0)).reshape(-1, 2)
    p = jnp.where(jnp.all(jnp.isfinite(points), axis=-1, keepdims=True), points, 0.0)
    p2 = jnp.sum(p * p, axis=-1)
    inside = jnp.all(jnp.isfinite(points), axis=-1) & (p2 < 1.0)
    p = jnp.where(inside[:, None], p, 0.0)
    p2 = jnp.where(inside, p2, 0.0)
    if weights is None:
        weights = jnp.ones_like(p2)
    weights = jnp.asarray(weights, dtype=p2.dtype)
    weights = jnp.where(inside & jnp.isfinite(weights), jnp.maximum(weights, 0.0), 0.0)

    # Klein coordinates kᵢ = 2pᵢ/(1 + |pᵢ|²) with γᵢ = (1 + |pᵢ|²)/(1 - |pᵢ|²)
    klein = 2.0 * p / (1.0 + p2)[:, None]
    gamma = (1.0 + p2) / jnp.maximum(1.0 - p2, EPSILON)
    coef = weights * gamma
    total = jnp.sum(coef)
    k = jnp.sum(coef[:, None] * klein, axis=0) / jnp.maximum(total, EPSILON)
    res = k / (1.0 + jnp.sqrt(jnp.maximum(1.0 - jnp.dot(k, k), 0.0)))
    return cx.clamp_disk(jnp.where(total > EPSILON, res, jnp.zeros_like(res)))


def geodesic_lerp(
    z1: Float[Array, "2"], z2: Float[Array, "2"], t: Float[Array, ""] | float
) -> Float[Array, "2"]:
    """Point at fraction ``t`` of the way from ``z1`` to ``z2`` along their geodesic.

    ``z1`` is sent to the origin, where geodesics through it are diameters,
    and the radius is interpolated as tanh(t·atanh(r)) so that the hyperbolic
    distance from ``z1`` grows linearly in ``t``.

    Args:
        z1: Start point, shape (2,)
        z2: End point, shape (2,)
        t: Interpolation parameter, clamped to [0, 1]

    Returns:
        Interpolated point, shape (2,). ``z1`` for ``t <= 0`` or coincident
        endpoints, ``z2`` for ``t >= 1``; if one endpoint is invalid the
        other one is returned.
    """
    valid_1 = cx.is_valid(z1)
    valid_2 = cx.is_valid(z2)
    start = cx.clamp_disk(z1)
    end = cx.clamp_disk(z2)
    t = jnp.asarray(t, dtype=jnp.result_type(start, t))
    t = jnp.clip(jnp.where(jnp.isfinite(t), t, 0.0), 0.0, 1.0)

    w = mobius(start, end)
    r = cx.absolute(w)
    r_interp = jnp.tanh(t * atanh(jnp.minimum(r, MAX_ATANH_ARG)))
    res = cx.clamp_disk(mobius_inv(start, cx.polar(r_interp, cx.arg(w))))

    res = jnp.where(r < EPSILON, start, res)
    res = jnp.where(t <= 0.0, start, res)
    res = jnp.where(t >= 1.0, end, res)
    res = jnp.where(valid_2, res, start)
    return jnp.where(valid_1, res, end)


def midpoint(z1: Float[Array, "2"], z2: Float[Array, "2"]) -> Float[Array, "2"]:
    """Hyperbolic midpoint of the geodesic segment [z1, z2]."""
    return geodesic_lerp(z1, z2, 0.5)


def sample_geodesic(z1: Float[Array, "2"], z2: Float[Array, "2"], num_points: int = 32) -> Float[Array, "n 2"]:
    """Sample ``num_points + 1`` evenly spaced (in hyperbolic length) points from z1 to z2."""
    ts = jnp.linspace(0.0, 1.0, num_points + 1)
    return jax.vmap(geodesic_lerp, in_axes=(None, None, 0))(z1, z2, ts)


def geodesic_arc(z1: Float[Array, "2"], z2: Float[Array, "2"]) -> Geodesic | None:
    """Euclidean description of the geodesic through two disk points.

    Points whose cross product is below ``COLLINEAR_THRESHOLD`` lie
    (numerically) on a diameter and give a ``GeodesicLine``. Otherwise the
    centre ``c`` of the orthogonal circle solves ``c·z = (1 + |z|²) / 2`` for
    both points, which makes ``|c|² - radius² = 1``.

    Args:
        z1: Disk point, shape (2,)
        z2: Disk point, shape (2,)

    Returns:
        ``GeodesicLine`` or ``GeodesicArc``; ``None`` for invalid or
        coincident points. Ill-conditioned solves, or a centre that falls
        inside the disk, fall back to ``GeodesicLine``.
    """
    if not (bool(cx.is_valid(z1)) and bool(cx.is_valid(z2))):
        return None
    start = cx.clamp_disk(z1)
    end = cx.clamp_disk(z2)
    if float(cx.absolute(cx.sub(start, end))) < EPSILON:
        return None

    x1, y1 = float(start[0]), float(start[1])
    x2, y2 = float(end[0]), float(end[1])
    line = GeodesicLine(start=start, end=end)

    cross = x1 * y2 - y1 * x2
    if abs(cross) < COLLINEAR_THRESHOLD:
        return line

    det = 2.0 * cross
    if abs(det) < EPSILON:
        return line

    r1 = x1 * x1 + y1 * y1
    r2 = x2 * x2 + y2 * y2
    center_x = ((1.0 + r1) * y2 - (1.0 + r2) * y1) / det
    center_y = ((1.0 + r2) * x1 - (1.0 + r1) * x2) / det
    if not (math.isfinite(center_x) and math.isfinite(center_y)):
        return line
    if center_x * center_x + center_y * center_y <= 1.0:
        # Orthogonal circles are centred outside the disk; anything else is precision loss
        return line

    radius = math.hypot(x1 - center_x, y1 - center_y)
    return GeodesicArc(center=cx.make(center_x, center_y), radius=radius, start=start, end=end)


def hyp_circle(center: Float[Array, "2"], radius: Float[Array, ""] | float) -> EuclideanCircle:
    """Euclidean centre and radius of the hyperbolic circle {z : d(z, center) = radius}.

    A circle of hyperbolic radius ρ about the origin has Euclidean radius
    s = tanh(ρ/2). Transporting it to ``center`` with ``mobius_inv`` gives
    another Euclidean circle with

        c_e = c·(1 - s²) / (1 - s²|c|²)
        r_e = s·(1 - |c|²) / (1 - s²|c|²)

    Args:
        center: Hyperbolic centre, shape (2,)
        radius: Hyperbolic radius (negative or invalid values are treated as 0)

    Returns:
        ``EuclideanCircle`` in disk coordinates
    """
    center = cx.clamp_disk(center)
    rho = jnp.asarray(radius, dtype=jnp.result_type(center, radius))
    rho = jnp.maximum(jnp.where(jnp.isfinite(rho), rho, 0.0), 0.0)
    s = jnp.tanh(rho / 2.0)
    c2 = cx.absolute_sq(center)
    denom = jnp.maximum(1.0 - s * s * c2, EPSILON)
    e_center = center * ((1.0 - s * s) / denom)
    e_radius = s * (1.0 - c2) / denom
    return EuclideanCircle(center=e_center, radius=e_radius)


def hyp_circle_points(
    center: Float[Array, "2"], radius: Float[Array, ""] | float, num_points: int = 64
) -> Float[Array, "num_points 2"]:
    """Sample the hyperbolic circle of given centre and radius as a closed polygon."""
    center = cx.clamp_disk(center)
    rho = jnp.asarray(radius, dtype=jnp.result_type(center, radius))
    s = jnp.tanh(jnp.maximum(jnp.where(jnp.isfinite(rho), rho, 0.0), 0.0) / 2.0)
    thetas = jnp.linspace(0.0, 2.0 * jnp.pi, num_points, endpoint=False)
    local = jax.vmap(cx.polar, in_axes=(None, 0))(s, thetas)
    return jax.vmap(mobius_inv, in_axes=(None, 0))(center, local)


def horocycle(ideal_point: Float[Array, "2"], radius: Float[Array, ""] | float) -> EuclideanCircle:
    """Horocycle of Euclidean radius ``radius`` tangent to the boundary at ``ideal_point``.

    Args:
        ideal_point: Direction of the ideal point; only its direction is used.
            A zero or invalid direction defaults to (1, 0).
        radius: Euclidean radius, clamped into (0, 1)

    Returns:
        ``EuclideanCircle`` centred at (1 - radius)·ξ
    """
    xi = cx.normalize(ideal_point)
    xi = jnp.where(cx.absolute(xi) < 0.5, jnp.array([1.0, 0.0], dtype=xi.dtype), xi)
    r = jnp.asarray(radius, dtype=jnp.result_type(xi, radius))
    r = jnp.clip(jnp.where(jnp.isfinite(r), r, 0.5), EPSILON, 1.0 - DISK_BOUNDARY_EPS)
    return EuclideanCircle(center=xi * (1.0 - r), radius=r)


def horocycle_points(
    ideal_point: Float[Array, "2"], radius: Float[Array, ""] | float, num_points: int = 64
) -> Float[Array, "num_points 2"]:
    """Sample a horocycle, starting opposite the ideal point; samples are clamped into the disk."""
    circle = horocycle(ideal_point, radius)
    base = cx.arg(circle.center) + jnp.pi
    thetas = base + jnp.linspace(0.0, 2.0 * jnp.pi, num_points, endpoint=False)
    ring = circle.center + circle.radius * jnp.stack([jnp.cos(thetas), jnp.sin(thetas)], axis=-1)
    return jax.vmap(cx.clamp_disk)(ring)


def parallel_transport(x: Float[Array, "2"], y: Float[Array, "2"], v: Float[Array, "2"]) -> Float[Array, "2"]:
    """Parallel transport of the tangent vector ``v`` from ``x`` to ``y``.

        P_{x→y}(v) = (λ_x / λ_y) · gyr[y, -x] v,    λ_z = 2 / (1 - |z|²)

    The Riemannian length λ·|v| is preserved.

    Args:
        x: Base point of ``v``, shape (2,)
        y: Target point, shape (2,)
        v: Tangent vector at ``x``, shape (2,)

    Returns:
        Tangent vector at ``y``; zero if ``x`` or ``y`` is invalid.

    References:
        Ganea et al. "Hyperbolic neural networks." NeurIPS 2018.
    """
    valid = cx.is_valid(x) & cx.is_valid(y)
    x = cx.clamp_disk(x)
    y = cx.clamp_disk(y)
    scale = (1.0 - cx.absolute_sq(y)) / (1.0 - cx.absolute_sq(x))
    res = cx.finite(scale * gyration(y, -x, v))
    return jnp.where(valid, res, jnp.zeros_like(res))


def busemann(ideal_point: Float[Array, "2"], z: Float[Array, "2"]) -> Float[Array, ""]:
    """Busemann function of the ideal point ξ, B_ξ(z) = log(|ξ - z|² / (1 - |z|²)).

    B_ξ is 0 at the origin, constant on every horocycle at ξ and decreases at
    unit rate along geodesics heading to ξ.

    Args:
        ideal_point: Direction of ξ; only its direction is used. A zero or
            invalid direction defaults to (1, 0).
        z: Disk point, shape (2,)

    Returns:
        B_ξ(z), scalar; ``inf`` if ``z`` is invalid or outside the open disk.
    """
    xi = cx.normalize(ideal_point)
    xi = jnp.where(cx.absolute(xi) < 0.5, jnp.array([1.0, 0.0], dtype=xi.dtype), xi)
    valid = is_in_disk(z)
    z = jnp.where(valid, cx.finite(z), jnp.zeros_like(xi))
    gap = cx.absolute_sq(cx.sub(xi, z))
    b = jnp.log(jnp.maximum(gap, EPSILON) / jnp.maximum(1.0 - cx.absolute_sq(z), EPSILON))
    return jnp.where(valid, b, jnp.inf)


# ---------------------------------------------------------------------------
# Class-based API
# ---------------------------------------------------------------------------


class PoincareDisk:
    """Poincaré disk kernel with automatic dtype casting.

    Args:
        dtype: Target JAX dtype for computations (default: jnp.float32)

    Examples:
        >>> import jax.numpy as jnp
        >>> from hyperlayout.manifolds.poincare import PoincareDisk
        >>>
        >>> disk = PoincareDisk(dtype=jnp.float64)
        >>> z = jnp.array([0.5, 0.0], dtype=jnp.float32)
        >>> disk.distance(z, jnp.array([0.0, 0.5])).dtype  # float64
    """

    MAX_ATANH_ARG = MAX_ATANH_ARG

    def __init__(self, dtype: jnp.dtype = jnp.float32) -> None:
        self.dtype = dtype

    def _cast(self, x: Array) -> Array:
        """Cast array to target dtype if it's a floating-point array."""
        if isinstance(x, jax.Array) and jnp.issubdtype(x.dtype, jnp.inexact):
            return x.astype(self.dtype)
        return x

    def mobius(self, a: Float[Array, "2"], z: Float[Array, "2"]) -> Float[Array, "2"]:
        """Möbius isometry sending ``a`` to the origin."""
        return mobius(self._cast(a), self._cast(z))

    def mobius_inv(self, a: Float[Array, "2"], w: Float[Array, "2"]) -> Float[Array, "2"]:
        """Inverse Möbius isometry sending the origin to ``a``."""
        return mobius_inv(self._cast(a), self._cast(w))

    def distance(self, z: Float[Array, "2"], w: Float[Array, "2"]) -> Float[Array, ""]:
        """Hyperbolic distance between two disk points."""
        return distance(self._cast(z), self._cast(w))

    def distance_0(self, z: Float[Array, "2"]) -> Float[Array, ""]:
        """Hyperbolic distance from the origin."""
        return distance_0(self._cast(z))

    def mobius_add(self, x: Float[Array, "2"], y: Float[Array, "2"]) -> Float[Array, "2"]:
        """Möbius gyrovector addition."""
        return mobius_add(self._cast(x), self._cast(y))

    def gyration(self, a: Float[Array, "2"], b: Float[Array, "2"], v: Float[Array, "2"]) -> Float[Array, "2"]:
        return gyration(self._cast(a), self._cast(b), self._cast(v))

    def einstein_midpoint(self, points: Float[Array, "n 2"], weights: Float[Array, "n"] | None = None):
        """Weighted Einstein midpoint."""
        weights = None if weights is None else self._cast(jnp.asarray(weights))
        return einstein_midpoint(self._cast(jnp.asarray(points)), weights)

    def parallel_transport(
        self, x: Float[Array, "2"], y: Float[Array, "2"], v: Float[Array, "2"]
    ) -> Float[Array, "2"]:
        """Transport a tangent vector from x to y."""
        return parallel_transport(self._cast(x), self._cast(y), self._cast(v))

    def busemann(self, ideal_point: Float[Array, "2"], z: Float[Array, "2"]) -> Float[Array, ""]:
        return busemann(self._cast(ideal_point), self._cast(z))

    def geodesic_lerp(self, z1: Float[Array, "2"], z2: Float[Array, "2"], t: float) -> Float[Array, "2"]:
        """Geodesic interpolation from z1 to z2."""
        return geodesic_lerp(self._cast(z1), self._cast(z2), t)

    def midpoint(self, z1: Float[Array, "2"], z2: Float[Array, "2"]) -> Float[Array, "2"]:
        """Hyperbolic midpoint."""
        return midpoint(self._cast(z1), self._cast(z2))

    def geodesic_arc(self, z1: Float[Array, "2"], z2: Float[Array, "2"]) -> Geodesic | None:
        """Line/arc description of the geodesic through two points."""
        return geodesic_arc(self._cast(z1), self._cast(z2))

    def hyp_circle(self, center: Float[Array, "2"], radius: float) -> EuclideanCircle:
        """Euclidean parameters of a hyperbolic circle."""
        return hyp_circle(self._cast(center), radius)

    def horocycle(self, ideal_point: Float[Array, "2"], radius: float) -> EuclideanCircle:
        """Euclidean parameters of a horocycle."""
        return horocycle(self._cast(ideal_point), radius)

    def clamp(self, z: Float[Array, "2"]) -> Float[Array, "2"]:
        """Clamp a point strictly inside the disk."""
        return cx.clamp_disk(self._cast(z))

    def is_in_disk(self, z: Float[Array, "2"]) -> Array:
        """Check that a point is finite and inside the open disk."""
        return is_in_disk(self._cast(z))
