"""Helper utilities for hyperbolic distance computations.

Batched distances on the host (numpy) for the spatial index, exhaustive
nearest-neighbour / range search used as the reference for the ball tree,
and dense pairwise distance matrices via nested vmap.
"""

import jax
import numpy as np
from jaxtyping import Array, Float

# cosh of the distance below which the difference form is used
NEAR_COSH = 2.0


def lorentz_distances(query: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Hyperbolic distances from one hyperboloid point to many, computed in numpy.

    Args:
        query: Hyperboloid point, shape (dim+1,)
        points: Hyperboloid points, shape (n, dim+1)

    Returns:
        Distances, shape (n,), float64. Rows with non-finite entries (or a
        non-finite query) get ``inf``.

    Notes:
        The ball tree and the brute-force search below both go through this
        function, so their results agree exactly rather than up to rounding.
        Close pairs use the Minkowski norm of the difference,
        ``<x-y, x-y> = 4·sinh²(d/2)``, since ``arccosh(-<x, y>)`` loses half
        the digits near 1. Distant pairs use ``arccosh``, where the difference
        form would cancel. Columns are summed one at a time, so a row's
        distance does not depend on which other rows are passed alongside it.
    """
    query = np.asarray(query, dtype=np.float64)
    points = np.asarray(points, dtype=np.float64).reshape(-1, query.shape[-1])
    with np.errstate(invalid="ignore", over="ignore"):
        diff = points - query
        spatial_dot = np.zeros(len(points))
        chord_sq = np.zeros(len(points))
        for q, column, delta in zip(query[1:], points[:, 1:].T, diff[:, 1:].T):
            spatial_dot += column * q
            chord_sq += delta * delta
        neg_inner = query[0] * points[:, 0] - spatial_dot
        chord_sq -= diff[:, 0] * diff[:, 0]
        near = 2.0 * np.arcsinh(np.sqrt(np.maximum(chord_sq, 0.0)) / 2.0)
        dist = np.where(neg_inner < NEAR_COSH, near, np.arccosh(np.maximum(neg_inner, 1.0)))
    valid = np.all(np.isfinite(points), axis=1) & bool(np.all(np.isfinite(query)))
    return np.where(valid & np.isfinite(dist), dist, np.inf)


def brute_force_knn(query: np.ndarray, points: np.ndarray, ids: list, k: int) -> list[tuple[object, float]]:
    """Exhaustive k-nearest-neighbour search.

    Args:
        query: Hyperboloid point, shape (dim+1,)
        points: Hyperboloid points, shape (n, dim+1)
        ids: Identifier for each row of ``points``
        k: Number of neighbours; ``k <= 0`` gives an empty result

    Returns:
        Up to ``k`` ``(id, distance)`` pairs, nearest first. Ties are broken by
        insertion order.
    """
    if k <= 0 or len(ids) == 0:
        return []
    dist = lorentz_distances(query, points)
    order = np.argsort(dist, kind="stable")[:k]
    return [(ids[i], float(dist[i])) for i in order if np.isfinite(dist[i])]


def brute_force_range(query: np.ndarray, points: np.ndarray, ids: list, radius: float) -> list:
    """Exhaustive range search: ids of all points within ``radius`` (inclusive), in insertion order."""
    if radius < 0 or len(ids) == 0:
        return []
    dist = lorentz_distances(query, points)
    return [ids[i] for i in np.flatnonzero(dist <= radius)]


def compute_pairwise_distances(
    points: Float[Array, "n_points dim"],
    manifold_module,
) -> Float[Array, "n_points n_points"]:
    """Compute pairwise geodesic distances between points.

    The full matrix is computed in a single pass with nested vmap, so memory
    grows as n². For large layouts, query the ball tree instead.

    Args:
        points: Points of one model, shape (n_points, dim)
            For hyperboloid: dim is the ambient dimension (dim+1)
            For poincare: dim is 2 (disk points)
        manifold_module: Module exposing ``distance(x, y)`` (hyperboloid or poincare)

    Returns:
        Symmetric distance matrix of shape (n_points, n_points)

    Examples:
        >>> import jax.numpy as jnp
        >>> from hyperlayout.manifolds import poincare
        >>> from hyperlayout.utils.helpers import compute_pairwise_distances
        >>>
        >>> positions = jnp.array([[0.0, 0.0], [0.5, 0.0], [0.0, 0.5]])
        >>> compute_pairwise_distances(positions, poincare).shape  # (3, 3)
    """
    dist_col = jax.vmap(manifold_module.distance, in_axes=(None, 0))
    dist_matrix_fn = jax.vmap(dist_col, in_axes=(0, None))
    return dist_matrix_fn(points, points)
