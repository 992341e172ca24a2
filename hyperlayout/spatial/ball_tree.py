"""Hyperbolic ball tree for nearest-neighbour and range queries on the hyperboloid.

The tree is stored as an arena of flat numpy arrays: node ``i`` has a centre
``centers[i]``, a covering radius ``radii[i]``, child indices ``left[i]`` /
``right[i]`` (``-1`` for leaves) and a slice ``[start[i], end[i])`` into the
reordered point array. Centres are Fréchet means computed with the JAX
kernel; radii are the exact maximum hyperbolic distance from the centre to
the node's points, so the triangle inequality gives a valid lower bound

    d(q, p) >= d(q, centre) - radius

for every point ``p`` below the node.

    >>> import jax
    >>> import jax.numpy as jnp
    >>> from hyperlayout.spatial import BallTree
    >>>
    >>> positions = jnp.array([[0.0, 0.0], [0.5, 0.0], [0.0, 0.5], [-0.3, -0.3]])
    >>> tree = BallTree.from_disk(positions, ids=["a", "b", "c", "d"], leaf_size=2)
    >>> tree.knn_disk(jnp.array([0.45, 0.0]), k=2)  # ["b", "a"]

The tree is immutable; rebuild it when the point set changes.
"""

import heapq
import logging
from collections.abc import Sequence

import jax
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float

from ..config import DEFAULT_INDEX_CONFIG, IndexConfig
from ..manifolds import hyperboloid, isometry_mappings
from ..utils.helpers import lorentz_distances

logger = logging.getLogger(__name__)

_centroid_jit = jax.jit(hyperboloid.centroid, static_argnames=["iterations"])

# Rounding margin on the triangle-inequality bound, so pruning never drops a point
# that the exact per-point distance would keep
PRUNE_SLACK = 1e-9


def _project(points: np.ndarray) -> np.ndarray:
    # Re-normalize x₀ in float64 so radii are measured on the hyperboloid itself
    out = np.array(points, dtype=np.float64)
    out[..., 0] = np.sqrt(1.0 + np.sum(out[..., 1:] ** 2, axis=-1))
    return out


class BallTree:
    """Immutable hyperbolic ball tree over hyperboloid points.

    Use :meth:`build` or :meth:`from_disk` to construct one.
    """

    def __init__(
        self,
        points: np.ndarray,
        ids: list,
        order: np.ndarray,
        centers: np.ndarray,
        radii: np.ndarray,
        left: np.ndarray,
        right: np.ndarray,
        start: np.ndarray,
        end: np.ndarray,
        depth: int,
    ) -> None:
        self._points = points
        self._ids = ids
        self._order = order
        self._centers = centers
        self._radii = radii
        self._left = left
        self._right = right
        self._start = start
        self._end = end
        self._depth = depth

    @classmethod
    def build(
        cls,
        points: Float[Array, "n dim_plus_1"] | np.ndarray,
        ids: Sequence | None = None,
        leaf_size: int | None = None,
        centroid_iterations: int | None = None,
        config: IndexConfig = DEFAULT_INDEX_CONFIG,
    ) -> "BallTree":
        """Build a tree over hyperboloid points.

        Args:
            points: Hyperboloid points, shape (n, dim+1)
            ids: Identifier per point; defaults to ``range(n)``
            leaf_size: Maximum number of points per leaf (default from ``config``)
            centroid_iterations: Fréchet-mean steps per node (default from ``config``)
            config: Index configuration supplying the defaults

        Returns:
            BallTree

        Raises:
            ValueError: If ``points`` is not a finite (n, dim+1) array, if
                ``ids`` does not match ``n`` or if ``leaf_size < 1``.
        """
        leaf_size = config.leaf_size if leaf_size is None else leaf_size
        centroid_iterations = config.centroid_iterations if centroid_iterations is None else centroid_iterations
        if leaf_size < 1:
            raise ValueError(f"leaf_size must be at least 1, got {leaf_size}")
        if centroid_iterations < 0:
            raise ValueError(f"centroid_iterations must be non-negative, got {centroid_iterations}")

        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] < 2:
            raise ValueError(f"points must have shape (n, dim+1) with dim >= 1, got {points.shape}")
        if not np.all(np.isfinite(points)):
            raise ValueError("points must be finite")
        n = points.shape[0]
        ids = list(range(n)) if ids is None else list(ids)
        if len(ids) != n:
            raise ValueError(f"Got {len(ids)} ids for {n} points")

        points = _project(points)
        order = np.arange(n)
        centers, radii, left, right, start, end = [], [], [], [], [], []

        def new_node(lo: int, hi: int) -> int:
            chunk = points[order[lo:hi]]
            center = _project(np.asarray(_centroid_jit(jnp.asarray(chunk), iterations=centroid_iterations)))
            centers.append(center)
            radii.append(float(np.max(lorentz_distances(center, chunk))))
            left.append(-1)
            right.append(-1)
            start.append(lo)
            end.append(hi)
            return len(centers) - 1

        def split(node: int, lo: int, hi: int, level: int) -> int:
            if hi - lo <= leaf_size:
                return level
            chunk = points[order[lo:hi]]
            spread = np.ptp(chunk[:, 1:], axis=0)
            axis = 1 + int(np.argmax(spread))
            order[lo:hi] = order[lo:hi][np.argsort(chunk[:, axis], kind="stable")]
            mid = lo + (hi - lo) // 2
            left[node] = new_node(lo, mid)
            right[node] = new_node(mid, hi)
            return max(split(left[node], lo, mid, level + 1), split(right[node], mid, hi, level + 1))

        depth = 0
        if n > 0:
            depth = split(new_node(0, n), 0, n, 1)

        dim_plus_1 = points.shape[1]
        tree = cls(
            points=points[order],
            ids=[ids[i] for i in order],
            order=order.copy(),
            centers=np.asarray(centers, dtype=np.float64).reshape(-1, dim_plus_1),
            radii=np.asarray(radii, dtype=np.float64),
            left=np.asarray(left, dtype=np.int64),
            right=np.asarray(right, dtype=np.int64),
            start=np.asarray(start, dtype=np.int64),
            end=np.asarray(end, dtype=np.int64),
            depth=depth,
        )
        logger.debug(
            "Built ball tree: %d points, %d nodes, depth %d, leaf_size %d", n, tree.node_count, depth, leaf_size
        )
        return tree

    @classmethod
    def from_disk(
        cls,
        positions: Float[Array, "n 2"] | np.ndarray,
        ids: Sequence | None = None,
        leaf_size: int | None = None,
        centroid_iterations: int | None = None,
        config: IndexConfig = DEFAULT_INDEX_CONFIG,
    ) -> "BallTree":
        """Build a tree over Poincaré disk positions, lifted with ``to_hyperboloid``."""
        positions = jnp.asarray(positions)
        if positions.ndim != 2 or positions.shape[-1] != 2:
            raise ValueError(f"positions must have shape (n, 2), got {positions.shape}")
        if not bool(jnp.all(jnp.isfinite(positions))):
            raise ValueError("positions must be finite")
        lifted = jax.vmap(isometry_mappings.to_hyperboloid)(positions)
        return cls.build(lifted, ids=ids, leaf_size=leaf_size, centroid_iterations=centroid_iterations, config=config)

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def node_count(self) -> int:
        """Number of nodes (internal and leaves)."""
        return int(self._radii.shape[0])

    @property
    def depth(self) -> int:
        """Number of levels; 0 for an empty tree."""
        return self._depth

    @property
    def ids(self) -> list:
        """Ids in insertion order."""
        return [self._ids[i] for i in np.argsort(self._order)]

    def _query_point(self, query) -> np.ndarray | None:
        query = np.asarray(query, dtype=np.float64)
        if query.shape != (self._points.shape[1],) or not np.all(np.isfinite(query)):
            return None
        return query

    def knn_with_distances(self, query: Float[Array, "dim_plus_1"], k: int) -> list[tuple[object, float]]:
        """k nearest neighbours of ``query`` with their distances.

        Depth-first search visiting the nearer child first, keeping the best
        ``k`` candidates in a max-heap and pruning nodes whose lower bound
        exceeds the current k-th distance.

        Args:
            query: Hyperboloid point, shape (dim+1,)
            k: Number of neighbours

        Returns:
            Up to ``k`` ``(id, distance)`` pairs, nearest first; equal
            distances keep insertion order. Empty for ``k <= 0``, an empty
            tree or an invalid query.
        """
        query = self._query_point(query)
        if k <= 0 or query is None or len(self) == 0:
            return []

        # Entries are (-distance, -insertion_index, slot) so the root is the worst candidate
        heap: list[tuple[float, int, int]] = []

        def search(node: int, center_dist: float) -> None:
            if len(heap) >= k and center_dist - self._radii[node] > -heap[0][0] + PRUNE_SLACK:
                return
            lo, hi = self._start[node], self._end[node]
            if self._left[node] < 0:
                dist = lorentz_distances(query, self._points[lo:hi])
                for slot, d in zip(range(lo, hi), dist):
                    entry = (-float(d), -int(self._order[slot]), slot)
                    if len(heap) < k:
                        heapq.heappush(heap, entry)
                    elif entry > heap[0]:
                        heapq.heapreplace(heap, entry)
                return
            children = (self._left[node], self._right[node])
            child_dist = lorentz_distances(query, self._centers[list(children)])
            for i in np.argsort(child_dist, kind="stable"):
                search(children[i], float(child_dist[i]))

        search(0, float(lorentz_distances(query, self._centers[:1])[0]))
        found = sorted((-neg_d, -neg_idx, slot) for neg_d, neg_idx, slot in heap)
        return [(self._ids[slot], d) for d, _, slot in found if np.isfinite(d)]

    def knn(self, query: Float[Array, "dim_plus_1"], k: int) -> list:
        """Ids of the k nearest neighbours of ``query``, nearest first."""
        return [i for i, _ in self.knn_with_distances(query, k)]

    def range_query(self, query: Float[Array, "dim_plus_1"], radius: float) -> list:
        """Ids of all points within hyperbolic distance ``radius`` of ``query`` (inclusive).

        Nodes with ``d(q, centre) - radius_node > radius`` (up to ``PRUNE_SLACK``) are skipped. Results
        are in insertion order; empty for ``radius < 0`` or an invalid query.
        """
        query = self._query_point(query)
        if query is None or not radius >= 0 or len(self) == 0:
            return []

        hits: list[int] = []
        stack = [0]
        while stack:
            node = stack.pop()
            center_dist = lorentz_distances(query, self._centers[node : node + 1])[0]
            if center_dist - self._radii[node] > radius + PRUNE_SLACK:
                continue
            if self._left[node] < 0:
                lo, hi = self._start[node], self._end[node]
                dist = lorentz_distances(query, self._points[lo:hi])
                hits.extend(lo + np.flatnonzero(dist <= radius))
                continue
            stack.append(self._right[node])
            stack.append(self._left[node])

        hits.sort(key=lambda slot: self._order[slot])
        return [self._ids[slot] for slot in hits]

    def knn_disk(self, position: Float[Array, "2"], k: int) -> list:
        """``knn`` for a Poincaré disk query point."""
        if not bool(jnp.all(jnp.isfinite(jnp.asarray(position)))):
            return []
        return self.knn(self._lift(position), k)

    def range_query_disk(self, position: Float[Array, "2"], radius: float) -> list:
        """``range_query`` for a Poincaré disk query point."""
        if not bool(jnp.all(jnp.isfinite(jnp.asarray(position)))):
            return []
        return self.range_query(self._lift(position), radius)

    def _lift(self, position: Float[Array, "2"]) -> np.ndarray:
        lifted = isometry_mappings.to_hyperboloid(jnp.asarray(position), dim=self._points.shape[1] - 1)
        return _project(np.asarray(lifted))
