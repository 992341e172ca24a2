"""Camera-relative view positions, memoized under an explicit key.

The renderer needs every node position re-centred on the camera
(``mobius(camera, z)``), a far-to-near draw order and a hit test. These only
change when the camera, the zoom level or the node set changes, so they are
cached under the key ``(camera, zoom, epoch)``. Callers bump ``epoch``
whenever nodes are added, removed or moved; any key mismatch rebuilds, and
``invalidate()`` drops the cache unconditionally.
"""

from collections.abc import Hashable, Sequence
from typing import NamedTuple

import jax
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float

from ..manifolds import poincare

_to_view = jax.jit(jax.vmap(poincare.mobius, in_axes=(None, 0)))
_view_distances = jax.jit(jax.vmap(poincare.distance_0))


class ViewState(NamedTuple):
    """Snapshot of one camera/zoom/epoch combination."""

    key: tuple
    ids: list
    view_positions: Float[Array, "n 2"]
    distances: np.ndarray
    render_order: list


class ViewTransformCache:
    """Explicitly keyed cache of camera-relative positions and draw order.

    Examples:
        >>> import jax.numpy as jnp
        >>> from hyperlayout.utils.view_cache import ViewTransformCache
        >>>
        >>> cache = ViewTransformCache()
        >>> ids = ["root", "a"]
        >>> positions = jnp.array([[0.0, 0.0], [0.3, 0.1]])
        >>> state = cache.get(jnp.array([0.1, 0.0]), 1.0, 0, ids, positions)
        >>> state.render_order  # farthest from the camera first
    """

    def __init__(self) -> None:
        self._state: ViewState | None = None
        self.rebuilds = 0

    @staticmethod
    def make_key(camera: Float[Array, "2"], zoom: float, epoch: Hashable) -> tuple:
        camera = np.asarray(camera, dtype=np.float64)
        return (float(camera[0]), float(camera[1]), float(zoom), epoch)

    def get(
        self,
        camera: Float[Array, "2"],
        zoom: float,
        epoch: Hashable,
        ids: Sequence[Hashable],
        positions: Float[Array, "n 2"],
    ) -> ViewState:
        """Return the cached view for the key, rebuilding it on mismatch.

        Args:
            camera: Camera position in the disk, shape (2,)
            zoom: Zoom level (only part of the key)
            epoch: Caller-maintained counter of node-set changes
            ids: Node ids, parallel to ``positions``
            positions: World positions, shape (n, 2). Only read on a rebuild.

        Returns:
            ViewState with view positions, distances from the camera and the
            ids ordered far to near
        """
        key = self.make_key(camera, zoom, epoch)
        if self._state is not None and self._state.key == key:
            return self._state

        ids = list(ids)
        positions = jnp.asarray(positions)
        if len(ids) == 0:
            view = jnp.zeros((0, 2), dtype=positions.dtype)
            distances = np.zeros(0)
        else:
            view = _to_view(jnp.asarray(camera, dtype=positions.dtype), positions)
            distances = np.asarray(_view_distances(view), dtype=np.float64)
        order = np.argsort(-distances, kind="stable")
        self._state = ViewState(
            key=key, ids=ids, view_positions=view, distances=distances, render_order=[ids[i] for i in order]
        )
        self.rebuilds += 1
        return self._state

    def hit_test(self, view_point: Float[Array, "2"], max_distance: float) -> Hashable | None:
        """Id of the node nearest to ``view_point`` (view coordinates) within ``max_distance``, if any."""
        state = self._state
        if state is None or not state.ids:
            return None
        view_point = jnp.asarray(view_point, dtype=state.view_positions.dtype)
        dist = np.asarray(jax.vmap(poincare.distance, in_axes=(None, 0))(view_point, state.view_positions))
        best = int(np.argmin(dist))
        return state.ids[best] if dist[best] <= max_distance else None

    def invalidate(self) -> None:
        """Drop the cached view."""
        self._state = None

    @property
    def state(self) -> ViewState | None:
        return self._state
