"""Force relaxation around pinned nodes.

Each pass accumulates a displacement for every movable node in that node's
own frame (where the node sits at the origin and geodesics through it are
diameters), then moves it with ``mobius_inv(position, step)``:

* related nodes (bounded-depth ancestors, descendants and siblings of a pin)
  farther than ``rest_distance`` are pulled towards the pin,
* unrelated nodes within ``repulsion_radius`` of a pin are pushed away,
  with candidates found through a Euclidean bucket grid,
* movable nodes closer than ``separation`` (Euclidean) push each other apart.

Displacements are capped at ``max_force`` and scaled by
``strength·(1 - pass/iterations)``. Pinned nodes never move.
"""

import logging
import math
from collections.abc import Hashable, Iterable

import jax
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float

from ..config import DEFAULT_LAYOUT_CONFIG, LayoutConfig
from ..manifolds import isometry_mappings, poincare
from ..utils import complex_ops as cx
from .graph import Graph, related_ids
from .grid import SpatialGrid

logger = logging.getLogger(__name__)

# Fallback directions for coincident points
GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))

# All batched kernels below see fixed-shape inputs (n nodes, or pairs padded
# to a power of two) so that repeated passes reuse the compiled function.
_distances_from = jax.jit(jax.vmap(poincare.distance, in_axes=(None, 0)))
_frames_towards = jax.jit(jax.vmap(poincare.mobius, in_axes=(0, None)))
_pair_frames = jax.jit(jax.vmap(poincare.mobius))
_apply_steps = jax.jit(jax.vmap(poincare.mobius_inv))


def _unit_directions(local: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Normalize local-frame vectors; coincident ones get a golden-angle direction."""
    norms = np.linalg.norm(local, axis=-1)
    fallback = np.stack([np.cos(GOLDEN_ANGLE * indices), np.sin(GOLDEN_ANGLE * indices)], axis=-1)
    safe = np.where(norms < cx.EPSILON, 1.0, norms)[:, None]
    return np.where((norms < cx.EPSILON)[:, None], fallback, local / safe)


def _padded_pair_frames(positions: Array, i: np.ndarray, j: np.ndarray) -> np.ndarray:
    # Pad the pair count to a power of two to bound the number of compilations
    count = len(i)
    size = 1 << max(count - 1, 0).bit_length()
    pad = np.zeros(size - count, dtype=np.int64)
    frames = _pair_frames(positions[np.concatenate([i, pad])], positions[np.concatenate([j, pad])])
    return np.asarray(frames, dtype=np.float64)[:count]


def relayout_around_pins(
    graph: Graph,
    pinned_ids: Iterable[Hashable],
    strength: float = 1.0,
    iterations: int | None = None,
    config: LayoutConfig = DEFAULT_LAYOUT_CONFIG,
) -> dict[Hashable, Float[Array, "2"]]:
    """Relax a laid-out graph around pinned anchors.

    Args:
        graph: Mapping ``{id: LayoutNode}``; nodes without a position are ignored
        pinned_ids: Ids that stay fixed; unknown ids are ignored
        strength: Overall step scale; ``<= 0`` leaves every node in place
        iterations: Number of passes (default ``config.relax_iterations``)
        config: Force parameters

    Returns:
        ``{id: position}`` for every positioned node. ``position`` and
        ``lorentz`` are written back onto the nodes.
    """
    ids = [node_id for node_id, node in graph.items() if node.position is not None]
    if not ids:
        return {}
    index = {node_id: k for k, node_id in enumerate(ids)}
    pins = list(dict.fromkeys(p for p in pinned_ids if p in index))
    pin_idx = np.array([index[p] for p in pins], dtype=np.int64)
    iterations = config.relax_iterations if iterations is None else iterations

    positions = jax.vmap(cx.clamp_disk)(jnp.stack([jnp.asarray(graph[i].position) for i in ids]))
    n = len(ids)
    movable = np.ones(n, dtype=bool)
    movable[pin_idx] = False

    related = np.zeros((len(pins), n), dtype=bool)
    for p, pin in enumerate(pins):
        for other in related_ids(graph, pin, config.relation_depth):
            if other in index:
                related[p, index[other]] = True

    # The Euclidean distance between disk points is at most half their hyperbolic distance
    cell = config.grid_cell_size
    pin_rings = max(1, math.ceil(config.repulsion_radius / 2.0 / cell))
    node_indices = np.arange(n)

    if strength > 0 and iterations > 0 and movable.any():
        for it in range(iterations):
            damping = strength * (1.0 - it / iterations)
            pos_np = np.asarray(positions, dtype=np.float64)
            grid = SpatialGrid.from_positions(range(n), pos_np, cell)
            forces = np.zeros((n, 2))

            for p, k in enumerate(pin_idx):
                dist = np.asarray(_distances_from(positions[k], positions), dtype=np.float64)
                local = np.asarray(_frames_towards(positions, positions[k]), dtype=np.float64)
                towards = _unit_directions(local, node_indices)

                pull = related[p] & movable & np.isfinite(dist) & (dist > config.rest_distance)
                forces[pull] += (config.attraction * (dist[pull] - config.rest_distance))[:, None] * towards[pull]

                near = np.zeros(n, dtype=bool)
                near[grid.neighbors(pos_np[k], rings=pin_rings)] = True
                push = near & ~related[p] & movable & (dist < config.repulsion_radius)
                push_mag = config.repulsion * (1.0 - dist[push] / config.repulsion_radius)
                forces[push] -= push_mag[:, None] * towards[push]

            pairs_i, pairs_j = [], []
            for i in np.flatnonzero(movable):
                for j in grid.neighbors(pos_np[i], rings=grid.rings_for(config.separation)):
                    if j != i and movable[j] and np.hypot(*(pos_np[i] - pos_np[j])) < config.separation:
                        pairs_i.append(i)
                        pairs_j.append(j)
            if pairs_i:
                pairs_i = np.asarray(pairs_i, dtype=np.int64)
                pairs_j = np.asarray(pairs_j, dtype=np.int64)
                away = -_unit_directions(_padded_pair_frames(positions, pairs_i, pairs_j), pairs_i)
                gap = np.hypot(*(pos_np[pairs_i] - pos_np[pairs_j]).T)
                np.add.at(forces, pairs_i, (config.repulsion * (1.0 - gap / config.separation))[:, None] * away)

            magnitude = np.linalg.norm(forces, axis=-1)
            scale = np.where(magnitude > config.max_force, config.max_force / np.maximum(magnitude, cx.EPSILON), 1.0)
            steps = forces * scale[:, None] * damping
            steps[~movable] = 0.0

            moved = _apply_steps(positions, jnp.asarray(steps, dtype=positions.dtype))
            positions = jnp.where(jnp.asarray(movable)[:, None], moved, positions)
            total = float(np.sum(magnitude * scale) * damping)
            logger.debug("Relaxation pass %d/%d: total displacement %.6f", it + 1, iterations, total)

    result = {}
    for k, node_id in enumerate(ids):
        node = graph[node_id]
        if movable[k]:
            node.position = positions[k]
            node.lorentz = isometry_mappings.to_hyperboloid(positions[k])
        result[node_id] = node.position
    return result


relayout = relayout_around_pins
