"""Force-directed layout in the Poincaré disk.

Every pass computes, for each movable node and in that node's own frame:

* inverse-square repulsion ``spring_repulsion / d²`` from every other
  positioned node closer than ``spring_cutoff``,
* a spring ``spring_attraction·(d - edge_length)`` towards its parent.

The resulting force is capped at ``spring_max_step``, scaled by
``spring_damping`` and applied as a hyperbolic move of that length with
``mobius_inv``. The loop stops after ``spring_iterations`` passes or once the
summed force magnitude drops to ``spring_tolerance``. The root and pinned
nodes never move; nodes without a position are ignored.

All pairwise distances are evaluated in each pass, so memory and time grow
as n² per pass.
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
from .graph import Graph, find_root

logger = logging.getLogger(__name__)

# Row i holds every node as seen from node i
_pairwise_distances = jax.jit(jax.vmap(jax.vmap(poincare.distance, in_axes=(None, 0)), in_axes=(0, None)))
_pairwise_frames = jax.jit(jax.vmap(jax.vmap(poincare.mobius, in_axes=(None, 0)), in_axes=(0, None)))
_apply_steps = jax.jit(jax.vmap(poincare.mobius_inv))


def _forces(positions: Array, parents: np.ndarray, config: LayoutConfig) -> np.ndarray:
    dist = np.asarray(_pairwise_distances(positions, positions), dtype=np.float64)
    frames = np.asarray(_pairwise_frames(positions, positions), dtype=np.float64)
    norms = np.linalg.norm(frames, axis=-1)
    units = frames / np.maximum(norms, cx.EPSILON)[..., None]

    # Coincident nodes exert no force on each other
    repel = (dist > cx.EPSILON) & (dist < config.spring_cutoff)
    coef = np.where(repel, config.spring_repulsion / np.where(repel, dist, 1.0) ** 2, 0.0)
    forces = -np.einsum("ij,ijk->ik", coef, units)

    child = np.flatnonzero(parents >= 0)
    parent = parents[child]
    stretch = config.spring_attraction * (dist[child, parent] - config.edge_length)
    forces[child] += stretch[:, None] * units[child, parent]
    return forces


def force_directed_layout(
    graph: Graph,
    root_id: Hashable | None = None,
    pinned_ids: Iterable[Hashable] = (),
    config: LayoutConfig = DEFAULT_LAYOUT_CONFIG,
) -> dict[Hashable, Float[Array, "2"]]:
    """Refine a laid-out graph with springs along edges and repulsion between all nodes.

    Args:
        graph: Mapping ``{id: LayoutNode}``; nodes without a position are ignored
        root_id: Fixed root. Defaults to the first node without a parent.
        pinned_ids: Further ids that stay fixed; unknown ids are ignored
        config: Force parameters (the ``edge_length`` and ``spring_*`` fields)

    Returns:
        ``{id: position}`` for every positioned node. ``position`` and
        ``lorentz`` are written back onto the nodes that moved.
    """
    ids = [node_id for node_id, node in graph.items() if node.position is not None]
    if not ids:
        return {}
    if root_id is None:
        root_id = find_root(graph)
    index = {node_id: k for k, node_id in enumerate(ids)}
    n = len(ids)

    movable = np.ones(n, dtype=bool)
    for node_id in [root_id, *pinned_ids]:
        if node_id in index:
            movable[index[node_id]] = False
    parents = np.array([index.get(graph[i].parent, -1) for i in ids], dtype=np.int64)

    positions = jax.vmap(cx.clamp_disk)(jnp.stack([jnp.asarray(graph[i].position) for i in ids]))
    total = math.inf
    iteration = 0
    while movable.any() and iteration < config.spring_iterations and total > config.spring_tolerance:
        forces = _forces(positions, parents, config)
        forces[~movable] = 0.0
        magnitude = np.linalg.norm(forces, axis=-1)
        total = float(np.sum(magnitude))

        # Euclidean radius tanh(s/2) in the node's frame is a hyperbolic move of length s
        length = np.minimum(magnitude, config.spring_max_step) * config.spring_damping
        steps = forces / np.maximum(magnitude, cx.EPSILON)[:, None] * np.tanh(length / 2.0)[:, None]
        moved = _apply_steps(positions, jnp.asarray(steps, dtype=positions.dtype))
        positions = jnp.where(jnp.asarray(movable)[:, None], moved, positions)
        iteration += 1
        logger.debug("Force layout pass %d: total force %.6f", iteration, total)

    logger.debug("Force layout stopped after %d passes with total force %.6f", iteration, total)
    result = {}
    for k, node_id in enumerate(ids):
        node = graph[node_id]
        if movable[k]:
            node.position = positions[k]
            node.lorentz = isometry_mappings.to_hyperboloid(positions[k])
        result[node_id] = node.position
    return result
