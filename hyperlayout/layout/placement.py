"""Initial placement of a hierarchy in the Poincaré disk.

Breadth-first from the root, which sits at the origin. The children of a
node at BFS depth ``d`` are placed at hyperbolic distance

    ρ = base_radius + radius_per_depth·d

from it, i.e. at Euclidean radius tanh(ρ/2) in the node's own frame, spread
over an angle ``min(2π, spread_factor·π·sqrt(n + 1))`` centred on the
direction pointing away from the node's parent. Offsets are built in the
parent's frame and mapped to world coordinates with ``mobius_inv``, so
every child lies exactly ρ away from its parent wherever the parent is.
With ``weighted_spread`` the angular sectors are sized by subtree size, so
large branches get more room.

``center_on_root`` moves a finished layout so that the root is at the origin.
"""

import logging
import math
from collections import deque
from collections.abc import Hashable, Sequence

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from ..config import DEFAULT_LAYOUT_CONFIG, LayoutConfig
from ..manifolds import isometry_mappings, poincare
from ..utils import complex_ops as cx
from .graph import Graph, find_root, subtree_weights

logger = logging.getLogger(__name__)

_place_children = jax.jit(jax.vmap(poincare.mobius_inv, in_axes=(None, 0)))
_offsets = jax.jit(jax.vmap(cx.polar, in_axes=(None, 0)))
_recenter = jax.jit(jax.vmap(poincare.mobius, in_axes=(None, 0)))


def child_angles(
    n: int, base_angle: float, spread_factor: float = 0.8, weights: Sequence[float] | None = None
) -> list[float]:
    """Angles of ``n`` children spread around ``base_angle``.

    The spread ``min(2π, spread_factor·π·sqrt(n + 1))`` is split into ``n``
    sectors and each child takes the middle of its sector, so a full circle
    never places two children on the same ray. Sectors are equal unless
    ``weights`` (one positive value per child, e.g. subtree sizes) is given,
    in which case each sector is proportional to its child's weight.
    """
    if n <= 0:
        return []
    spread = min(2.0 * math.pi, spread_factor * math.pi * math.sqrt(n + 1))
    start = base_angle - spread / 2.0
    total = sum(weights) if weights is not None else 0.0
    if not total > 0:
        return [start + spread * (i + 0.5) / n for i in range(n)]
    angles = []
    covered = 0.0
    for weight in weights:
        angles.append(start + spread * (covered + weight / 2.0) / total)
        covered += weight
    return angles


def _away_angle(position: Float[Array, "2"], parent_position: Float[Array, "2"] | None) -> float:
    # Direction from the parent, seen in the node's frame, rotated by π
    if parent_position is None:
        return 0.0
    local = poincare.mobius(position, parent_position)
    if float(cx.absolute(local)) < cx.EPSILON:
        return 0.0
    return float(cx.arg(local)) + math.pi


def layout_hyperbolic(
    graph: Graph,
    root_id: Hashable | None = None,
    config: LayoutConfig = DEFAULT_LAYOUT_CONFIG,
) -> dict[Hashable, Float[Array, "2"]]:
    """Assign disk positions to every node reachable from the root.

    Args:
        graph: Mapping ``{id: LayoutNode}``; ``position`` and ``lorentz`` are
            written back onto reached nodes
        root_id: Root of the traversal. Defaults to the first node without a
            parent in the graph.
        config: Placement parameters

    Returns:
        ``{id: position}`` for every placed node. Empty if the graph is empty
        or has no usable root (a warning is logged in the latter case).

    Notes:
        The traversal dequeues at most ``len(graph)`` entries. Cyclic or
        shared child lists re-enqueue nodes and exhaust that budget, which
        logs a warning and stops the traversal with the positions placed so far.
    """
    if not graph:
        return {}
    if root_id is None:
        root_id = find_root(graph)
    if root_id is None or root_id not in graph:
        logger.warning("No root found for layout (root_id=%r); nothing placed", root_id)
        return {}

    sizes = subtree_weights(graph, root_id) if config.weighted_spread else {}
    positions = {root_id: cx.origin()}
    queue = deque([(root_id, 0)])
    max_steps = len(graph)
    steps = 0

    while queue:
        if steps >= max_steps:
            logger.warning(
                "Layout traversal exceeded %d steps; the parent/child structure has a cycle or shared children. "
                "Stopping with %d nodes placed.",
                max_steps,
                len(positions),
            )
            break
        steps += 1
        node_id, depth = queue.popleft()
        node = graph[node_id]
        children = [child for child in node.children if child in graph]
        if not children:
            continue

        position = positions[node_id]
        parent_position = positions.get(node.parent) if node.parent is not None else None
        weights = [sizes.get(child, 1) for child in children] if config.weighted_spread else None
        angles = child_angles(len(children), _away_angle(position, parent_position), config.spread_factor, weights)
        euclidean_radius = math.tanh(config.child_radius(depth) / 2.0)

        local = _offsets(euclidean_radius, jnp.asarray(angles, dtype=position.dtype))
        placed = _place_children(position, local)
        for i, child in enumerate(children):
            positions[child] = placed[i]
            queue.append((child, depth + 1))

    for node_id, position in positions.items():
        graph[node_id].position = position
        graph[node_id].lorentz = isometry_mappings.to_hyperboloid(position)
    logger.debug("Placed %d of %d nodes from root %r", len(positions), len(graph), root_id)
    return positions


def center_on_root(graph: Graph, root_id: Hashable | None = None) -> dict[Hashable, Float[Array, "2"]]:
    """Apply the isometry that moves the root to the origin to every positioned node.

    Hyperbolic distances between nodes are unchanged. ``position`` and
    ``lorentz`` are written back.

    Args:
        graph: Mapping ``{id: LayoutNode}``
        root_id: Node to centre on. Defaults to the first node without a parent.

    Returns:
        ``{id: position}`` for every positioned node; empty (with a warning) if
        the root is missing or has no position.
    """
    if not graph:
        return {}
    if root_id is None:
        root_id = find_root(graph)
    if root_id not in graph or graph[root_id].position is None:
        logger.warning("Cannot centre on root %r: it is missing or has no position", root_id)
        return {}

    ids = [node_id for node_id, node in graph.items() if node.position is not None]
    moved = _recenter(graph[root_id].position, jnp.stack([jnp.asarray(graph[i].position) for i in ids]))
    positions = {}
    for node_id, position in zip(ids, moved):
        positions[node_id] = position
        graph[node_id].position = position
        graph[node_id].lorentz = isometry_mappings.to_hyperboloid(position)
    logger.debug("Centred %d nodes on root %r", len(ids), root_id)
    return positions


layout = layout_hyperbolic
