"""Layout engine: BFS placement along geodesics, relaxation around pinned nodes and a force-directed refinement."""

from .force import force_directed_layout
from .graph import LayoutNode, find_root, from_parents, is_related, related_ids, subtree_weights
from .grid import SpatialGrid
from .placement import center_on_root, child_angles, layout, layout_hyperbolic
from .relaxation import relayout, relayout_around_pins

__all__ = [
    "LayoutNode",
    "SpatialGrid",
    "center_on_root",
    "child_angles",
    "find_root",
    "force_directed_layout",
    "from_parents",
    "is_related",
    "layout",
    "layout_hyperbolic",
    "related_ids",
    "relayout",
    "relayout_around_pins",
    "subtree_weights",
]
