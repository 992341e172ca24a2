"""hyperlayout - hyperbolic geometry, spatial indexing and layout for graph visualization.

Kernels for the Poincaré disk and the hyperboloid (JAX, jit/vmap friendly),
conversions between the models, a hyperbolic ball tree for nearest-neighbour
and range queries, and a layout engine that places a hierarchy along
geodesics, relaxes it around pinned nodes and refines it with springs.
"""

import logging

from . import config, layout, manifolds, spatial, utils
from .config import DEFAULT_INDEX_CONFIG, DEFAULT_LAYOUT_CONFIG, IndexConfig, LayoutConfig, create_layout_config
from .layout import (
    LayoutNode,
    SpatialGrid,
    center_on_root,
    force_directed_layout,
    layout_hyperbolic,
    relayout,
    relayout_around_pins,
)
from .manifolds import Hyperboloid, PoincareDisk, hyperboloid, isometry_mappings, poincare
from .spatial import BallTree
from .utils.view_cache import ViewState, ViewTransformCache

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_INDEX_CONFIG",
    "DEFAULT_LAYOUT_CONFIG",
    "BallTree",
    "Hyperboloid",
    "IndexConfig",
    "LayoutConfig",
    "LayoutNode",
    "PoincareDisk",
    "SpatialGrid",
    "ViewState",
    "ViewTransformCache",
    "center_on_root",
    "config",
    "create_layout_config",
    "force_directed_layout",
    "hyperboloid",
    "isometry_mappings",
    "layout",
    "layout_hyperbolic",
    "manifolds",
    "poincare",
    "relayout",
    "relayout_around_pins",
    "spatial",
    "utils",
]
