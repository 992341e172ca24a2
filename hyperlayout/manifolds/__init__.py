"""Hyperbolic models - Poincaré disk and hyperboloid kernels with class-based wrappers."""

from . import hyperboloid, isometry_mappings, poincare
from .hyperboloid import LORENTZ_DIM, Hyperboloid
from .poincare import GeodesicArc, GeodesicLine, PoincareDisk

__all__ = [
    "LORENTZ_DIM",
    "GeodesicArc",
    "GeodesicLine",
    "Hyperboloid",
    "PoincareDisk",
    "hyperboloid",
    "isometry_mappings",
    "poincare",
]
