"""Numeric utilities for hyperlayout."""

from . import complex_ops
from .helpers import brute_force_knn, brute_force_range, compute_pairwise_distances, lorentz_distances
from .math_utils import acosh, atanh, cosh, sinh, smooth_clamp

__all__ = [
    "acosh",
    "atanh",
    "brute_force_knn",
    "brute_force_range",
    "complex_ops",
    "compute_pairwise_distances",
    "cosh",
    "lorentz_distances",
    "sinh",
    "smooth_clamp",
]
