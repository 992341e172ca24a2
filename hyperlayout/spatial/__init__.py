"""Spatial indexing on the hyperboloid."""

from .ball_tree import BallTree

__all__ = ["BallTree"]
