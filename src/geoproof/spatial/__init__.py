"""
Spatial Operations Module

This module provides the rectangle geometry and the quadtree index
used to store and query points.
"""

from .boundary import Boundary, METERS_PER_DEGREE, meters_to_degrees
from .quadtree import QuadNode, SpatialIndex

__all__ = [
    'Boundary',
    'METERS_PER_DEGREE',
    'meters_to_degrees',
    'QuadNode',
    'SpatialIndex',
]
