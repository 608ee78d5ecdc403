#!/usr/bin/env python3
"""
Boundary Module

Axis-aligned rectangles used both as quadtree node extents and as
rectangular query ranges. All predicates are inclusive on every edge.
"""

import math
from dataclasses import dataclass
from functools import cached_property
from typing import Tuple

from shapely.geometry import Polygon, box

# Fixed metres-per-degree factor used by radius queries, independent of latitude
METERS_PER_DEGREE = 111320.0


@dataclass(frozen=True)
class Boundary:
    """Rectangle described by its centre and full width/height."""
    center_x: float
    center_y: float
    width: float
    height: float

    @classmethod
    def from_bounds(cls, bounds: Tuple[float, float, float, float]) -> 'Boundary':
        """Create a boundary from a (minx, miny, maxx, maxy) tuple."""
        minx, miny, maxx, maxy = bounds
        return cls(
            center_x=(minx + maxx) / 2,
            center_y=(miny + maxy) / 2,
            width=maxx - minx,
            height=maxy - miny,
        )

    @classmethod
    def from_geometry(cls, geometry) -> 'Boundary':
        """Create a boundary from the bounding box of a shapely geometry."""
        return cls.from_bounds(geometry.bounds)

    @property
    def left(self) -> float:
        return self.center_x - self.width / 2

    @property
    def right(self) -> float:
        return self.center_x + self.width / 2

    @property
    def top(self) -> float:
        return self.center_y - self.height / 2

    @property
    def bottom(self) -> float:
        return self.center_y + self.height / 2

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy), the shapely bounds order."""
        return (self.left, self.top, self.right, self.bottom)

    @property
    def is_degenerate(self) -> bool:
        """True for zero or negative width/height."""
        return self.width <= 0 or self.height <= 0

    @cached_property
    def polygon(self) -> Polygon:
        return box(*self.bounds)

    def to_polygon(self) -> Polygon:
        """Shapely polygon covering this boundary."""
        return self.polygon

    def contains(self, x: float, y: float) -> bool:
        """Inclusive containment test for a coordinate pair."""
        return (
            self.left <= x <= self.right
            and self.top <= y <= self.bottom
        )

    def contains_point(self, point) -> bool:
        """Containment test for anything with ``x``/``y`` attributes."""
        return self.contains(point.x, point.y)

    def intersects(self, other: 'Boundary') -> bool:
        """Rectangle overlap: not disjoint on either axis, edges count."""
        return not (
            other.left > self.right
            or other.right < self.left
            or other.top > self.bottom
            or other.bottom < self.top
        )

    def distance_to(self, x: float, y: float) -> float:
        """Distance from (x, y) to the nearest point of this rectangle."""
        dx = max(abs(x - self.center_x) - self.width / 2, 0.0)
        dy = max(abs(y - self.center_y) - self.height / 2, 0.0)
        return math.sqrt(dx * dx + dy * dy)

    def quadrants(self) -> Tuple['Boundary', 'Boundary', 'Boundary', 'Boundary']:
        """
        Split into four exact quadrants.

        Returns (northeast, northwest, southeast, southwest). The north
        quadrants sit at the smaller y, matching the screen-style layout the
        index has always used.
        """
        w = self.width / 2
        h = self.height / 2
        x, y = self.center_x, self.center_y
        return (
            Boundary(x + w / 2, y - h / 2, w, h),
            Boundary(x - w / 2, y - h / 2, w, h),
            Boundary(x + w / 2, y + h / 2, w, h),
            Boundary(x - w / 2, y + h / 2, w, h),
        )

    def to_dict(self) -> dict:
        return {
            'x': self.center_x,
            'y': self.center_y,
            'width': self.width,
            'height': self.height,
        }


def meters_to_degrees(radius_meters: float,
                      meters_per_degree: float = METERS_PER_DEGREE) -> float:
    """Convert a metric radius to coordinate units with the flat approximation."""
    return radius_meters / meters_per_degree
