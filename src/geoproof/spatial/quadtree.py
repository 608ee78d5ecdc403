#!/usr/bin/env python3
"""
Quadtree Spatial Index Module

Point quadtree over a fixed world boundary. Nodes hold up to ``capacity``
points, then split once into four quadrants and route later points to them.
Supports rectangular range queries and metric radius queries.
"""

import logging
import math
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .boundary import METERS_PER_DEGREE, Boundary, meters_to_degrees

logger = logging.getLogger(__name__)


class QuadNode:
    """
    One node of the quadtree.

    Children are created on the first subdivision and are never removed.
    Points held before the split stay in this node.
    """

    def __init__(self, boundary: Boundary, capacity: int, depth: int = 0):
        self.boundary = boundary
        self.capacity = capacity
        self.depth = depth
        self.points = []
        self.divided = False
        self.northeast: Optional['QuadNode'] = None
        self.northwest: Optional['QuadNode'] = None
        self.southeast: Optional['QuadNode'] = None
        self.southwest: Optional['QuadNode'] = None

    @property
    def insertion_order(self) -> Tuple['QuadNode', ...]:
        """Children in the order they are offered new points."""
        if not self.divided:
            return ()
        return (self.northeast, self.northwest, self.southeast, self.southwest)

    @property
    def traversal_order(self) -> Tuple['QuadNode', ...]:
        """Children in the order queries visit them."""
        if not self.divided:
            return ()
        return (self.northwest, self.northeast, self.southwest, self.southeast)

    def subdivide(self):
        """Create the four quadrant children. Only valid once per node."""
        if self.divided:
            raise RuntimeError(f"Node at depth {self.depth} is already divided")

        ne, nw, se, sw = self.boundary.quadrants()
        child_depth = self.depth + 1
        self.northeast = QuadNode(ne, self.capacity, child_depth)
        self.northwest = QuadNode(nw, self.capacity, child_depth)
        self.southeast = QuadNode(se, self.capacity, child_depth)
        self.southwest = QuadNode(sw, self.capacity, child_depth)
        self.divided = True

        logger.debug(f"Subdivided node at depth {self.depth} ({self.boundary.bounds})")

    def insert(self, point) -> bool:
        """
        Store ``point`` in this subtree.

        Returns False if the point lies outside this node's boundary, or if
        no child accepts it once the node is full.
        """
        node = self
        while True:
            if not node.boundary.contains_point(point):
                return False
            if len(node.points) < node.capacity:
                node.points.append(point)
                return True
            if not node.divided:
                node.subdivide()

            for child in node.insertion_order:
                if child.boundary.contains_point(point):
                    node = child
                    break
            else:
                return False

    def query_range(self, rect: Boundary, stats: Optional[Dict[str, int]] = None) -> List:
        """Points inside ``rect``; own points first, then NW, NE, SW, SE."""
        found = []
        if rect.is_degenerate:
            return found

        visited = 0
        stack = [self]
        while stack:
            node = stack.pop()
            if not node.boundary.intersects(rect):
                continue
            visited += 1
            found.extend(p for p in node.points if rect.contains_point(p))
            stack.extend(reversed(node.traversal_order))

        if stats is not None:
            stats['nodes_visited'] = stats.get('nodes_visited', 0) + visited
        return found

    def query_radius(self, center_x: float, center_y: float, radius_meters: float,
                     meters_per_degree: float = METERS_PER_DEGREE,
                     stats: Optional[Dict[str, int]] = None) -> List:
        """Points within ``radius_meters`` of the centre; same visiting order as ranges."""
        found = []
        if radius_meters <= 0:
            return found

        radius = meters_to_degrees(radius_meters, meters_per_degree)
        visited = 0
        stack = [self]
        while stack:
            node = stack.pop()
            if node.boundary.distance_to(center_x, center_y) > radius:
                continue
            visited += 1
            for p in node.points:
                dx = p.x - center_x
                dy = p.y - center_y
                if math.sqrt(dx * dx + dy * dy) <= radius:
                    found.append(p)
            stack.extend(reversed(node.traversal_order))

        if stats is not None:
            stats['nodes_visited'] = stats.get('nodes_visited', 0) + visited
        return found

    def iter_nodes(self) -> Iterator['QuadNode']:
        """Pre-order walk over this subtree."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.traversal_order))


class SpatialIndex:
    """
    Quadtree index over a fixed world boundary.

    Provides:
    - Point insertion with one-time node subdivision
    - Rectangular range queries
    - Radius queries in metres (flat degree conversion)
    - Structure statistics for diagnostics

    The index has no internal locking; callers that share it between
    threads must serialise access.
    """

    def __init__(self, boundary: Boundary, capacity: int = 4,
                 meters_per_degree: float = METERS_PER_DEGREE):
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        if boundary.is_degenerate:
            raise ValueError(f"world boundary must have positive area, got {boundary}")
        if meters_per_degree <= 0:
            raise ValueError("meters_per_degree must be positive")

        self.boundary = boundary
        self.capacity = capacity
        self.meters_per_degree = meters_per_degree
        self.root = QuadNode(boundary, capacity)
        self._size = 0

        logger.debug(f"Created spatial index over {boundary.bounds} with capacity {capacity}")

    def __len__(self) -> int:
        return self._size

    def contains(self, x: float, y: float) -> bool:
        """True if (x, y) lies inside the world boundary."""
        return self.boundary.contains(x, y)

    def insert(self, point) -> bool:
        """Insert a point; False when it falls outside the world boundary."""
        if not self.root.insert(point):
            logger.debug(f"Rejected point ({point.x}, {point.y}) outside {self.boundary.bounds}")
            return False

        self._size += 1
        logger.debug(f"Inserted point ({point.x}, {point.y}), index size {self._size}")
        return True

    def query_range(self, rect: Boundary, stats: Optional[Dict[str, int]] = None) -> List:
        """Find points inside a rectangle (inclusive edges)."""
        return self.root.query_range(rect, stats=stats)

    def query_radius(self, center_x: float, center_y: float, radius_meters: float,
                     stats: Optional[Dict[str, int]] = None) -> List:
        """Find points within ``radius_meters`` of (center_x, center_y)."""
        return self.root.query_radius(center_x, center_y, radius_meters,
                                      meters_per_degree=self.meters_per_degree,
                                      stats=stats)

    def iter_points(self) -> Iterator:
        """Every stored point, in query traversal order."""
        for node in self.root.iter_nodes():
            yield from node.points

    def node_count(self) -> int:
        return sum(1 for _ in self.root.iter_nodes())

    def depth(self) -> int:
        """Depth of the deepest node; 0 for an undivided root."""
        return max(node.depth for node in self.root.iter_nodes())

    def get_stats(self) -> Dict[str, Any]:
        return {
            'points': self._size,
            'nodes': self.node_count(),
            'depth': self.depth(),
            'capacity': self.capacity,
            'boundary': self.boundary.to_dict(),
        }
