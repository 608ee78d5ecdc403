#!/usr/bin/env python3
"""
Query Coordinator Module

Runs spatial queries, orders the results deterministically and commits to
them. Holds no state of its own beyond the collaborators it is given.
"""

import logging
import threading
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..commitment.canonical import CanonicalizationError
from ..commitment.merkle_tree import CommitmentBuilder
from ..data_structures import GeoPoint, InsertResult, QueryKind, QueryResult
from ..metrics.performance_tracker import PerformanceTracker
from ..spatial.boundary import Boundary
from ..spatial.quadtree import SpatialIndex
from .config import GeoProofConfig, get_default_config

logger = logging.getLogger(__name__)

RangeLike = Union[Boundary, Tuple[float, float, float, float]]


def result_order_key(point: GeoPoint) -> Tuple[datetime, int]:
    """Sort key for newest-first ordering; apply with ``reverse=True``."""
    return (point.inserted_at, point.sequence)


def order_results(points: Sequence[GeoPoint]) -> List[GeoPoint]:
    """Newest insertion first, later sequence first on equal timestamps."""
    return sorted(points, key=result_order_key, reverse=True)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QueryCoordinator:
    """
    Couples the spatial index with the commitment builder.

    Responsible for:
    - Stamping inserted points with their insertion time and sequence
    - Running range and radius queries
    - Ordering results and attaching root and proofs
    """

    def __init__(self, index: SpatialIndex,
                 builder: Optional[CommitmentBuilder] = None,
                 config: Optional[GeoProofConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 tracker: Optional[PerformanceTracker] = None):
        self.config = config or get_default_config()
        self.index = index
        self.builder = builder or CommitmentBuilder(self.config.commitment.hash_algorithm)
        self.clock = clock or _utc_now

        if tracker is None and self.config.performance.enable_performance_tracking:
            tracker = PerformanceTracker(self.config.performance.max_history_size)
        self.tracker = tracker

        self._lock = threading.RLock() if self.config.index.thread_safe else nullcontext()

    @classmethod
    def from_config(cls, config: Optional[GeoProofConfig] = None, **kwargs) -> 'QueryCoordinator':
        """Build the index and builder described by ``config``."""
        config = config or get_default_config()
        index = SpatialIndex(
            config.world_boundary(),
            capacity=config.index.capacity,
            meters_per_degree=config.query.meters_per_degree,
        )
        return cls(index, config=config, **kwargs)

    def insert(self, x: float, y: float, payload: Any = None) -> InsertResult:
        """
        Insert a point stamped with the current time.

        Points outside the world boundary are not stored; the result then
        has ``accepted`` set to False.
        """
        with self._lock:
            point = GeoPoint(x=x, y=y, payload=payload,
                             inserted_at=self.clock(), sequence=len(self.index))
            accepted = self.index.insert(point)

        if self.tracker:
            self.tracker.record_insert(accepted)
        if not accepted:
            logger.warning(f"Rejected insert at ({x}, {y}): outside world boundary "
                           f"{self.index.boundary.bounds}")
        return InsertResult(accepted=accepted, point=point)

    def query_range(self, rect: RangeLike) -> QueryResult:
        """Committed results for a rectangle given as a Boundary, shapely geometry or (x, y, width, height)."""
        rect = self._resolve_range(rect)
        stats = {}

        self._start('query_range')
        with self._lock:
            points = self.index.query_range(rect, stats=stats)
        result = self.commit(QueryKind.RANGE, points, rect.to_dict())
        self._finish('query_range', result, stats)
        return result

    def query_radius(self, center, radius_meters: float) -> QueryResult:
        """Committed results within ``radius_meters`` of ``center`` (shapely Point or (x, y))."""
        max_radius = self.config.query.max_radius_meters
        if max_radius is not None and radius_meters > max_radius:
            raise ValueError(f"radius {radius_meters}m exceeds max_radius_meters={max_radius}")

        center_x, center_y = self._resolve_center(center)
        stats = {}

        self._start('query_radius')
        with self._lock:
            points = self.index.query_radius(center_x, center_y, radius_meters, stats=stats)
        query = {'center': {'x': center_x, 'y': center_y}, 'radius': radius_meters}
        result = self.commit(QueryKind.RADIUS, points, query)
        self._finish('query_radius', result, stats)
        return result

    def commit(self, kind: QueryKind, points: Sequence[GeoPoint],
               query: Optional[Dict[str, Any]] = None) -> QueryResult:
        """
        Order ``points`` and build their commitment.

        Raises CanonicalizationError when a payload cannot be serialized;
        the index is not affected.
        """
        ordered = order_results(points)
        try:
            tree = self.builder.build(ordered)
        except CanonicalizationError as e:
            logger.error(f"Commitment failed for {kind.value} query with {len(ordered)} results: {e}")
            raise

        return QueryResult(
            kind=kind,
            results=ordered,
            root=self.builder.get_root(tree),
            proofs=self.builder.get_proofs(tree),
            leaf_hashes=tree.leaves,
            query=query or {},
            algorithm=self.builder.algorithm,
        )

    def _resolve_range(self, rect: RangeLike) -> Boundary:
        if isinstance(rect, Boundary):
            return rect
        if hasattr(rect, 'bounds'):
            return Boundary.from_geometry(rect)
        x, y, width, height = rect
        return Boundary(center_x=x, center_y=y, width=width, height=height)

    def _resolve_center(self, center) -> Tuple[float, float]:
        if hasattr(center, 'x') and hasattr(center, 'y'):
            return float(center.x), float(center.y)
        x, y = center
        return float(x), float(y)

    def _start(self, operation: str):
        if self.tracker:
            self.tracker.start_operation(operation)

    def _finish(self, operation: str, result: QueryResult, stats: Dict[str, int]):
        duration = self.tracker.end_operation(operation) if self.tracker else 0.0
        nodes_visited = stats.get('nodes_visited', 0)
        if self.tracker:
            self.tracker.record_query(result.kind.value, len(result), nodes_visited, duration)
        if self.config.logging.log_queries:
            logger.info(f"{result.kind.value} query returned {len(result)} results "
                        f"({nodes_visited} nodes visited), root {result.root[:16]}")
