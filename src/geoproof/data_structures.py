#!/usr/bin/env python3
"""
GeoProof Data Structures

Immutable records exchanged between the spatial index, the commitment
builder and callers: stored points, insert outcomes and committed query
results.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from shapely.geometry import Point

from .commitment.merkle_tree import empty_root, hash_leaf, verify_proof


def normalize_timestamp(value: datetime) -> datetime:
    """
    Normalise a timestamp to UTC with millisecond precision.

    Naive datetimes are taken as UTC. Millisecond precision is what the
    ISO-8601 wire form carries, so a decoded point hashes like the original.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return normalize_timestamp(value).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(text: str) -> datetime:
    """Inverse of :func:`format_timestamp`."""
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return normalize_timestamp(datetime.fromisoformat(text))


def is_coordinate(value: Any) -> bool:
    """True for JSON numbers; strings and booleans are not coordinates."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class QueryKind(Enum):
    """Shapes of spatial query."""
    RANGE = "range"
    RADIUS = "radius"


@dataclass(frozen=True)
class GeoPoint:
    """
    A point stored in the spatial index.

    ``payload`` is opaque to the index; it only has to be representable by
    the canonical serializer when the point is committed. ``sequence`` is the
    index size when the point was inserted and only breaks timestamp ties.
    """
    x: float
    y: float
    payload: Any = None
    inserted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sequence: int = 0

    def __post_init__(self):
        """Coerce coordinates and timestamp to their canonical types."""
        object.__setattr__(self, 'x', float(self.x))
        object.__setattr__(self, 'y', float(self.y))
        object.__setattr__(self, 'inserted_at', normalize_timestamp(self.inserted_at))

    @property
    def geometry(self) -> Point:
        return Point(self.x, self.y)

    def canonical_form(self) -> Dict[str, Any]:
        """Fields that identify the point in a commitment."""
        return {
            'x': self.x,
            'y': self.y,
            'payload': self.payload,
            'inserted_at': format_timestamp(self.inserted_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        return self.canonical_form()


@dataclass(frozen=True)
class InsertResult:
    """Outcome of an insert request."""
    accepted: bool
    point: GeoPoint

    @property
    def status(self) -> str:
        return "inserted" if self.accepted else "rejected"

    def to_dict(self) -> Dict[str, Any]:
        return {'status': self.status, 'point': self.point.to_dict()}


@dataclass(frozen=True)
class QueryResult:
    """
    Ordered query results with their commitment.

    ``proofs[i]`` and ``leaf_hashes[i]`` belong to ``results[i]``.
    """
    kind: QueryKind
    results: List[GeoPoint]
    root: str
    proofs: List[List[str]]
    leaf_hashes: List[str]
    query: Dict[str, Any] = field(default_factory=dict)
    algorithm: str = "sha256"

    def __post_init__(self):
        if len(self.proofs) != len(self.results) or len(self.leaf_hashes) != len(self.results):
            raise ValueError(
                f"QueryResult: {len(self.results)} results but {len(self.proofs)} proofs "
                f"and {len(self.leaf_hashes)} leaf hashes"
            )

    def __len__(self) -> int:
        return len(self.results)

    @property
    def center(self) -> Optional[Dict[str, float]]:
        return self.query.get('center')

    @property
    def radius(self) -> Optional[float]:
        return self.query.get('radius')

    def verify(self) -> bool:
        """Recompute every leaf from its point and check its proof against the root."""
        if not self.results:
            return self.root.lower() == empty_root(self.algorithm)
        for index, (point, proof) in enumerate(zip(self.results, self.proofs)):
            leaf = hash_leaf(point, self.algorithm)
            if not verify_proof(leaf, index, proof, self.root,
                                algorithm=self.algorithm, leaf_count=len(self.results)):
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            'kind': self.kind.value,
            'results': [point.to_dict() for point in self.results],
            'root': self.root,
            'proofs': [list(proof) for proof in self.proofs],
            'leaf_hashes': list(self.leaf_hashes),
            'algorithm': self.algorithm,
        }
        if self.kind == QueryKind.RANGE:
            payload['range'] = dict(self.query)
        else:
            payload['center'] = dict(self.query.get('center', {}))
            payload['radius'] = self.query.get('radius')
        return payload
