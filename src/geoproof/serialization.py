#!/usr/bin/env python3
"""
Result Serialization Utilities

Save and load committed query results, and verify decoded payloads the
way a remote client would: from plain JSON values only.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from .commitment.merkle_tree import DEFAULT_ALGORITHM, SUPPORTED_ALGORITHMS, empty_root, hash_leaf, verify_proof
from .data_structures import (
    GeoPoint, InsertResult, QueryKind, QueryResult, format_timestamp, is_coordinate, parse_timestamp
)
from .spatial.boundary import Boundary

logger = logging.getLogger(__name__)


class ResultEncoder(json.JSONEncoder):
    """Custom JSON encoder for GeoProof objects."""

    def default(self, obj):
        if isinstance(obj, QueryResult):
            return {'_type': 'QueryResult', **obj.to_dict()}
        elif isinstance(obj, (GeoPoint, InsertResult, Boundary)):
            return obj.to_dict()
        elif isinstance(obj, QueryKind):
            return obj.value
        elif isinstance(obj, datetime):
            return format_timestamp(obj)
        else:
            return super().default(obj)


def point_from_dict(data: Dict[str, Any], sequence: int = 0) -> GeoPoint:
    """
    Rebuild a GeoPoint from its wire form.

    Coordinates must be JSON numbers; a string or boolean would be coerced
    to the committed float and verify as if unchanged.
    """
    if not is_coordinate(data['x']) or not is_coordinate(data['y']):
        raise ValueError(f"point coordinates must be numbers, got x={data['x']!r}, y={data['y']!r}")
    return GeoPoint(
        x=data['x'],
        y=data['y'],
        payload=data.get('payload'),
        inserted_at=parse_timestamp(data['inserted_at']),
        sequence=sequence,
    )


def result_from_dict(data: Dict[str, Any]) -> QueryResult:
    """Rebuild a QueryResult from its wire form."""
    kind = QueryKind(data['kind'])
    results = data['results']
    # Results are newest first, so the first point gets the highest sequence
    points = [point_from_dict(item, sequence=len(results) - i - 1) for i, item in enumerate(results)]

    if kind == QueryKind.RANGE:
        query = dict(data.get('range', {}))
    else:
        query = {'center': dict(data.get('center', {})), 'radius': data.get('radius')}

    return QueryResult(
        kind=kind,
        results=points,
        root=data['root'],
        proofs=[list(proof) for proof in data['proofs']],
        leaf_hashes=list(data['leaf_hashes']),
        query=query,
        algorithm=data.get('algorithm', DEFAULT_ALGORITHM),
    )


def result_decoder(obj: Dict[str, Any]):
    """Custom JSON decoder hook for QueryResult objects."""
    if obj.get('_type') == 'QueryResult':
        return result_from_dict(obj)
    return obj


def save_result(result: QueryResult, filepath: str) -> None:
    """
    Save a QueryResult to a JSON file.

    Args:
        result: The result to save
        filepath: Path to save to
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(result, f, cls=ResultEncoder, indent=2)


def load_result(filepath: str) -> QueryResult:
    """
    Load a QueryResult from a JSON file.

    Args:
        filepath: Path to load from

    Returns:
        The loaded QueryResult
    """
    with open(Path(filepath), 'r') as f:
        loaded = json.load(f, object_hook=result_decoder)

    if not isinstance(loaded, QueryResult):
        raise ValueError(f"{filepath} does not contain a saved query result")
    return loaded


def verify_result_payload(payload: Dict[str, Any]) -> bool:
    """
    Verify every proof in a decoded result payload.

    Each result is recanonicalized from its wire form, so a payload whose
    items, leaf hashes, proofs or root were altered fails.
    """
    try:
        results = payload['results']
        proofs = payload['proofs']
        root = payload['root']
        algorithm = payload.get('algorithm', DEFAULT_ALGORITHM)
        leaf_hashes = payload.get('leaf_hashes')
    except (KeyError, TypeError) as e:
        logger.warning(f"Malformed result payload: {e}")
        return False

    if not isinstance(results, list) or not isinstance(proofs, list) or not isinstance(root, str):
        logger.warning("Malformed result payload: results and proofs must be lists, root a string")
        return False
    if leaf_hashes is not None and not isinstance(leaf_hashes, list):
        logger.warning("Malformed result payload: leaf_hashes must be a list")
        return False
    if not all(isinstance(proof, list) and all(isinstance(h, str) for h in proof) for proof in proofs):
        logger.warning("Malformed result payload: proofs must be lists of hex strings")
        return False
    if len(proofs) != len(results):
        logger.warning(f"Payload has {len(results)} results but {len(proofs)} proofs")
        return False
    if leaf_hashes is not None and len(leaf_hashes) != len(results):
        logger.warning(f"Payload has {len(results)} results but {len(leaf_hashes)} leaf hashes")
        return False

    if algorithm not in SUPPORTED_ALGORITHMS:
        logger.warning(f"Unsupported hash algorithm {algorithm!r}")
        return False
    if not results:
        if root.lower() != empty_root(algorithm):
            logger.warning("Empty result does not commit to the empty root")
            return False
        return True

    for index, (item, proof) in enumerate(zip(results, proofs)):
        try:
            leaf = hash_leaf(point_from_dict(item), algorithm)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Result {index} cannot be canonicalized: {e}")
            return False

        if leaf_hashes is not None and leaf_hashes[index] != leaf:
            logger.warning(f"Result {index} does not match its leaf hash")
            return False
        if not verify_proof(leaf, index, proof, root, algorithm=algorithm, leaf_count=len(results)):
            logger.warning(f"Proof for result {index} does not lead to root {root[:16]}")
            return False

    return True


def save_result_summary(result: QueryResult, filepath: str) -> None:
    """
    Save a human-readable summary of a query result.

    Args:
        result: The result to summarize
        filepath: Path to save summary to
    """
    summary = f"""Query Result Summary
====================

Query Type: {result.kind.value}
Parameters: {result.query}
Results: {len(result)}
Root: {result.root}
Algorithm: {result.algorithm}

Points:
"""

    for index, point in enumerate(result.results):
        summary += (f"- [{index}] ({point.x}, {point.y}) at {format_timestamp(point.inserted_at)}"
                    f", proof length {len(result.proofs[index])}\n")

    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w') as f:
        f.write(summary)
