#!/usr/bin/env python3
"""
GeoProof CLI
============

Load points into a quadtree index, run a committed query, and verify saved
results.

Usage Examples
--------------

Range query over a rectangle centred at (0, 0), 40 wide and 20 high:
    geoproof query --points places.json --range 0 0 40 20

Radius query around "lat,lon" (latitude first):
    geoproof query --points places.json --radius 5000 --center "48.85,2.35" \
        --output result.json

Radius query around raw index coordinates:
    geoproof query --points places.json --radius 5000 --xy 2.35 48.85

Verify a saved result:
    geoproof verify result.json

Points files hold a JSON list of objects with ``x`` and ``y``. The
``payload`` key is stored as is; entries without one store their remaining
keys (for example ``{"x": 2.35, "y": 48.85, "name": "Paris"}``).
"""

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .core.config import GeoProofConfig, create_config_from_file
from .core.coordinator import QueryCoordinator
from .data_structures import is_coordinate
from .serialization import ResultEncoder, save_result, verify_result_payload

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for the command line.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path to write logs
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    # Logs go to stderr so stdout carries only the JSON payload
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True,
    )


def parse_coordinate_pair(text: str) -> Tuple[float, float]:
    """
    Parse ``"lat,lon"`` into index coordinates ``(x, y) = (lon, lat)``.

    Raises ValueError("Invalid coordinates") for anything else.
    """
    parts = text.split(',')
    if len(parts) != 2:
        raise ValueError("Invalid coordinates")
    try:
        lat, lon = (float(part) for part in parts)
    except ValueError:
        raise ValueError("Invalid coordinates") from None
    if math.isnan(lat) or math.isnan(lon):
        raise ValueError("Invalid coordinates")
    return lon, lat


def load_points(filepath: str) -> List[Dict[str, Any]]:
    """
    Load point records from a JSON file.

    Returns dicts with ``x``, ``y`` and ``payload`` keys.
    """
    with open(filepath, 'r') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{filepath}: expected a JSON list of points")

    records = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict) or 'x' not in entry or 'y' not in entry:
            raise ValueError(f"{filepath}: entry {i} needs 'x' and 'y'")
        if not is_coordinate(entry['x']) or not is_coordinate(entry['y']):
            raise ValueError(f"{filepath}: entry {i} coordinates must be numbers, "
                             f"got x={entry['x']!r}, y={entry['y']!r}")
        if 'payload' in entry:
            payload = entry['payload']
        else:
            payload = {k: v for k, v in entry.items() if k not in ('x', 'y')} or None
        records.append({'x': entry['x'], 'y': entry['y'], 'payload': payload})
    return records


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='geoproof',
        description="Committed spatial queries over a quadtree index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    logging_group = parser.add_argument_group('Logging')
    logging_group.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='WARNING',
        help='Logging level (default: WARNING)'
    )
    logging_group.add_argument(
        '--log-file',
        type=str,
        help='Optional file to write logs'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    query = subparsers.add_parser('query', help='Load points and run a committed query')
    query.add_argument('--points', required=True, help='JSON file with points to insert')
    query.add_argument('--config', help='Configuration file (.json, .yaml or .yml)')
    query.add_argument('--output', '-o', help='Write the result to this file instead of stdout')

    shape = query.add_mutually_exclusive_group(required=True)
    shape.add_argument(
        '--range',
        nargs=4,
        type=float,
        metavar=('X', 'Y', 'WIDTH', 'HEIGHT'),
        help='Rectangle centred at (X, Y)'
    )
    shape.add_argument(
        '--radius',
        type=float,
        metavar='METERS',
        help='Radius in metres; requires --center or --xy'
    )

    center = query.add_mutually_exclusive_group()
    center.add_argument('--center', help='Radius centre as "LAT,LON"')
    center.add_argument('--xy', nargs=2, type=float, metavar=('X', 'Y'),
                        help='Radius centre in index coordinates')

    verify = subparsers.add_parser('verify', help='Verify every proof in a saved result')
    verify.add_argument('result', help='Result file written by "geoproof query"')

    return parser


def run_query(args) -> int:
    """Execute the ``query`` subcommand."""
    config = create_config_from_file(args.config) if args.config else GeoProofConfig()
    config.log_configuration_summary()

    if args.radius is not None:
        if args.center:
            center = parse_coordinate_pair(args.center)
        elif args.xy:
            center = tuple(args.xy)
        else:
            logger.error("--radius requires --center or --xy")
            return 1

    coordinator = QueryCoordinator.from_config(config)
    records = load_points(args.points)
    rejected = 0
    for record in records:
        if not coordinator.insert(record['x'], record['y'], record['payload']).accepted:
            rejected += 1
    logger.info(f"Loaded {len(records) - rejected} points from {args.points} ({rejected} rejected)")

    if args.range is not None:
        result = coordinator.query_range(tuple(args.range))
    else:
        result = coordinator.query_radius(center, args.radius)

    if args.output:
        save_result(result, args.output)
        logger.info(f"Saved {len(result)} results to {args.output}")
    else:
        json.dump(result, sys.stdout, cls=ResultEncoder, indent=2)
        sys.stdout.write('\n')

    if coordinator.tracker:
        coordinator.tracker.log_performance_summary()
    return 0


def run_verify(args) -> int:
    """Execute the ``verify`` subcommand."""
    with open(Path(args.result), 'r') as f:
        payload = json.load(f)

    if verify_result_payload(payload):
        print(f"OK: {len(payload['results'])} results verified against root {payload['root']}")
        return 0

    print("FAILED: result does not match its commitment")
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the GeoProof CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    try:
        if args.command == 'query':
            return run_query(args)
        return run_verify(args)
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
