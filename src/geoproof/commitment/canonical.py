#!/usr/bin/env python3
"""
Canonical Serialization Module

Deterministic byte encoding of committed items. Identical logical items
always produce identical bytes: keys are sorted, separators are fixed and
floats use their shortest round-trip representation.
"""

import json
import math
from typing import Any


class CanonicalizationError(ValueError):
    """Raised when a value has no deterministic byte encoding."""


def normalize(value: Any, path: str = "$") -> Any:
    """
    Reduce ``value`` to plain JSON types.

    Objects exposing ``canonical_form()`` are replaced by its result.
    Tuples become lists. Dict keys must be strings, floats must be finite.
    """
    if hasattr(value, 'canonical_form'):
        return normalize(value.canonical_form(), path)

    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CanonicalizationError(f"{path}: non-finite float {value!r}")
        return value
    if isinstance(value, (list, tuple)):
        return [normalize(item, f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, dict):
        normalized = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise CanonicalizationError(f"{path}: non-string key {key!r}")
            normalized[key] = normalize(item, f"{path}.{key}")
        return normalized

    raise CanonicalizationError(f"{path}: cannot serialize {type(value).__name__}")


def canonicalize(value: Any) -> bytes:
    """Canonical UTF-8 JSON bytes for ``value``."""
    return json.dumps(
        normalize(value),
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=False,
        allow_nan=False,
    ).encode('utf-8')
