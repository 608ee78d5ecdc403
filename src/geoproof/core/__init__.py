"""
Core Module

This module provides configuration and the query coordinator that ties
the spatial index to result commitments.
"""

from .config import GeoProofConfig, get_default_config
from .coordinator import QueryCoordinator, order_results

__all__ = [
    'GeoProofConfig',
    'get_default_config',
    'QueryCoordinator',
    'order_results',
]
