"""
Performance Metrics Module

This module provides timing and volume tracking for index and
commitment operations.
"""

from .performance_tracker import PerformanceTracker

__all__ = [
    'PerformanceTracker',
]
