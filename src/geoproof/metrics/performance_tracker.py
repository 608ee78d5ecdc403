#!/usr/bin/env python3
"""
Performance Tracker Module

Timing and volume tracking for index and commitment operations.
History lists are bounded so a long-running process does not grow them
without limit.
"""

import time
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class PerformanceTracker:
    """
    Tracks operation timings and per-query statistics.

    Includes bounds checking to prevent unlimited memory growth.
    """

    def __init__(self, max_history_size: int = 1000):
        """
        Initialize performance tracker with configurable bounds.

        Args:
            max_history_size: Maximum number of entries to keep in history lists
        """
        self.max_history_size = max_history_size
        self.reset()

    def reset(self):
        """Reset all performance metrics."""
        self.start_time = time.perf_counter()
        self.operation_times = {}
        self.query_metrics = []
        self.insert_counts = {'inserted': 0, 'rejected': 0}
        self._current_ops = {}

    def start_operation(self, operation_name: str):
        """Start timing an operation."""
        if operation_name not in self.operation_times:
            self.operation_times[operation_name] = []
        self._current_ops[operation_name] = time.perf_counter()

    def end_operation(self, operation_name: str) -> float:
        """End timing an operation and return its duration (0.0 if never started)."""
        if operation_name not in self._current_ops:
            return 0.0
        duration = time.perf_counter() - self._current_ops.pop(operation_name)
        times = self.operation_times[operation_name]
        times.append(duration)

        # Bounds checking: keep only the most recent entries
        if len(times) > self.max_history_size:
            self.operation_times[operation_name] = times[-self.max_history_size:]
        return duration

    def record_insert(self, accepted: bool):
        """Count an insert outcome."""
        self.insert_counts['inserted' if accepted else 'rejected'] += 1

    def record_query(self, kind: str, result_count: int, nodes_visited: int, duration: float):
        """Record metrics for a completed query with bounds checking."""
        self.query_metrics.append({
            'kind': kind,
            'result_count': result_count,
            'nodes_visited': nodes_visited,
            'duration': duration,
        })

        if len(self.query_metrics) > self.max_history_size:
            self.query_metrics = self.query_metrics[-self.max_history_size:]

    def get_summary_stats(self) -> Dict[str, Any]:
        """Get performance summary."""
        total_time = time.perf_counter() - self.start_time

        operation_stats = {}
        for op_name, times in self.operation_times.items():
            if times:
                operation_stats[op_name] = {
                    'count': len(times),
                    'total_time': sum(times),
                    'avg_time': sum(times) / len(times),
                    'min_time': min(times),
                    'max_time': max(times),
                    'pct_total': sum(times) / total_time * 100 if total_time > 0 else 0,
                }

        query_stats = {}
        for metric in self.query_metrics:
            stats = query_stats.setdefault(metric['kind'], {
                'count': 0,
                'total_results': 0,
                'total_nodes_visited': 0,
                'total_time': 0.0,
            })
            stats['count'] += 1
            stats['total_results'] += metric['result_count']
            stats['total_nodes_visited'] += metric['nodes_visited']
            stats['total_time'] += metric['duration']
        for stats in query_stats.values():
            stats['avg_results'] = stats['total_results'] / stats['count']
            stats['avg_nodes_visited'] = stats['total_nodes_visited'] / stats['count']
            stats['avg_time'] = stats['total_time'] / stats['count']

        total_queries = len(self.query_metrics)
        return {
            'total_time': total_time,
            'total_queries': total_queries,
            'queries_per_second': total_queries / total_time if total_time > 0 else 0,
            'inserts': dict(self.insert_counts),
            'operation_stats': operation_stats,
            'query_stats': query_stats,
        }

    def log_performance_summary(self):
        """Log a human-readable performance summary."""
        stats = self.get_summary_stats()

        logger.info("=== PERFORMANCE SUMMARY ===")
        logger.info(f"Total time: {stats['total_time']:.2f}s")
        logger.info(f"Inserts: {stats['inserts']['inserted']} accepted, {stats['inserts']['rejected']} rejected")
        logger.info(f"Queries: {stats['total_queries']} ({stats['queries_per_second']:.2f}/s)")

        if stats['query_stats']:
            logger.info("Query statistics:")
            for kind, kind_stats in sorted(stats['query_stats'].items()):
                logger.info(f"  {kind}: {kind_stats['count']} queries, "
                            f"{kind_stats['avg_results']:.1f} results, "
                            f"{kind_stats['avg_nodes_visited']:.1f} nodes visited on average")

        if stats['operation_stats']:
            logger.info("Top operations by time:")
            sorted_ops = sorted(stats['operation_stats'].items(),
                                key=lambda x: x[1]['total_time'], reverse=True)
            for op_name, op_stats in sorted_ops[:5]:
                logger.info(f"  {op_name}: {op_stats['total_time']:.3f}s ({op_stats['pct_total']:.1f}%)")
