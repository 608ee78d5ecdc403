#!/usr/bin/env python3
"""
Configuration System for GeoProof

Centralized configuration for the spatial index, query conversion,
commitments, performance tracking and logging. Provides typed sections
with validation and defaults.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from ..commitment.merkle_tree import SUPPORTED_ALGORITHMS
from ..spatial.boundary import METERS_PER_DEGREE, Boundary

logger = logging.getLogger(__name__)


@dataclass
class IndexConfig:
    """Configuration for the quadtree and its world boundary."""
    capacity: int = 4
    world_center_x: float = 0.0
    world_center_y: float = 0.0
    world_width: float = 360.0   # longitude span
    world_height: float = 180.0  # latitude span
    thread_safe: bool = True


@dataclass
class QueryConfig:
    """Configuration for query shapes."""
    meters_per_degree: float = METERS_PER_DEGREE
    max_radius_meters: Optional[float] = None


@dataclass
class CommitmentConfig:
    """Configuration for result commitments."""
    hash_algorithm: str = "sha256"


@dataclass
class PerformanceConfig:
    """Configuration for performance tracking."""
    enable_performance_tracking: bool = True
    max_history_size: int = 1000


@dataclass
class LoggingConfig:
    """Configuration for logging and debugging."""
    log_level: str = "INFO"
    log_queries: bool = True


_SECTIONS = {
    'index': IndexConfig,
    'query': QueryConfig,
    'commitment': CommitmentConfig,
    'performance': PerformanceConfig,
    'logging': LoggingConfig,
}


@dataclass
class GeoProofConfig:
    """
    Master configuration class.

    Groups every section and validates them together on creation.
    """
    index: IndexConfig = field(default_factory=IndexConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    commitment: CommitmentConfig = field(default_factory=CommitmentConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_config()

    def _validate_config(self):
        """Validate configuration parameters."""
        capacity = self.index.capacity
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ValueError("capacity must be a positive integer")
        if self.index.world_width <= 0 or self.index.world_height <= 0:
            raise ValueError("world_width and world_height must be positive")

        if self.query.meters_per_degree <= 0:
            raise ValueError("meters_per_degree must be positive")
        if self.query.max_radius_meters is not None and self.query.max_radius_meters <= 0:
            raise ValueError("max_radius_meters must be positive when set")

        if self.commitment.hash_algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"hash_algorithm must be one of {list(SUPPORTED_ALGORITHMS)}")

        if self.performance.max_history_size <= 0:
            raise ValueError("max_history_size must be positive")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging.log_level.upper() not in valid_log_levels:
            raise ValueError(f"log_level must be one of {valid_log_levels}")

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'GeoProofConfig':
        """
        Create configuration from dictionary.

        Missing or empty sections and keys fall back to their defaults.
        Unknown sections or keys raise ValueError.
        """
        config_dict = config_dict or {}
        if not isinstance(config_dict, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(config_dict).__name__}")

        unknown_sections = set(config_dict) - set(_SECTIONS)
        if unknown_sections:
            raise ValueError(f"Unknown configuration sections: {sorted(map(str, unknown_sections))}")

        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = config_dict.get(name)
            if values is None:
                values = {}
            if not isinstance(values, dict):
                raise ValueError(f"Configuration section '{name}' must be a mapping")
            unknown_keys = set(values) - {f.name for f in fields(section_cls)}
            if unknown_keys:
                raise ValueError(f"Unknown keys in configuration section '{name}': "
                                 f"{sorted(map(str, unknown_keys))}")
            sections[name] = section_cls(**values)

        try:
            return cls(**sections)
        except (AttributeError, TypeError) as e:
            # Wrongly typed values fail the comparisons in _validate_config
            raise ValueError(f"Invalid configuration value: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'index': asdict(self.index),
            'query': asdict(self.query),
            'commitment': asdict(self.commitment),
            'performance': asdict(self.performance),
            'logging': asdict(self.logging),
        }

    def world_boundary(self) -> Boundary:
        """World extent of the spatial index."""
        return Boundary(
            center_x=self.index.world_center_x,
            center_y=self.index.world_center_y,
            width=self.index.world_width,
            height=self.index.world_height,
        )

    def validate_compatibility(self) -> List[str]:
        """
        Validate configuration compatibility and return warnings.

        Returns list of warning messages for potential issues.
        """
        warnings = []

        if self.index.capacity == 1:
            warnings.append("capacity=1 subdivides on every second insert and builds very deep trees")

        if self.query.meters_per_degree != METERS_PER_DEGREE:
            warnings.append(
                f"meters_per_degree={self.query.meters_per_degree} differs from {METERS_PER_DEGREE}; "
                "radius query results will not match other deployments"
            )

        if self.commitment.hash_algorithm != "sha256":
            warnings.append(
                f"hash_algorithm={self.commitment.hash_algorithm}; verifiers must be configured to match"
            )

        if not self.index.thread_safe:
            warnings.append("thread_safe disabled; the index must not be shared between threads")

        return warnings

    def log_configuration_summary(self):
        """Log a summary of the current configuration."""
        logger.info("=== GEOPROOF CONFIGURATION SUMMARY ===")
        logger.info(f"Index: capacity={self.index.capacity}, world={self.world_boundary().bounds}")
        logger.info(f"Query: meters_per_degree={self.query.meters_per_degree}, "
                    f"max_radius_meters={self.query.max_radius_meters}")
        logger.info(f"Commitment: hash_algorithm={self.commitment.hash_algorithm}")
        logger.info(f"Performance: tracking={self.performance.enable_performance_tracking}")

        warnings = self.validate_compatibility()
        if warnings:
            logger.warning("Configuration warnings:")
            for warning in warnings:
                logger.warning(f"  - {warning}")


# Global default configuration instance
DEFAULT_CONFIG = GeoProofConfig()


def get_default_config() -> GeoProofConfig:
    """Get default configuration instance."""
    return DEFAULT_CONFIG


def create_config_from_file(config_path: str) -> GeoProofConfig:
    """
    Create configuration from YAML or JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        GeoProofConfig instance
    """
    import os
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if config_path.endswith('.yaml') or config_path.endswith('.yml'):
        try:
            import yaml
        except ImportError:
            raise ImportError("PyYAML required for YAML configuration files")
        with open(config_path, 'r') as f:
            try:
                config_dict = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    elif config_path.endswith('.json'):
        import json
        with open(config_path, 'r') as f:
            config_dict = json.load(f)
    else:
        raise ValueError("Configuration file must be .yaml, .yml, or .json")

    return GeoProofConfig.from_dict(config_dict)


def save_config_to_file(config: GeoProofConfig, config_path: str):
    """
    Save configuration to YAML or JSON file.

    Args:
        config: Configuration to save
        config_path: Path to save configuration
    """
    config_dict = config.to_dict()

    if config_path.endswith('.yaml') or config_path.endswith('.yml'):
        try:
            import yaml
        except ImportError:
            raise ImportError("PyYAML required for YAML configuration files")
        with open(config_path, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False)
    elif config_path.endswith('.json'):
        import json
        with open(config_path, 'w') as f:
            json.dump(config_dict, f, indent=2)
    else:
        raise ValueError("Configuration file must be .yaml, .yml, or .json")
