#!/usr/bin/env python3
"""
Unit tests for Configuration System.
"""

import json
import shutil
import unittest
import tempfile
import os
import sys
from unittest.mock import patch

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from geoproof.core.config import (
    GeoProofConfig, IndexConfig, QueryConfig, CommitmentConfig, PerformanceConfig,
    LoggingConfig, get_default_config, create_config_from_file, save_config_to_file
)
from geoproof.spatial.boundary import Boundary


class TestGeoProofConfig(unittest.TestCase):
    """Test cases for GeoProofConfig class."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = GeoProofConfig()

    def test_default_initialization(self):
        """Test default configuration initialization."""
        config = GeoProofConfig()

        self.assertEqual(config.index.capacity, 4)
        self.assertEqual(config.index.world_width, 360.0)
        self.assertEqual(config.index.world_height, 180.0)
        self.assertTrue(config.index.thread_safe)

        self.assertEqual(config.query.meters_per_degree, 111320.0)
        self.assertIsNone(config.query.max_radius_meters)

        self.assertEqual(config.commitment.hash_algorithm, "sha256")

        self.assertTrue(config.performance.enable_performance_tracking)
        self.assertEqual(config.performance.max_history_size, 1000)

        self.assertEqual(config.logging.log_level, "INFO")
        self.assertTrue(config.logging.log_queries)

    def test_validation_capacity(self):
        """Test validation of node capacity."""
        for capacity in (0, -3, 2.5, True):
            with self.assertRaises(ValueError):
                GeoProofConfig(index=IndexConfig(capacity=capacity))

    def test_validation_world(self):
        """Test validation of world extent."""
        with self.assertRaises(ValueError):
            GeoProofConfig(index=IndexConfig(world_width=0))

        with self.assertRaises(ValueError):
            GeoProofConfig(index=IndexConfig(world_height=-10))

    def test_validation_query_parameters(self):
        """Test validation of query parameters."""
        with self.assertRaises(ValueError):
            GeoProofConfig(query=QueryConfig(meters_per_degree=0))

        with self.assertRaises(ValueError):
            GeoProofConfig(query=QueryConfig(max_radius_meters=-1))

    def test_validation_hash_algorithm(self):
        """Test validation of the commitment hash."""
        with self.assertRaises(ValueError):
            GeoProofConfig(commitment=CommitmentConfig(hash_algorithm="md5"))

        config = GeoProofConfig(commitment=CommitmentConfig(hash_algorithm="blake2s"))
        self.assertEqual(config.commitment.hash_algorithm, "blake2s")

    def test_validation_history_size(self):
        """Test validation of tracker history size."""
        with self.assertRaises(ValueError):
            GeoProofConfig(performance=PerformanceConfig(max_history_size=0))

    def test_validation_logging_level(self):
        """Test validation of logging level."""
        with self.assertRaises(ValueError):
            GeoProofConfig(logging=LoggingConfig(log_level="INVALID"))

        # Valid levels should work, case-insensitively
        config = GeoProofConfig(logging=LoggingConfig(log_level="debug"))
        self.assertEqual(config.logging.log_level, "debug")

    def test_world_boundary(self):
        """Test the world boundary built from the index section."""
        self.assertEqual(self.config.world_boundary(), Boundary(0, 0, 360, 180))

        config = GeoProofConfig(index=IndexConfig(world_center_x=10, world_center_y=-5,
                                                  world_width=20, world_height=10))
        self.assertEqual(config.world_boundary().bounds, (0, -10, 20, 0))

    def test_to_dict_and_from_dict(self):
        """Test conversion to and from dictionary."""
        config_dict = self.config.to_dict()
        self.assertIsInstance(config_dict, dict)
        for section in ('index', 'query', 'commitment', 'performance', 'logging'):
            self.assertIn(section, config_dict)

        # Test round-trip
        new_config = GeoProofConfig.from_dict(config_dict)
        self.assertEqual(new_config, self.config)

    def test_from_dict_partial(self):
        """Missing sections and keys keep their defaults."""
        config = GeoProofConfig.from_dict({'index': {'capacity': 8}})
        self.assertEqual(config.index.capacity, 8)
        self.assertEqual(config.index.world_width, 360.0)
        self.assertEqual(config.commitment.hash_algorithm, "sha256")

        self.assertEqual(GeoProofConfig.from_dict(None), GeoProofConfig())

    def test_from_dict_unknown_key(self):
        """Unknown keys and sections are rejected by name."""
        with self.assertRaises(ValueError) as ctx:
            GeoProofConfig.from_dict({'index': {'capacty': 2}})
        self.assertIn('capacty', str(ctx.exception))
        self.assertIn('index', str(ctx.exception))

        with self.assertRaises(ValueError) as ctx:
            GeoProofConfig.from_dict({'indexes': {'capacity': 2}})
        self.assertIn('indexes', str(ctx.exception))

    def test_from_dict_null_section(self):
        """A section left empty (null in YAML) keeps its defaults."""
        config = GeoProofConfig.from_dict({'index': None, 'query': {'max_radius_meters': 10.0}})
        self.assertEqual(config.index, IndexConfig())
        self.assertEqual(config.query.max_radius_meters, 10.0)

    def test_from_dict_malformed(self):
        """Non-mapping configurations and wrongly typed values raise ValueError."""
        malformed = [
            ['index'],
            {'index': [1, 2]},
            {'index': {'world_width': 'wide'}},
            {'query': {'meters_per_degree': None}},
            {'logging': {'log_level': 5}},
        ]
        for config_dict in malformed:
            with self.assertRaises(ValueError):
                GeoProofConfig.from_dict(config_dict)

    def test_validate_compatibility(self):
        """Test configuration compatibility validation."""
        self.assertEqual(self.config.validate_compatibility(), [])

        risky = GeoProofConfig(
            index=IndexConfig(capacity=1, thread_safe=False),
            query=QueryConfig(meters_per_degree=100000),
            commitment=CommitmentConfig(hash_algorithm="sha3_256"),
        )
        warnings = risky.validate_compatibility()
        self.assertEqual(len(warnings), 4)
        self.assertTrue(any('capacity=1' in w for w in warnings))
        self.assertTrue(any('meters_per_degree' in w for w in warnings))
        self.assertTrue(any('sha3_256' in w for w in warnings))
        self.assertTrue(any('thread_safe' in w for w in warnings))

    def test_log_configuration_summary(self):
        """Test logging configuration summary."""
        with patch('geoproof.core.config.logger') as mock_logger:
            self.config.log_configuration_summary()
            mock_logger.info.assert_called()
            mock_logger.warning.assert_not_called()

        with patch('geoproof.core.config.logger') as mock_logger:
            GeoProofConfig(index=IndexConfig(capacity=1)).log_configuration_summary()
            mock_logger.warning.assert_called()


class TestConfigFileOperations(unittest.TestCase):
    """Test cases for configuration file operations."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = GeoProofConfig(index=IndexConfig(capacity=16),
                                     query=QueryConfig(max_radius_meters=50000.0))
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_save_config_to_json(self):
        """Test saving configuration to JSON file."""
        json_path = os.path.join(self.temp_dir, 'config.json')
        save_config_to_file(self.config, json_path)

        self.assertTrue(os.path.exists(json_path))

        with open(json_path, 'r') as f:
            data = json.load(f)
        self.assertEqual(data['index']['capacity'], 16)
        self.assertEqual(data['query']['max_radius_meters'], 50000.0)

    def test_create_config_from_json(self):
        """Test loading configuration from JSON file."""
        json_path = os.path.join(self.temp_dir, 'config.json')
        save_config_to_file(self.config, json_path)

        loaded_config = create_config_from_file(json_path)
        self.assertIsInstance(loaded_config, GeoProofConfig)
        self.assertEqual(loaded_config, self.config)

    def test_yaml_round_trip(self):
        """Test saving and loading YAML."""
        yaml_path = os.path.join(self.temp_dir, 'config.yml')
        save_config_to_file(self.config, yaml_path)

        loaded_config = create_config_from_file(yaml_path)
        self.assertEqual(loaded_config.index.capacity, 16)
        self.assertEqual(loaded_config, self.config)

    def test_create_config_from_nonexistent_file(self):
        """Test loading from nonexistent file."""
        nonexistent_path = os.path.join(self.temp_dir, 'nonexistent.json')
        with self.assertRaises(FileNotFoundError):
            create_config_from_file(nonexistent_path)

    def test_invalid_file_extension(self):
        """Test loading from file with invalid extension."""
        invalid_path = os.path.join(self.temp_dir, 'config.txt')
        with open(invalid_path, 'w') as f:
            f.write('invalid')

        with self.assertRaises(ValueError):
            create_config_from_file(invalid_path)

        with self.assertRaises(ValueError):
            save_config_to_file(self.config, invalid_path)

    def test_invalid_values_in_file(self):
        """Validation also applies to loaded files."""
        json_path = os.path.join(self.temp_dir, 'config.json')
        with open(json_path, 'w') as f:
            json.dump({'commitment': {'hash_algorithm': 'sha1'}}, f)

        with self.assertRaises(ValueError):
            create_config_from_file(json_path)

    def test_malformed_files(self):
        """Unparseable JSON and YAML raise ValueError."""
        json_path = os.path.join(self.temp_dir, 'config.json')
        with open(json_path, 'w') as f:
            f.write('{"index": ')
        with self.assertRaises(ValueError):
            create_config_from_file(json_path)

        yaml_path = os.path.join(self.temp_dir, 'config.yaml')
        with open(yaml_path, 'w') as f:
            f.write('index: [capacity: 2\n')
        with self.assertRaises(ValueError):
            create_config_from_file(yaml_path)

    def test_yaml_null_section(self):
        """An empty YAML section keeps its defaults."""
        yaml_path = os.path.join(self.temp_dir, 'config.yaml')
        with open(yaml_path, 'w') as f:
            f.write('index:\ncommitment:\n  hash_algorithm: blake2s\n')

        config = create_config_from_file(yaml_path)
        self.assertEqual(config.index.capacity, 4)
        self.assertEqual(config.commitment.hash_algorithm, 'blake2s')

    def test_yaml_missing_yaml(self):
        """Test YAML operations when PyYAML is not available."""
        yaml_path = os.path.join(self.temp_dir, 'config.yaml')

        # Mock yaml import to raise ImportError
        with patch.dict('sys.modules', {'yaml': None}):
            with self.assertRaises(ImportError):
                save_config_to_file(self.config, yaml_path)

            # Create a YAML file manually for loading test
            with open(yaml_path, 'w') as f:
                f.write('index:\n  capacity: 8\n')

            with self.assertRaises(ImportError):
                create_config_from_file(yaml_path)


class TestGlobalFunctions(unittest.TestCase):
    """Test cases for global configuration functions."""

    def test_get_default_config(self):
        """Test getting default configuration."""
        config = get_default_config()
        self.assertIsInstance(config, GeoProofConfig)
        self.assertEqual(config.index.capacity, 4)


if __name__ == '__main__':
    unittest.main()
