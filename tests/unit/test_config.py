"""Unit tests for configuration module."""

from decimal import Decimal
from fractions import Fraction
import os
import shutil
import tempfile
import unittest

import yaml

from worker_supervisor.config import (
    Config, WorkerConfig, coerce_process_count, normalize_configs
)


class TestConfig(unittest.TestCase):
    """Test cases for Config class."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_load_config_from_file(self):
        """Test loading configuration from YAML file."""
        config_path = os.path.join(self.test_dir, 'config.yaml')
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write(
                '''
app:
  shortname: blog
  deploy_to: /srv/www/blog
  environment: staging
worker:
  process_count: "3"
  require: lib/worker.rb
  config:
    - {concurrency: 5}
    - {concurrency: 10}
    - {concurrency: 15}
deployer:
  user: deploy
  group: www-data
  environment:
    LANG: C.UTF-8
monitor:
  basedir: /etc/monit.d
'''
            )

        config = Config.from_yaml(config_path)
        self.assertEqual(config.app.shortname, 'blog')
        self.assertEqual(config.app.deploy_to, '/srv/www/blog')
        self.assertEqual(config.app.environment, 'staging')
        self.assertEqual(config.worker.process_count, 3)
        self.assertEqual(config.worker.require, 'lib/worker.rb')
        self.assertEqual(len(config.worker.config), 3)
        self.assertEqual(config.deployer.user, 'deploy')
        self.assertEqual(config.deployer.environment, {'LANG': 'C.UTF-8'})
        self.assertEqual(config.monitor.binary, 'monit')
        self.assertEqual(config.monitor.basedir, '/etc/monit.d')

    def test_load_config_missing_file(self):
        """Test loading configuration from non-existent file."""
        with self.assertRaises(FileNotFoundError):
            Config.from_yaml('/nonexistent/config.yaml')

    def test_load_config_not_a_mapping(self):
        """Test loading a YAML file that is not a mapping."""
        config_path = os.path.join(self.test_dir, 'config.yaml')
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write('- just\n- a list\n')
        with self.assertRaises(ValueError):
            Config.from_yaml(config_path)

    def test_defaults(self):
        """Test defaults applied when only the app shortname is given."""
        config = Config(app={'shortname': 'blog'})
        self.assertEqual(config.app.deploy_to, '/srv/www/blog')
        self.assertEqual(config.app.environment, 'production')
        self.assertEqual(config.worker.process_count, 1)
        self.assertEqual(config.worker.config, [{}])
        self.assertIsNone(config.deployer.user)
        self.assertEqual(config.monitor.binary, 'monit')

    def test_missing_app(self):
        """Test that the application section is required."""
        with self.assertRaises(ValueError):
            Config(worker={'process_count': 2})
        with self.assertRaises(ValueError):
            Config(app={'deploy_to': '/srv/www/blog'})

    def test_invalid_section_type(self):
        """Test that sections must be mappings."""
        with self.assertRaises(TypeError):
            Config(app={'shortname': 'blog'}, worker=['not', 'a', 'dict'])

    def test_section_objects_accepted(self):
        """Test passing section dataclasses directly."""
        worker = WorkerConfig(process_count=2, config={'queues': ['default']})
        config = Config(app={'shortname': 'blog'}, worker=worker)
        self.assertIs(config.worker, worker)
        self.assertEqual(config.worker.config, [{'queues': ['default']}])


class TestProcessCount(unittest.TestCase):
    """Test cases for process count coercion."""

    def test_positive_values(self):
        """Test valid counts pass through."""
        self.assertEqual(coerce_process_count(3), 3)
        self.assertEqual(coerce_process_count('4'), 4)
        self.assertEqual(coerce_process_count(2.9), 2)
        self.assertEqual(coerce_process_count(' 2 workers'), 2)

    def test_non_positive_values(self):
        """Test counts of zero or less become 1."""
        for value in (0, -1, -20, '0', '-3', 0.5):
            with self.subTest(value=value):
                self.assertEqual(coerce_process_count(value), 1)

    def test_non_finite_values(self):
        """Test NaN and infinite counts become 1."""
        for value in (float('nan'), float('inf'), float('-inf'),
                      Decimal('NaN'), Decimal('Infinity')):
            with self.subTest(value=value):
                self.assertEqual(coerce_process_count(value), 1)

    def test_other_real_numbers(self):
        """Test decimals and fractions are truncated like floats."""
        self.assertEqual(coerce_process_count(Decimal('3')), 3)
        self.assertEqual(coerce_process_count(Decimal('2.7')), 2)
        self.assertEqual(coerce_process_count(Fraction(7, 2)), 3)

    def test_yaml_nan_count(self):
        """Test a YAML .nan process count falls back to one process."""
        worker = WorkerConfig(process_count=yaml.safe_load('.nan'))
        self.assertEqual(worker.process_count, 1)

    def test_non_numeric_values(self):
        """Test non-numeric counts become 1."""
        for value in (None, '', 'many', [], {}, True):
            with self.subTest(value=value):
                self.assertEqual(coerce_process_count(value), 1)


class TestNormalizeConfigs(unittest.TestCase):
    """Test cases for config payload normalisation."""

    def test_wraps_mapping(self):
        self.assertEqual(normalize_configs({'a': 1}), [{'a': 1}])

    def test_empty_input(self):
        self.assertEqual(normalize_configs(None), [{}])
        self.assertEqual(normalize_configs([]), [{}])

    def test_list_kept(self):
        self.assertEqual(
            normalize_configs([{'a': 1}, None]), [{'a': 1}, {}]
        )

    def test_invalid_payload(self):
        with self.assertRaises(TypeError):
            normalize_configs('concurrency: 5')
        with self.assertRaises(TypeError):
            normalize_configs([{'a': 1}, 'b'])


if __name__ == '__main__':
    unittest.main()
