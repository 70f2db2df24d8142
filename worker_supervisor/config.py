"""Configuration classes for worker supervision."""

from decimal import Decimal
import math
import numbers
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_ENVIRONMENT = 'production'
DEFAULT_MONITOR_BINARY = 'monit'
DEFAULT_MONITOR_BASEDIR = '/etc/monit/conf.d'

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def coerce_process_count(value: Any) -> int:
    """Coerce a caller-supplied process count to an integer of at least 1.

    Strings use their leading integer ("2 workers" gives 2), real numbers
    are truncated, NaN, infinities and anything else non-numeric count as 1.

    Args:
        value: Raw process count

    Returns:
        Effective process count
    """
    if isinstance(value, bool) or value is None:
        return 1
    if isinstance(value, (numbers.Real, Decimal)):
        try:
            if not math.isfinite(value):
                return 1
            count = int(value)
        except (TypeError, ValueError, OverflowError):
            return 1
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        count = int(match.group(1)) if match else 0
    else:
        return 1
    return max(count, 1)


def normalize_configs(configs: Any) -> List[Dict[str, Any]]:
    """Wrap the per-process config payload into a non-empty list.

    Args:
        configs: None, a single mapping, or a list of mappings

    Returns:
        List of config mappings

    Raises:
        TypeError: If configs is not a mapping or list of mappings
    """
    if configs is None:
        return [{}]
    if isinstance(configs, dict):
        return [configs]
    if isinstance(configs, (list, tuple)):
        if not configs:
            return [{}]
        for item in configs:
            if item is not None and not isinstance(item, dict):
                raise TypeError(
                    "Process configs must be mappings, got "
                    f"{type(item).__name__}"
                )
        return [item or {} for item in configs]
    raise TypeError(
        "Process config must be a mapping or a list of mappings"
    )


@dataclass
class AppConfig:
    """Application identity and deployment layout."""
    shortname: Optional[str] = None
    deploy_to: Optional[str] = None
    environment: str = DEFAULT_ENVIRONMENT

    def __post_init__(self):
        """Validate application configuration."""
        if not self.shortname:
            raise ValueError("Application shortname cannot be empty")
        if not self.deploy_to:
            self.deploy_to = os.path.join('/srv/www', self.shortname)
        if not self.environment:
            self.environment = DEFAULT_ENVIRONMENT


@dataclass
class WorkerConfig:
    """Worker pool configuration."""
    process_count: Any = 1
    require: Optional[str] = None
    config: Any = None

    def __post_init__(self):
        """Normalize worker configuration."""
        self.process_count = coerce_process_count(self.process_count)
        self.config = normalize_configs(self.config)
        if self.require is not None:
            self.require = str(self.require).strip()


@dataclass
class DeployerConfig:
    """Identity and environment the worker commands run with."""
    user: Optional[str] = None
    group: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate deployer configuration."""
        if self.environment is None:
            self.environment = {}
        if not isinstance(self.environment, dict):
            raise TypeError("Deployer environment must be a mapping")
        self.environment = {
            str(key): str(value) for key, value in self.environment.items()
        }


@dataclass
class MonitorConfig:
    """Monitor daemon settings."""
    binary: str = DEFAULT_MONITOR_BINARY
    basedir: str = DEFAULT_MONITOR_BASEDIR

    def __post_init__(self):
        """Validate monitor configuration."""
        if not self.binary:
            raise ValueError("Monitor binary cannot be empty")
        if not self.basedir:
            raise ValueError("Monitor basedir cannot be empty")


def _section(value, section_cls, name):
    if value is None:
        value = {}
    if isinstance(value, dict):
        return section_cls(**value)
    if isinstance(value, section_cls):
        return value
    raise TypeError(
        f"{name.capitalize()} configuration must be a dict or "
        f"{section_cls.__name__}"
    )


@dataclass
class Config:
    """Configuration for one application's worker pool."""
    app: AppConfig
    worker: WorkerConfig
    deployer: DeployerConfig
    monitor: MonitorConfig

    def __init__(self, **kwargs):
        """Initialize configuration.

        Args:
            **kwargs: Configuration sections 'app', 'worker', 'deployer'
                and 'monitor'

        Raises:
            ValueError: If configuration is invalid
            TypeError: If configuration type is invalid
        """
        if 'app' not in kwargs:
            raise ValueError("Application configuration is required")
        self.app = _section(kwargs.get('app'), AppConfig, 'application')
        self.worker = _section(kwargs.get('worker'), WorkerConfig, 'worker')
        self.deployer = _section(
            kwargs.get('deployer'), DeployerConfig, 'deployer'
        )
        self.monitor = _section(
            kwargs.get('monitor'), MonitorConfig, 'monitor'
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config object

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if not os.path.isfile(config_path):
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError(f"Config file is not a mapping: {config_path}")
        return cls(**config_data)
