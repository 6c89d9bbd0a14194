"""
Configuration management and loading.

Handles application settings and environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Optional

import yaml

from gas_optimizer.core.baseline import DEFAULT_BASELINES
from gas_optimizer.storage.db import DEFAULT_DB_PATH, default_db_path


@dataclass(frozen=True)
class OptimizerConfig:
    """Complete optimizer configuration."""
    administrators: FrozenSet[str]
    baselines: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_BASELINES))
    analysis_fee: int = 0
    database: str = field(default_factory=default_db_path)

    def __post_init__(self):
        """Validate configuration values."""
        if self.analysis_fee < 0:
            raise ValueError("analysis_fee must be >= 0")
        for category, gas in self.baselines.items():
            if gas < 0:
                raise ValueError(f"baseline for '{category}' must be >= 0")

    def is_administrator(self, account: Optional[str]) -> bool:
        """Case-insensitive membership check against the administrator list."""
        if not account:
            return False
        return account.strip().lower() in {admin.lower() for admin in self.administrators}


def default_config() -> OptimizerConfig:
    """Configuration with default baselines and no administrators."""
    return OptimizerConfig(administrators=frozenset())


def load_config(path: str) -> OptimizerConfig:
    """Load and validate optimizer configuration from a YAML file.

    Baselines given in the file are merged over the defaults. The
    GAS_OPTIMIZER_DB environment variable overrides ``database``.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated OptimizerConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Optimizer config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'administrators', 'baselines', 'analysis_fee', 'database'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    # Administrators
    if 'administrators' not in raw_config:
        raise ValueError("Missing required 'administrators' section")

    admins = raw_config['administrators']
    if not isinstance(admins, list) or not admins:
        raise ValueError("'administrators' must be a non-empty list")
    for admin in admins:
        if not isinstance(admin, str) or not admin.strip():
            raise ValueError("Every administrator must be a non-empty string")

    # Baselines
    baselines = dict(DEFAULT_BASELINES)
    baselines_data = raw_config.get('baselines', {})
    if not isinstance(baselines_data, dict):
        raise ValueError("'baselines' must be a dictionary")
    for category, gas in baselines_data.items():
        baselines[str(category)] = _parse_non_negative_int(gas, f"baselines.{category}")

    # Analysis fee
    analysis_fee = _parse_non_negative_int(raw_config.get('analysis_fee', 0), "analysis_fee")

    # Database
    database = raw_config.get('database')
    if database is not None and (not isinstance(database, str) or not database.strip()):
        raise ValueError("'database' must be a non-empty string")
    database = os.environ.get("GAS_OPTIMIZER_DB") or database or DEFAULT_DB_PATH

    return OptimizerConfig(
        administrators=frozenset(admin.strip() for admin in admins),
        baselines=baselines,
        analysis_fee=analysis_fee,
        database=database,
    )


def _parse_non_negative_int(value, path: str) -> int:
    """Validate an integer setting that must be >= 0.

    Raises:
        ValueError: If the value is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{path}' must be a non-negative integer")
    return value
