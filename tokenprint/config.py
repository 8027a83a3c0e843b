"""
Configuration for tokenprint.

A nested dictionary of defaults is merged with an optional YAML/JSON file and
typed environment overrides. Values are read with dot-separated keys, e.g.
``config.get("fingerprint.kgram_size")``.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .core.errors import ConfigError


CONFIG_FILE_NAMES = [".tokenprint.yml", ".tokenprint.yaml", "tokenprint.yml", "tokenprint.yaml"]

INDEX_BACKENDS = ("sqlite", "memory")

# Environment variable -> (config key, type)
ENV_MAPPINGS: Dict[str, Tuple[str, type]] = {
    "TOKENPRINT_KGRAM_SIZE": ("fingerprint.kgram_size", int),
    "TOKENPRINT_WINDOW_SIZE": ("fingerprint.window_size", int),
    "TOKENPRINT_INDEX_BACKEND": ("index.backend", str),
    "TOKENPRINT_DB_PATH": ("index.db_path", str),
    "TOKENPRINT_LOG_LEVEL": ("logging.level", str),
    "TOKENPRINT_MAX_WORKERS": ("parallel.max_workers", int),
}


class Config:
    """Configuration manager for tokenprint."""

    DEFAULT_CONFIG: Dict[str, Any] = {
        "paths": {
            "include": ["."],
            "exclude": ["build", "dist", "venv", ".venv", "__pycache__", ".git"],
            "suffixes": [".py"]
        },
        "fingerprint": {
            "kgram_size": 5,
            "window_size": 4,
            "include_comments": False
        },
        "index": {
            "backend": "sqlite",
            "db_path": ".tokenprint_index.db",
            "timeout_seconds": 30.0
        },
        "matching": {
            "min_shared_fingerprints": 1,
            "exclude_same_file": True
        },
        "parallel": {
            "max_workers": None
        },
        "logging": {
            "level": "WARNING",
            "file": False,
            "log_dir": None,
            "json_format": True
        }
    }

    def __init__(self, config_dict: Optional[Dict] = None):
        """Initialize with optional config dictionary."""
        self.config = self._merge_configs(self.DEFAULT_CONFIG, config_dict or {})
        self.source_path: Optional[Path] = None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            if path.suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f) or {}
            elif path.suffix == ".json":
                data = json.load(f)
            else:
                raise ConfigError(f"Unsupported config format: {path.suffix}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        config = cls(data)
        config.source_path = path
        return config

    @classmethod
    def find_and_load(cls, start_path: Union[str, Path]) -> "Config":
        """Find and load configuration from standard locations.

        ``TOKENPRINT_CONFIG`` wins over the directory search; environment
        overrides are applied on top in both cases.
        """
        env_config_path = os.getenv("TOKENPRINT_CONFIG")
        if env_config_path and Path(env_config_path).exists():
            return cls.from_file(env_config_path).apply_environment_overrides()

        current = Path(start_path).resolve()
        if current.is_file():
            current = current.parent

        while True:
            for name in CONFIG_FILE_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path).apply_environment_overrides()
            if current == current.parent:
                break
            current = current.parent

        return cls().apply_environment_overrides()

    def get(self, key: str, default=None):
        """Get configuration value by dot-separated key."""
        value = self.config

        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value) -> None:
        """Set configuration value by dot-separated key."""
        keys = key.split(".")
        config = self.config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return copy.deepcopy(self.config)

    def get_environment_overrides(self) -> Dict[str, Any]:
        """Get configuration overrides from environment variables."""
        overrides = {}

        for env_var, (config_key, config_type) in ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    overrides[config_key] = config_type(env_value)
                except ValueError as e:
                    raise ConfigError(
                        f"Invalid environment variable {env_var}={env_value}: {e}"
                    )

        return overrides

    def apply_environment_overrides(self) -> "Config":
        """Apply environment variable overrides in place and return self."""
        for key, value in self.get_environment_overrides().items():
            self.set(key, value)
        return self

    def validate(self) -> List[str]:
        """Validate configuration and return list of problems."""
        problems = []

        for key in ("fingerprint.kgram_size", "fingerprint.window_size"):
            value = self.get(key)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                problems.append(f"{key} must be a positive integer, got {value!r}")

        backend = self.get("index.backend")
        if backend not in INDEX_BACKENDS:
            problems.append(f"index.backend must be one of {', '.join(INDEX_BACKENDS)}, got {backend!r}")

        if backend == "sqlite" and not self.get("index.db_path"):
            problems.append("index.db_path is required for the sqlite backend")

        timeout = self.get("index.timeout_seconds")
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            problems.append(f"index.timeout_seconds must be positive, got {timeout!r}")

        workers = self.get("parallel.max_workers")
        if workers is not None and (not isinstance(workers, int) or workers < 1):
            problems.append(f"parallel.max_workers must be a positive integer or null, got {workers!r}")

        min_shared = self.get("matching.min_shared_fingerprints")
        if not isinstance(min_shared, int) or min_shared < 1:
            problems.append(f"matching.min_shared_fingerprints must be >= 1, got {min_shared!r}")

        return problems

    def require_valid(self) -> "Config":
        """Raise ConfigError if the configuration has problems."""
        problems = self.validate()
        if problems:
            raise ConfigError("Invalid configuration: " + "; ".join(problems), problems=problems)
        return self

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Recursively merge configuration dictionaries."""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result


def create_default_config_file(path: Union[str, Path]) -> Path:
    """Write the default configuration as YAML and return its path."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(Config.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
    return path
