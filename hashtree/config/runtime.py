"""
Runtime Configuration

Tree policy flags, default hash algorithm and logging setup.
"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TreeOptions:
    """
    Construction and verification policy for a tree.

    Attributes:
        duplicate_odd: Self-pair a trailing odd node instead of promoting it
        hash_leaves: Hash every leaf before it enters layer 0
        sort_leaves: Sort layer 0 byte-lexicographically
        sort_pairs: Concatenate each pair in ascending byte order
        sort: Shorthand for sort_leaves + sort_pairs
        is_bitcoin_tree: Bitcoin rules: byte reversal, double hashing and
            self-pairing of odd nodes
    """
    duplicate_odd: bool = False
    hash_leaves: bool = False
    sort_leaves: bool = False
    sort_pairs: bool = False
    sort: bool = False
    is_bitcoin_tree: bool = False

    def __post_init__(self) -> None:
        if self.sort:
            self.sort_leaves = True
            self.sort_pairs = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TreeOptions":
        """Build options from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: bool(v) for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    hash_algorithm: str = "sha256"
    options: TreeOptions = field(default_factory=TreeOptions)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - HASHTREE_HASH_ALGORITHM: hashlib algorithm name
        - HASHTREE_DUPLICATE_ODD, HASHTREE_HASH_LEAVES, HASHTREE_SORT_LEAVES,
          HASHTREE_SORT_PAIRS, HASHTREE_SORT, HASHTREE_BITCOIN: policy flags
        - HASHTREE_LOG_LEVEL: logging level name
        """
        overrides: dict[str, Any] = {}

        if os.getenv("HASHTREE_HASH_ALGORITHM"):
            overrides["hash_algorithm"] = os.getenv("HASHTREE_HASH_ALGORITHM")
        if os.getenv("HASHTREE_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("HASHTREE_LOG_LEVEL")

        flag_vars = {
            "duplicate_odd": "HASHTREE_DUPLICATE_ODD",
            "hash_leaves": "HASHTREE_HASH_LEAVES",
            "sort_leaves": "HASHTREE_SORT_LEAVES",
            "sort_pairs": "HASHTREE_SORT_PAIRS",
            "sort": "HASHTREE_SORT",
            "is_bitcoin_tree": "HASHTREE_BITCOIN",
        }
        for key, env_var in flag_vars.items():
            value = _env_flag(env_var)
            if value is not None:
                overrides.setdefault("options", {})[key] = value

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Load configuration from environment variables over defaults."""
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        options_data = data.get("options", {})
        options = TreeOptions.from_dict(options_data) if options_data else TreeOptions()

        return cls(
            hash_algorithm=data.get("hash_algorithm", "sha256"),
            options=options,
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """Return a copy with environment variable overrides applied."""
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        if "hash_algorithm" in overrides:
            new_config.hash_algorithm = overrides["hash_algorithm"]
        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]
        if "options" in overrides:
            option_overrides = dict(overrides["options"])
            if option_overrides.get("sort") is False and new_config.options.sort:
                # sort forced both flags on; clear them unless set explicitly
                option_overrides.setdefault("sort_leaves", False)
                option_overrides.setdefault("sort_pairs", False)
            for key, value in option_overrides.items():
                setattr(new_config.options, key, value)
            new_config.options.__post_init__()

        return new_config

    def hash_function(self):
        """Return a HashAdapter for the configured algorithm."""
        from hashtree.crypto.hashing import resolve_hash_function
        return resolve_hash_function(self.hash_algorithm)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "hash_algorithm": self.hash_algorithm,
            "options": self.options.to_dict(),
            "log_level": self.log_level,
            "extra": self.extra,
        }


def configure_logging(config: Optional[RuntimeConfig] = None) -> None:
    """Apply the configured log level to the root logger."""
    config = config or get_default_config()
    level = getattr(logging, (config.log_level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set (or with None, reset) the default runtime configuration."""
    global _default_config
    _default_config = config
