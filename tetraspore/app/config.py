"""
Tetraspore Configuration.

Dataclass configuration for execution, rate limiting, caching, storage and
provider credentials, loadable from and savable to JSON. Configuration objects
are passed explicitly to the services that need them.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv


# ============================================================================
# Default Paths
# ============================================================================


def get_default_data_dir() -> Path:
    """Get the default data directory for Tetraspore."""
    if env_path := os.environ.get("TETRASPORE_DATA_DIR"):
        return Path(env_path)
    return Path.cwd() / "data"


def get_default_config_path() -> Path:
    return get_default_data_dir() / "tetraspore_config.json"


# ============================================================================
# Configuration Classes
# ============================================================================


def _known_fields(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class ApiKeys:
    """Provider credentials. Never serialized."""

    flux: str | None = None
    replicate: str | None = None
    openai: str | None = None
    google_cloud: str | None = None

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "ApiKeys":
        """Read keys from the environment, after loading ``.env`` if present."""
        if dotenv:
            load_dotenv()
        return cls(
            flux=os.getenv("FLUX_API_KEY"),
            replicate=os.getenv("REPLICATE_API_KEY"),
            openai=os.getenv("OPENAI_API_KEY"),
            google_cloud=os.getenv("GOOGLE_CLOUD_API_KEY"),
        )

    def missing(self) -> list[str]:
        return [name for name in ("flux", "replicate", "openai", "google_cloud") if not getattr(self, name)]


@dataclass
class ExecutionConfig:
    """Retry policy and simulated provider behaviour."""

    max_retries: int = 3
    base_retry_delay: float = 1.0  # Seconds, doubled per attempt
    max_retry_delay: float = 30.0
    simulated_latency: float = 0.0  # Seconds per simulated provider call
    simulated_failure_rate: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionConfig":
        return cls(**_known_fields(cls, data))

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_retries": self.max_retries,
            "base_retry_delay": self.base_retry_delay,
            "max_retry_delay": self.max_retry_delay,
            "simulated_latency": self.simulated_latency,
            "simulated_failure_rate": self.simulated_failure_rate,
        }


@dataclass
class RateLimitConfig:
    max_requests: int = 100  # Per window per resource class
    window_seconds: float = 60.0
    min_delay: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RateLimitConfig":
        return cls(**_known_fields(cls, data))

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_requests": self.max_requests,
            "window_seconds": self.window_seconds,
            "min_delay": self.min_delay,
        }


@dataclass
class CacheConfig:
    enabled: bool = True
    ttl_seconds: float = 3600.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheConfig":
        return cls(**_known_fields(cls, data))

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "ttl_seconds": self.ttl_seconds}


@dataclass
class StorageConfig:
    """Where generated assets go."""

    backend: Literal["memory", "local"] = "memory"
    base_dir: Path = field(default_factory=lambda: get_default_data_dir() / "assets")
    base_url: str = "/assets"

    def __post_init__(self):
        if isinstance(self.base_dir, str):
            self.base_dir = Path(self.base_dir)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorageConfig":
        return cls(**_known_fields(cls, data))

    def to_dict(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "base_dir": str(self.base_dir),
            "base_url": self.base_url,
        }


@dataclass
class TetrasporeConfig:
    """Main configuration.

    Aggregates all sub-configurations and provides load/save functionality.
    API keys come from the environment and are never written to disk.
    """

    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api_keys: ApiKeys = field(default_factory=ApiKeys)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "TetrasporeConfig":
        """Load configuration from a JSON file.

        Missing files yield defaults. API keys are read from the environment
        and ``TETRASPORE_LOG_LEVEL`` overrides the file's log level.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            TetrasporeConfig instance
        """
        config_path = Path(config_path) if config_path is not None else get_default_config_path()

        data: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)

        config = cls.from_dict(data)
        config.api_keys = ApiKeys.from_env()
        if env_level := os.environ.get("TETRASPORE_LOG_LEVEL"):
            config.log_level = env_level.upper()
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TetrasporeConfig":
        return cls(
            execution=ExecutionConfig.from_dict(data.get("execution", {})),
            rate_limit=RateLimitConfig.from_dict(data.get("rate_limit", {})),
            cache=CacheConfig.from_dict(data.get("cache", {})),
            storage=StorageConfig.from_dict(data.get("storage", {})),
            log_level=data.get("log_level", "INFO"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution": self.execution.to_dict(),
            "rate_limit": self.rate_limit.to_dict(),
            "cache": self.cache.to_dict(),
            "storage": self.storage.to_dict(),
            "log_level": self.log_level,
            # API keys are never serialized
        }

    def save(self, config_path: str | Path | None = None) -> Path:
        """Save configuration to a JSON file.

        Args:
            config_path: Path to save to. If None, uses default location.

        Returns:
            Path to saved file
        """
        config_path = Path(config_path) if config_path is not None else get_default_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

        return config_path
