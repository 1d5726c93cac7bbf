"""Configuration loading and saving."""

import json
from pathlib import Path

from tetraspore.app.config import (
    ApiKeys,
    CacheConfig,
    ExecutionConfig,
    StorageConfig,
    TetrasporeConfig,
    get_default_config_path,
)


def _clear_keys(monkeypatch):
    for name in ("FLUX_API_KEY", "REPLICATE_API_KEY", "OPENAI_API_KEY", "GOOGLE_CLOUD_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_round_trip(tmp_path):
    config = TetrasporeConfig(
        execution=ExecutionConfig(max_retries=5, base_retry_delay=0.5),
        cache=CacheConfig(enabled=False, ttl_seconds=10),
        storage=StorageConfig(backend="local", base_dir=tmp_path / "assets", base_url="/static"),
        log_level="DEBUG",
    )
    path = config.save(tmp_path / "nested" / "config.json")

    loaded = TetrasporeConfig.load(path)

    assert loaded.execution.max_retries == 5
    assert loaded.execution.base_retry_delay == 0.5
    assert loaded.cache.enabled is False
    assert loaded.storage.backend == "local"
    assert loaded.storage.base_dir == tmp_path / "assets"
    assert loaded.log_level == "DEBUG"


def test_missing_file_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("TETRASPORE_LOG_LEVEL", raising=False)

    config = TetrasporeConfig.load(tmp_path / "absent.json")

    assert config.execution.max_retries == 3
    assert config.rate_limit.max_requests == 100
    assert config.storage.backend == "memory"
    assert config.log_level == "INFO"


def test_unknown_keys_are_ignored():
    config = TetrasporeConfig.from_dict({
        "execution": {"max_retries": 2, "legacy_option": True},
        "storage": {"base_dir": "/tmp/assets"},
        "unknown_section": {},
    })

    assert config.execution.max_retries == 2
    assert config.storage.base_dir == Path("/tmp/assets")


def test_api_keys_are_never_written(tmp_path):
    config = TetrasporeConfig(api_keys=ApiKeys(openai="sk-secret"))

    path = config.save(tmp_path / "config.json")

    assert "sk-secret" not in path.read_text(encoding="utf-8")
    assert "api_keys" not in json.loads(path.read_text(encoding="utf-8"))


def test_env_overrides_log_level_and_supplies_keys(tmp_path, monkeypatch):
    _clear_keys(monkeypatch)
    monkeypatch.setenv("TETRASPORE_LOG_LEVEL", "warning")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    config = TetrasporeConfig.load(tmp_path / "absent.json")

    assert config.log_level == "WARNING"
    assert config.api_keys.openai == "sk-test"


def test_api_keys_from_env(monkeypatch):
    _clear_keys(monkeypatch)
    monkeypatch.setenv("FLUX_API_KEY", "flux-key")

    keys = ApiKeys.from_env(dotenv=False)

    assert keys.flux == "flux-key"
    assert keys.missing() == ["replicate", "openai", "google_cloud"]


def test_default_paths_follow_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("TETRASPORE_DATA_DIR", str(tmp_path))

    assert get_default_config_path() == tmp_path / "tetraspore_config.json"
    assert StorageConfig().base_dir == tmp_path / "assets"
