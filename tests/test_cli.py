"""Command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from action_documents import end_to_end, image

from tetraspore.app.cli import app

runner = CliRunner()


@pytest.fixture
def script(tmp_path):
    path = tmp_path / "turn.json"
    path.write_text(json.dumps(end_to_end()), encoding="utf-8")
    return path


@pytest.fixture
def api_keys(monkeypatch):
    for name, value in {
        "FLUX_API_KEY": "flux-key",
        "REPLICATE_API_KEY": "replicate-key",
        "OPENAI_API_KEY": "openai-key",
        "GOOGLE_CLOUD_API_KEY": "google-key",
    }.items():
        monkeypatch.setenv(name, value)


def test_validate_accepts_a_valid_script(script):
    result = runner.invoke(app, ["validate", str(script)])

    assert result.exit_code == 0
    assert "turn.json is valid" in result.output
    assert "4 node(s)" in result.output


def test_validate_rejects_duplicates(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"actions": [image("x"), image("x")]}), encoding="utf-8")

    result = runner.invoke(app, ["validate", str(path)])

    assert result.exit_code == 1
    assert "duplicate_id" in result.output


def test_validate_missing_file(tmp_path):
    result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_plan_lists_nodes(script):
    result = runner.invoke(app, ["plan", str(script)])

    assert result.exit_code == 0
    assert "Execution order" in result.output
    assert "bg" in result.output
    assert "asset" in result.output


def test_run_writes_assets(script, tmp_path, monkeypatch, api_keys):
    monkeypatch.chdir(tmp_path)
    assets_dir = tmp_path / "assets"

    result = runner.invoke(app, ["run", str(script), "--storage-dir", str(assets_dir), "--log-level", "ERROR"])

    assert result.exit_code == 0, result.output
    assert "Batch succeeded" in result.output
    assert (assets_dir / "bg.png").exists()
    assert (assets_dir / "n.mp3").exists()
    assert (assets_dir / "cs.json").exists()


def test_run_without_keys_fails(script, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("FLUX_API_KEY", "REPLICATE_API_KEY", "OPENAI_API_KEY", "GOOGLE_CLOUD_API_KEY"):
        monkeypatch.delenv(name, raising=False)

    result = runner.invoke(app, ["run", str(script), "--log-level", "ERROR"])

    assert result.exit_code == 1
    assert "Missing required API keys" in result.output


def test_init_config(tmp_path):
    target = tmp_path / "config.json"

    result = runner.invoke(app, ["init-config", str(target)])

    assert result.exit_code == 0
    assert json.loads(target.read_text(encoding="utf-8"))["execution"]["max_retries"] == 3
