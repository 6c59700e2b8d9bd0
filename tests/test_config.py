from pathlib import Path

import pytest

from skillpack.config.manager import ConfigManager


@pytest.mark.asyncio
async def test_defaults_when_file_missing(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("SKILLPACK_CATALOG_ROOT", raising=False)
    path = tmp_path / "skillpack.yaml"
    config = ConfigManager(str(path))
    await config.load()

    assert config.get("catalog.root") == "skills"
    assert config.get("catalog.manifest") == "catalog.yaml"
    assert config.get("install.mode") == "copy"
    assert config.get("missing.key", "fallback") == "fallback"
    # Loading never creates a config file on its own.
    assert not path.exists()


@pytest.mark.asyncio
async def test_file_merges_over_defaults_and_env_wins(tmp_path: Path, monkeypatch):
    path = tmp_path / "skillpack.yaml"
    path.write_text("catalog:\n  root: my-skills\ninstall:\n  mode: manifest\n", encoding="utf-8")
    monkeypatch.setenv("SKILLPACK_INSTALL_TARGET", "/opt/agent/skills")
    monkeypatch.setenv("SKILLPACK_LOG_LEVEL", "debug")

    config = ConfigManager(str(path))
    await config.load()

    assert config.get("catalog.root") == "my-skills"
    assert config.get("catalog.load_workers") == 4
    assert config.get("install.mode") == "manifest"
    assert config.get("install.target_dir") == "/opt/agent/skills"
    assert config.get("logging.level") == "DEBUG"


@pytest.mark.asyncio
async def test_broken_file_falls_back_to_defaults(tmp_path: Path):
    path = tmp_path / "skillpack.yaml"
    path.write_text("catalog: [unclosed\n", encoding="utf-8")

    config = ConfigManager(str(path))
    await config.load()

    assert config.get("catalog.root") == "skills"


@pytest.mark.asyncio
async def test_set_and_save_round_trip_json(tmp_path: Path):
    path = tmp_path / "skillpack.json"
    config = ConfigManager(str(path))
    await config.load()
    config.set("install.target_dir", "out")
    config.set("extra.nested.value", 3)
    await config.save()

    reloaded = ConfigManager(str(path))
    await reloaded.load()
    assert reloaded.get("install.target_dir") == "out"
    assert reloaded.get("extra.nested.value") == 3
    assert reloaded.all["catalog"]["root"] == "skills"
