# tests/core/test_user_config.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from dynatlas.core.builder import DEFAULT_FILE_EXTENSION, DEFAULT_NAME_PREFIX, DEFAULT_TIME_FILE_NAME
from dynatlas.core.lookup_table import DEFAULT_EPSILON
from dynatlas.core.user_config import MAX_RECENTS, SCHEMA_VERSION, UserConfig


def test_load_defaults_when_missing(tmp_path: Path) -> None:
    cfg_path = tmp_path / "user_config.json"
    cfg = UserConfig.load(config_path=cfg_path)
    assert cfg.path == cfg_path
    assert cfg.data.schema_version == SCHEMA_VERSION
    assert cfg.get_naming_convention() == (DEFAULT_TIME_FILE_NAME, DEFAULT_NAME_PREFIX, DEFAULT_FILE_EXTENSION)
    assert cfg.get_default_epsilon() == DEFAULT_EPSILON
    assert cfg.get_recent_roots() == []
    assert not cfg_path.exists()


def test_create_if_missing_writes_defaults(tmp_path: Path) -> None:
    cfg_path = tmp_path / "user_config.json"
    UserConfig.load(config_path=cfg_path, create_if_missing=True)
    assert cfg_path.exists()

    loaded = json.loads(cfg_path.read_text(encoding="utf-8"))
    assert isinstance(loaded, dict)
    assert loaded["schema_version"] == SCHEMA_VERSION
    assert loaded["time_file_name"] == DEFAULT_TIME_FILE_NAME


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    cfg_path = tmp_path / "user_config.json"
    cfg = UserConfig.load(config_path=cfg_path)

    root_a = tmp_path / "WT"
    root_b = tmp_path / "mutant"
    cfg.push_recent_root(root_a)
    cfg.push_recent_root(root_b)
    cfg.set_naming_convention(time_file_name="timematch.csv", file_extension=".tiff")
    cfg.set_default_epsilon(2.0)
    cfg.save()

    cfg2 = UserConfig.load(config_path=cfg_path)
    assert cfg2.get_recent_roots() == [str(root_b.resolve(strict=False)), str(root_a.resolve(strict=False))]
    assert cfg2.get_naming_convention() == ("timematch.csv", DEFAULT_NAME_PREFIX, ".tiff")
    assert cfg2.get_default_epsilon() == 2.0


def test_push_recent_moves_to_front_and_caps(tmp_path: Path) -> None:
    cfg = UserConfig.load(config_path=tmp_path / "user_config.json")
    for i in range(MAX_RECENTS + 3):
        cfg.push_recent_root(tmp_path / f"root{i}")
    cfg.push_recent_root(tmp_path / "root5")

    recents = cfg.get_recent_roots()
    assert len(recents) == MAX_RECENTS
    assert recents[0] == str((tmp_path / "root5").resolve(strict=False))
    assert recents.count(recents[0]) == 1


def test_schema_mismatch_resets(tmp_path: Path) -> None:
    cfg_path = tmp_path / "user_config.json"
    cfg_path.write_text(json.dumps({"schema_version": 999, "time_file_name": "x.mat"}), encoding="utf-8")

    cfg = UserConfig.load(config_path=cfg_path)
    assert cfg.data.schema_version == SCHEMA_VERSION
    assert cfg.get_naming_convention()[0] == DEFAULT_TIME_FILE_NAME

    kept = UserConfig.load(config_path=cfg_path, reset_on_version_mismatch=False)
    assert kept.data.schema_version == SCHEMA_VERSION
    assert kept.get_naming_convention()[0] == "x.mat"


def test_unreadable_json_uses_defaults(tmp_path: Path) -> None:
    cfg_path = tmp_path / "user_config.json"
    cfg_path.write_text("{broken", encoding="utf-8")
    cfg = UserConfig.load(config_path=cfg_path)
    assert cfg.get_recent_roots() == []


def test_tolerant_loader_ignores_bad_values(tmp_path: Path) -> None:
    cfg_path = tmp_path / "user_config.json"
    cfg_path.write_text(
        json.dumps(
            {
                "schema_version": SCHEMA_VERSION,
                "name_prefix": 12,
                "default_epsilon": "wide",
                "recent_roots": ["/a", 3, ""],
                "unknown": True,
            }
        ),
        encoding="utf-8",
    )
    cfg = UserConfig.load(config_path=cfg_path)
    assert cfg.get_naming_convention()[1] == DEFAULT_NAME_PREFIX
    assert cfg.get_default_epsilon() == DEFAULT_EPSILON
    assert cfg.get_recent_roots() == ["/a"]


def test_negative_epsilon_rejected(tmp_path: Path) -> None:
    cfg = UserConfig.load(config_path=tmp_path / "user_config.json")
    with pytest.raises(ValueError):
        cfg.set_default_epsilon(-1)
