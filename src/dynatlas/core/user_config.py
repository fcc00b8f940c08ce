# src/dynatlas/core/user_config.py
"""
Per-user config persistence for dynatlas (platformdirs + JSON).

Persisted items (schema v1):
- time_file_name, name_prefix, file_extension: default naming convention
- default_epsilon: default tolerance for time queries
- recent_roots: list[str] of recently used atlas root directories

Behavior:
- If config file missing or unreadable -> defaults are used
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Optional "create_if_missing" flag to write defaults on first run
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from platformdirs import user_config_dir

from dynatlas.core.builder import (
    DEFAULT_FILE_EXTENSION,
    DEFAULT_NAME_PREFIX,
    DEFAULT_TIME_FILE_NAME,
)
from dynatlas.core.lookup_table import DEFAULT_EPSILON
from dynatlas.core.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

MAX_RECENTS: int = 15


def _normalize_path(path: str | Path) -> str:
    """Normalize a directory path string for storage and comparisons."""
    p = Path(path).expanduser()
    try:
        p = p.resolve(strict=False)
    except OSError:
        pass
    return str(p)


@dataclass
class UserConfigData:
    """JSON-serializable config payload."""

    schema_version: int = SCHEMA_VERSION

    time_file_name: str = DEFAULT_TIME_FILE_NAME
    name_prefix: str = DEFAULT_NAME_PREFIX
    file_extension: str = DEFAULT_FILE_EXTENSION
    default_epsilon: float = DEFAULT_EPSILON

    recent_roots: List[str] = field(default_factory=list)

    def to_json_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "UserConfigData":
        """
        Tolerant loader:
        - ignores unknown keys
        - falls back to defaults for missing or mistyped values
        """
        defaults = cls()

        try:
            schema_version = int(d.get("schema_version", -1))
        except (TypeError, ValueError):
            schema_version = -1

        def _str(key: str, default: str) -> str:
            value = d.get(key, default)
            return value if isinstance(value, str) and value.strip() else default

        try:
            default_epsilon = float(d.get("default_epsilon", defaults.default_epsilon))
        except (TypeError, ValueError):
            default_epsilon = defaults.default_epsilon
        if default_epsilon < 0:
            default_epsilon = defaults.default_epsilon

        recent_raw = d.get("recent_roots", [])
        recent_roots: List[str] = []
        if isinstance(recent_raw, list):
            recent_roots = [item for item in recent_raw if isinstance(item, str) and item.strip()]

        return cls(
            schema_version=schema_version,
            time_file_name=_str("time_file_name", defaults.time_file_name),
            name_prefix=_str("name_prefix", defaults.name_prefix),
            file_extension=_str("file_extension", defaults.file_extension),
            default_epsilon=default_epsilon,
            recent_roots=recent_roots[:MAX_RECENTS],
        )


class UserConfig:
    """
    Manager for loading/saving UserConfigData to disk.
    """

    def __init__(self, *, path: Path, data: Optional[UserConfigData] = None):
        self.path = path
        self.data = data if data is not None else UserConfigData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_config_path(
        app_name: str = "dynatlas",
        filename: str = "user_config.json",
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user config path.

        macOS:   ~/Library/Application Support/dynatlas/user_config.json
        Linux:   ~/.config/dynatlas/user_config.json
        Windows: %APPDATA%\\dynatlas\\user_config.json
        """
        d = Path(user_config_dir(app_name, app_author))
        d.mkdir(parents=True, exist_ok=True)
        return d / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = "dynatlas",
        filename: str = "user_config.json",
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "UserConfig":
        """
        Load config from disk.

        If file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version

        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = UserConfigData(schema_version=schema_version)

        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            cfg = cls(path=path, data=default_data)
            if create_if_missing:
                cfg.save()
            return cfg
        except OSError as e:
            logger.warning("Could not read user config %s: %s", path, e)
            return cls(path=path, data=default_data)

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("User config %s is not valid JSON, using defaults: %s", path, e)
            return cls(path=path, data=default_data)
        if not isinstance(parsed, dict):
            return cls(path=path, data=default_data)

        loaded = UserConfigData.from_json_dict(parsed)

        if int(loaded.schema_version) != int(schema_version):
            if reset_on_version_mismatch:
                logger.warning(
                    "User config schema %s != %s, resetting to defaults", loaded.schema_version, schema_version
                )
                return cls(path=path, data=default_data)
            loaded.schema_version = int(schema_version)

        return cls(path=path, data=loaded)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = self.data.to_json_dict()
        self.path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    # -----------------------------
    # Naming convention
    # -----------------------------
    def get_naming_convention(self) -> tuple[str, str, str]:
        """Return (time_file_name, name_prefix, file_extension)."""
        return self.data.time_file_name, self.data.name_prefix, self.data.file_extension

    def set_naming_convention(
        self,
        *,
        time_file_name: str | None = None,
        name_prefix: str | None = None,
        file_extension: str | None = None,
    ) -> None:
        if time_file_name:
            self.data.time_file_name = time_file_name
        if name_prefix:
            self.data.name_prefix = name_prefix
        if file_extension:
            self.data.file_extension = file_extension

    def get_default_epsilon(self) -> float:
        return float(self.data.default_epsilon)

    def set_default_epsilon(self, epsilon: float) -> None:
        epsilon = float(epsilon)
        if epsilon < 0:
            raise ValueError(f"epsilon must be >= 0, got {epsilon}")
        self.data.default_epsilon = epsilon

    # -----------------------------
    # Recent roots
    # -----------------------------
    def push_recent_root(self, root: str | Path) -> None:
        """Move `root` to the front of the recent list (deduped, capped at MAX_RECENTS)."""
        p = _normalize_path(root)
        recents = [r for r in self.data.recent_roots if _normalize_path(r) != p]
        recents.insert(0, p)
        self.data.recent_roots = recents[:MAX_RECENTS]

    def get_recent_roots(self) -> List[str]:
        return list(self.data.recent_roots)

    def clear_recent_roots(self) -> None:
        self.data.recent_roots = []
