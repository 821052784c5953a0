"""Typed loader for review session config (YAML).

Parsing and validation live here so callers get frozen dataclasses, never raw
mappings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

REVIEW_MODES = ("local", "pr", "hybrid")
EXPORT_FORMATS = ("markdown", "plain", "json")
DEFAULT_DATA_DIR = "~/.local/share/review"


class ConfigError(RuntimeError):
    """Invalid or unreadable review config."""


def _require_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx}: expected mapping")
    return value


def _require_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{ctx}: expected string")
    s = value.strip()
    if not s:
        raise ConfigError(f"{ctx}: must be non-empty")
    return s


def _require_bool(value: Any, ctx: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{ctx}: expected boolean")
    return value


def _require_choice(value: Any, ctx: str, choices: tuple[str, ...]) -> str:
    s = _require_str(value, ctx).lower()
    if s not in choices:
        raise ConfigError(f"{ctx}: must be one of {list(choices)}")
    return s


def _require_str_list(value: Any, ctx: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"{ctx}: expected list")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_require_str(item, f"{ctx}[{idx}]"))
    return tuple(dict.fromkeys(out))


def _pick(raw: dict[str, Any], camel: str, snake: str) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake)


@dataclass(frozen=True)
class StorageConfig:
    """Where local comments are persisted."""
    data_dir: str = DEFAULT_DATA_DIR

    @property
    def path(self) -> Path:
        return Path(self.data_dir).expanduser()


@dataclass(frozen=True)
class ExportConfig:
    """Defaults for review exports."""
    format: str = "markdown"
    include_diff: bool = True
    include_comments: bool = True
    include_instructions: bool = True
    only_pending: bool = False
    comment_types: tuple[str, ...] | None = None


@dataclass(frozen=True)
class TrackingConfig:
    """Anchor tracking behavior."""
    clamp_stale_lines: bool = True


@dataclass(frozen=True)
class ReviewConfig:
    """Top-level review config."""
    mode: str = "local"
    storage: StorageConfig = field(default_factory=StorageConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None = None) -> "ReviewConfig":
        if raw is None:
            return cls()
        cfg = _require_mapping(raw, "config")

        mode = "local"
        if cfg.get("mode") is not None:
            mode = _require_choice(cfg.get("mode"), "config.mode", REVIEW_MODES)

        storage = StorageConfig()
        storage_raw = cfg.get("storage")
        if storage_raw is not None:
            storage_cfg = _require_mapping(storage_raw, "config.storage")
            data_dir = _pick(storage_cfg, "dataDir", "data_dir")
            if data_dir is not None:
                storage = StorageConfig(data_dir=_require_str(data_dir, "config.storage.dataDir"))

        export = ExportConfig()
        export_raw = cfg.get("export")
        if export_raw is not None:
            export_cfg = _require_mapping(export_raw, "config.export")
            export = _parse_export(export_cfg)

        tracking = TrackingConfig()
        tracking_raw = cfg.get("tracking")
        if tracking_raw is not None:
            tracking_cfg = _require_mapping(tracking_raw, "config.tracking")
            clamp = _pick(tracking_cfg, "clampStaleLines", "clamp_stale_lines")
            if clamp is not None:
                tracking = TrackingConfig(
                    clamp_stale_lines=_require_bool(clamp, "config.tracking.clampStaleLines")
                )

        return cls(mode=mode, storage=storage, export=export, tracking=tracking)


def _parse_export(raw: dict[str, Any]) -> ExportConfig:
    defaults = ExportConfig()

    def flag(camel: str, snake: str, default: bool) -> bool:
        value = _pick(raw, camel, snake)
        if value is None:
            return default
        return _require_bool(value, f"config.export.{camel}")

    export_format = defaults.format
    if raw.get("format") is not None:
        export_format = _require_choice(raw.get("format"), "config.export.format", EXPORT_FORMATS)

    comment_types = None
    types_raw = _pick(raw, "commentTypes", "comment_types")
    if types_raw is not None:
        comment_types = _require_str_list(types_raw, "config.export.commentTypes")

    return ExportConfig(
        format=export_format,
        include_diff=flag("includeDiff", "include_diff", defaults.include_diff),
        include_comments=flag("includeComments", "include_comments", defaults.include_comments),
        include_instructions=flag(
            "includeInstructions", "include_instructions", defaults.include_instructions
        ),
        only_pending=flag("onlyPending", "only_pending", defaults.only_pending),
        comment_types=comment_types,
    )


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except FileNotFoundError:
        raise ConfigError(f"missing config file: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def load_review_config(path: Path) -> ReviewConfig:
    """Load review config; an empty file yields the defaults."""
    raw = _load_yaml(Path(path))
    if raw is None:
        return ReviewConfig()
    return ReviewConfig.from_dict(raw)
