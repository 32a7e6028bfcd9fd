from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .policy import DEFAULT_MAX_CONTEXT, DEFAULT_MAX_UNFOLD_CHUNK, FoldPolicy

DEFAULT_CONFIG_NAME = "diffold.toml"
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "WARNING"
    file: Path | None = None

    @property
    def level_number(self) -> int:
        return getattr(logging, self.level)


@dataclass(frozen=True)
class DiffoldConfig:
    fold: FoldPolicy = field(default_factory=FoldPolicy)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _read_int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RuntimeError(f"config key fold.{key} must be an integer, got {value!r}")
    return value


def _read_level(value: Any) -> str:
    level = str(value or "WARNING").strip().upper()
    if level not in LOG_LEVELS:
        raise RuntimeError(f"config key logging.level must be one of {sorted(LOG_LEVELS)}, got {value!r}")
    return level


def parse_config(data: dict[str, Any]) -> DiffoldConfig:
    fold = data.get("fold") or {}
    log = data.get("logging") or {}
    if not isinstance(fold, dict) or not isinstance(log, dict):
        raise RuntimeError("config sections [fold] and [logging] must be tables")

    try:
        policy = FoldPolicy(
            max_context=_read_int(fold, "max_context", DEFAULT_MAX_CONTEXT),
            max_unfold_chunk=_read_int(fold, "max_unfold_chunk", DEFAULT_MAX_UNFOLD_CHUNK),
        )
    except ValueError as error:
        raise RuntimeError(f"invalid [fold] config: {error}") from error

    log_file = str(log.get("file") or "").strip()
    return DiffoldConfig(
        fold=policy,
        logging=LoggingConfig(level=_read_level(log.get("level")), file=Path(log_file) if log_file else None),
    )


def load_config(path: Path | None = None) -> DiffoldConfig:
    if path is None:
        default_path = Path.cwd() / DEFAULT_CONFIG_NAME
        if not default_path.exists():
            return DiffoldConfig()
        path = default_path
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise RuntimeError(f"Config not found: {path}") from error
    except tomllib.TOMLDecodeError as error:
        raise RuntimeError(f"Invalid TOML in {path}: {error}") from error
    return parse_config(data)


def apply_overrides(
    config: DiffoldConfig,
    *,
    max_context: int | None = None,
    max_unfold_chunk: int | None = None,
    log_level: str | None = None,
) -> DiffoldConfig:
    fold = config.fold
    try:
        if max_context is not None:
            fold = replace(fold, max_context=max_context)
        if max_unfold_chunk is not None:
            fold = replace(fold, max_unfold_chunk=max_unfold_chunk)
    except ValueError as error:
        raise RuntimeError(str(error)) from error
    log = config.logging
    if log_level is not None:
        log = replace(log, level=_read_level(log_level))
    return DiffoldConfig(fold=fold, logging=log)
