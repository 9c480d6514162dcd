"""Runtime settings with environment variable overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

TICK_ENV_VAR = "PIPE_PUZZLE_TICK_MS"
SLIDE_ENV_VAR = "PIPE_PUZZLE_SLIDE_MS"
DIFFICULTY_ENV_VAR = "PIPE_PUZZLE_DIFFICULTY"
NO_SPILL_ENV_VAR = "PIPE_PUZZLE_NO_SPILL"
SEED_ENV_VAR = "PIPE_PUZZLE_SEED"
LEVEL_ENV_VAR = "PIPE_PUZZLE_LEVEL_ROOT"

DEFAULT_TICK_MS = 600
DEFAULT_SLIDE_SETTLE_MS = 300

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _default_level_root() -> Path:
    return Path(__file__).resolve().parent / "levels"


def _read_int(env_var: str, fallback: Optional[int]) -> Optional[int]:
    value = os.environ.get(env_var)
    if value is None or not value.strip():
        return fallback
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{env_var} must be an integer, got {value!r}") from exc


def resolve_level_root(check_exists: bool = True) -> Path:
    """Level directory from ``PIPE_PUZZLE_LEVEL_ROOT`` or the packaged one.

    Raises :class:`FileNotFoundError` when ``check_exists`` is set and the
    directory is missing.
    """

    value = os.environ.get(LEVEL_ENV_VAR)
    root = Path(value).expanduser() if value else _default_level_root()
    if check_exists and not root.is_dir():
        raise FileNotFoundError(f"Level directory does not exist: {root}")
    return root


@dataclass
class GameConfig:
    tick_ms: int = DEFAULT_TICK_MS
    slide_settle_ms: int = DEFAULT_SLIDE_SETTLE_MS
    difficulty: str = "normal"
    no_spill: bool = False
    seed: Optional[int] = None
    level_root: Path = field(default_factory=_default_level_root)

    @classmethod
    def from_env(cls) -> "GameConfig":
        no_spill = os.environ.get(NO_SPILL_ENV_VAR, "").strip().lower() in _TRUE_VALUES
        return cls(
            tick_ms=_read_int(TICK_ENV_VAR, DEFAULT_TICK_MS),
            slide_settle_ms=_read_int(SLIDE_ENV_VAR, DEFAULT_SLIDE_SETTLE_MS),
            difficulty=os.environ.get(DIFFICULTY_ENV_VAR, "normal").strip().lower() or "normal",
            no_spill=no_spill,
            seed=_read_int(SEED_ENV_VAR, None),
            level_root=resolve_level_root(check_exists=False),
        )


__all__ = [
    "DIFFICULTY_ENV_VAR",
    "GameConfig",
    "LEVEL_ENV_VAR",
    "NO_SPILL_ENV_VAR",
    "SEED_ENV_VAR",
    "SLIDE_ENV_VAR",
    "TICK_ENV_VAR",
    "resolve_level_root",
]
