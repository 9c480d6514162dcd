from pathlib import Path

import pytest

from pipe_puzzle.config import (
    DIFFICULTY_ENV_VAR,
    LEVEL_ENV_VAR,
    NO_SPILL_ENV_VAR,
    SEED_ENV_VAR,
    SLIDE_ENV_VAR,
    TICK_ENV_VAR,
    GameConfig,
    resolve_level_root,
)

ALL_ENV_VARS = (
    DIFFICULTY_ENV_VAR,
    LEVEL_ENV_VAR,
    NO_SPILL_ENV_VAR,
    SEED_ENV_VAR,
    SLIDE_ENV_VAR,
    TICK_ENV_VAR,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    for name in ALL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = GameConfig.from_env()

    assert config.tick_ms == 600
    assert config.slide_settle_ms == 300
    assert config.difficulty == "normal"
    assert not config.no_spill
    assert config.seed is None
    assert config.level_root == resolve_level_root()


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(TICK_ENV_VAR, "250")
    monkeypatch.setenv(SLIDE_ENV_VAR, "0")
    monkeypatch.setenv(DIFFICULTY_ENV_VAR, "Hard")
    monkeypatch.setenv(NO_SPILL_ENV_VAR, "yes")
    monkeypatch.setenv(SEED_ENV_VAR, "42")
    monkeypatch.setenv(LEVEL_ENV_VAR, str(tmp_path))

    config = GameConfig.from_env()

    assert config.tick_ms == 250
    assert config.slide_settle_ms == 0
    assert config.difficulty == "hard"
    assert config.no_spill
    assert config.seed == 42
    assert config.level_root == tmp_path


def test_bad_integer_is_reported(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(TICK_ENV_VAR, "fast")
    with pytest.raises(ValueError, match=TICK_ENV_VAR):
        GameConfig.from_env()


def test_resolve_level_root_defaults_to_package_levels():
    root = resolve_level_root()
    assert root.name == "levels"
    assert (root / "tutorial.level").exists()


def test_resolve_level_root_errors_on_missing_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    missing = tmp_path / "missing"
    monkeypatch.setenv(LEVEL_ENV_VAR, str(missing))

    with pytest.raises(FileNotFoundError):
        resolve_level_root()
    assert resolve_level_root(check_exists=False) == missing
