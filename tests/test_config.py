"""Tests for board config loading."""

from __future__ import annotations

from pathlib import Path

from farm_task_board.config import BoardConfig, load_board_config, parse_board_config


def _write_config(project_dir: Path, text: str) -> None:
    state_dir = project_dir / ".farm_board"
    state_dir.mkdir(exist_ok=True)
    (state_dir / "config.yaml").write_text(text, encoding="utf-8")


def test_missing_config_gives_defaults(tmp_path: Path) -> None:
    config, err = load_board_config(tmp_path)
    assert err is None
    assert config == BoardConfig()
    assert config.persist_timeout_seconds == 10.0


def test_full_config(tmp_path: Path) -> None:
    _write_config(tmp_path, "log_level: debug\npersist_timeout_seconds: 2.5\nseed_file: data/seed.yaml\nhistory_size: 5\n")
    config, err = load_board_config(tmp_path)
    assert err is None
    assert config.log_level == "DEBUG"
    assert config.persist_timeout_seconds == 2.5
    assert config.seed_file == tmp_path.resolve() / "data" / "seed.yaml"
    assert config.history_size == 5


def test_zero_or_null_timeout_disables_it() -> None:
    assert parse_board_config({"persist_timeout_seconds": 0}, Path(".")).persist_timeout_seconds is None
    assert parse_board_config({"persist_timeout_seconds": None}, Path(".")).persist_timeout_seconds is None


def test_invalid_values_fall_back() -> None:
    config = parse_board_config(
        {"log_level": "loud", "persist_timeout_seconds": "soon", "history_size": 0, "seed_file": ""},
        Path("."),
    )
    assert config == BoardConfig()


def test_absolute_seed_file(tmp_path: Path) -> None:
    seed = tmp_path / "elsewhere.yaml"
    config = parse_board_config({"seed_file": str(seed)}, Path("/unused"))
    assert config.seed_file == seed


def test_malformed_yaml_reports_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "log_level: [debug\n")
    config, err = load_board_config(tmp_path)
    assert config == BoardConfig()
    assert err is not None and "YAMLError" in err


def test_non_mapping_reports_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "- debug\n")
    _, err = load_board_config(tmp_path)
    assert err == "config.yaml: expected object, got list"
