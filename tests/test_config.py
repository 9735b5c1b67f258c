from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from gutberg.config import ConfigError, default_config_dir, load_config


def test_first_run_writes_default_config(tmp_path: Path) -> None:
    config = load_config(tmp_path / "cfg")
    assert config.books_dir == tmp_path / "cfg" / "books"
    assert config.state_file == tmp_path / "cfg" / "state.json"
    assert config.books_dir.is_dir()
    with (tmp_path / "cfg" / "gutberg.toml").open("rb") as fh:
        data = tomllib.load(fh)
    assert data == {"books_dir": str(config.books_dir), "state_file": str(config.state_file)}


def test_existing_config_overrides_defaults(tmp_path: Path) -> None:
    books = tmp_path / "elsewhere" / "books"
    (tmp_path / "gutberg.toml").write_text(
        f'books_dir = "{books.as_posix()}"\nstate_file = ""\nlog_file = "{(tmp_path / "x.log").as_posix()}"\n',
        encoding="utf-8",
    )
    config = load_config(tmp_path)
    assert config.books_dir == books
    assert books.is_dir()
    assert config.state_file == tmp_path / "state.json"
    assert config.log_file == tmp_path / "x.log"


def test_malformed_config_raises(tmp_path: Path) -> None:
    (tmp_path / "gutberg.toml").write_text("books_dir = \n", encoding="utf-8")
    with pytest.raises(ConfigError, match="gutberg.toml"):
        load_config(tmp_path)


def test_default_config_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GUTBERG_CONFIG_DIR", str(tmp_path / "explicit"))
    assert default_config_dir() == tmp_path / "explicit"
    monkeypatch.delenv("GUTBERG_CONFIG_DIR")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert default_config_dir() == tmp_path / "xdg" / "gutberg"
