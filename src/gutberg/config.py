from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILENAME = "gutberg.toml"
CONFIG_DIR_ENV = "GUTBERG_CONFIG_DIR"


class ConfigError(RuntimeError):
    pass


@dataclass(slots=True)
class Config:
    books_dir: Path
    state_file: Path
    log_file: Path | None = None


def default_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "gutberg"


def _write_config(path: Path, config: Config) -> None:
    # json.dumps yields valid TOML basic strings for plain paths.
    lines = [
        f"books_dir = {json.dumps(str(config.books_dir))}",
        f"state_file = {json.dumps(str(config.state_file))}",
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _read_config(path: Path) -> dict[str, object]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc


def load_config(config_dir: Path | None = None) -> Config:
    """Load ``gutberg.toml``, creating it with defaults on first run."""
    config_dir = Path(config_dir) if config_dir is not None else default_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    config = Config(
        books_dir=config_dir / "books",
        state_file=config_dir / "state.json",
        log_file=config_dir / "gutberg.log",
    )
    config_path = config_dir / CONFIG_FILENAME
    if not config_path.exists():
        _write_config(config_path, config)
    else:
        data = _read_config(config_path)
        books_dir = data.get("books_dir")
        if isinstance(books_dir, str) and books_dir:
            config.books_dir = Path(books_dir).expanduser()
        state_file = data.get("state_file")
        if isinstance(state_file, str) and state_file:
            config.state_file = Path(state_file).expanduser()
        log_file = data.get("log_file")
        if isinstance(log_file, str) and log_file:
            config.log_file = Path(log_file).expanduser()

    config.books_dir.mkdir(parents=True, exist_ok=True)
    return config
