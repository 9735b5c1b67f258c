from __future__ import annotations

from importlib import metadata
from pathlib import Path

import tomllib


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover - defensive
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("gutberg")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"
