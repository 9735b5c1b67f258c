from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path


class StateError(RuntimeError):
    pass


@dataclass(slots=True)
class ReadingState:
    current_book: str = ""
    pages: dict[str, int] = field(default_factory=dict)
    page: int = 0
    font_scale: int = 0

    def remember(self, page: int) -> None:
        self.page = page
        if self.current_book:
            self.pages[self.current_book] = page

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"page": self.page, "font_scale": self.font_scale}
        if self.current_book:
            payload["current_book"] = self.current_book
        if self.pages:
            payload["pages"] = dict(self.pages)
        return payload


def _coerce_int(value: object, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    return default


def load_state(path: Path) -> ReadingState:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return ReadingState()
    except (OSError, json.JSONDecodeError) as exc:
        raise StateError(f"Failed to read reading state {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise StateError(f"Reading state {path} is not a JSON object")

    pages_raw = raw.get("pages")
    pages: dict[str, int] = {}
    if isinstance(pages_raw, dict):
        for key, value in pages_raw.items():
            if isinstance(key, str):
                pages[key] = _coerce_int(value)
    current = raw.get("current_book")
    return ReadingState(
        current_book=current if isinstance(current, str) else "",
        pages=pages,
        page=_coerce_int(raw.get("page")),
        font_scale=_coerce_int(raw.get("font_scale")),
    )


def save_state(path: Path, state: ReadingState) -> None:
    """Write *state* as JSON, replacing *path* atomically."""
    path = Path(path)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            json.dump(state.to_payload(), handle, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise StateError(f"Failed to save reading state {path}: {exc}") from exc
