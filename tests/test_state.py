from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from gutberg.state import ReadingState, StateError, load_state, save_state


def test_missing_state_file_gives_empty_state(tmp_path: Path) -> None:
    state = load_state(tmp_path / "state.json")
    assert state == ReadingState()


def test_saved_state_is_reloaded(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.json"
    state = ReadingState(current_book="/books/a.html", font_scale=-2)
    state.remember(7)
    save_state(path, state)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["pages"] == {"/books/a.html": 7}
    assert load_state(path) == state


def test_remember_without_book_only_moves_cursor() -> None:
    state = ReadingState()
    state.remember(3)
    assert state.page == 3
    assert state.pages == {}


def test_partial_and_odd_values_are_tolerated(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"page": "three", "pages": {"a": 2, "b": None}}), encoding="utf-8")
    state = load_state(path)
    assert state.page == 0
    assert state.pages == {"a": 2, "b": 0}
    assert state.current_book == ""


def test_corrupt_state_raises(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StateError):
        load_state(path)
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StateError):
        load_state(path)


def test_concurrent_saves_leave_a_complete_file(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    states = [
        ReadingState(current_book=f"/books/{n}.html", pages={f"/books/{n}.html": 100000 + n}, page=100000 + n)
        for n in range(64)
    ]
    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(5):
            list(pool.map(lambda state: save_state(path, state), states))
    assert load_state(path) in states
    assert [entry.name for entry in tmp_path.iterdir()] == ["state.json"]


def test_save_replaces_previous_state(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    save_state(path, ReadingState(current_book="/books/long_title.html", pages={"/books/long_title.html": 123456}))
    save_state(path, ReadingState(page=9))
    assert load_state(path) == ReadingState(page=9)
