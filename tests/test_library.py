from __future__ import annotations

from pathlib import Path

from gutberg.library import LibraryEntry, list_library


def test_list_library_filters_and_sorts(tmp_path: Path) -> None:
    for name in ("Wells-The_Time_Machine.html", "Austen-Emma.html.images", "notes.txt", "cover.jpg"):
        (tmp_path / name).write_text("x", encoding="utf-8")
    (tmp_path / "folder.html").mkdir()

    assert list_library(tmp_path) == [
        LibraryEntry(title="Austen-Emma", path=tmp_path / "Austen-Emma.html.images"),
        LibraryEntry(title="Wells-The Time Machine", path=tmp_path / "Wells-The_Time_Machine.html"),
    ]


def test_missing_library_is_empty(tmp_path: Path) -> None:
    assert list_library(tmp_path / "absent") == []
