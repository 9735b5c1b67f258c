from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

BOOK_SUFFIXES = (".html", ".html.images")


@dataclass(slots=True, frozen=True)
class LibraryEntry:
    title: str
    path: Path


def _title_from_name(name: str) -> str:
    stem = name.removesuffix(".images").removesuffix(".html")
    return stem.replace("_", " ")


def list_library(root: Path) -> list[LibraryEntry]:
    """Downloaded books under *root*, sorted by title."""
    try:
        entries = list(Path(root).iterdir())
    except FileNotFoundError:
        return []
    books: list[LibraryEntry] = []
    for entry in entries:
        if entry.is_dir() or not entry.name.endswith(BOOK_SUFFIXES):
            continue
        books.append(LibraryEntry(title=_title_from_name(entry.name), path=entry))
    books.sort(key=lambda book: (book.title, book.path.name))
    return books
