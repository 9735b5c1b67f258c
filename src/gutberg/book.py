from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Sequence

from .chapters import Chapter, extract_chapters
from .extract import clean_html_to_text, extract_title
from .paginate import MIN_LINE_WIDTH, MIN_LINES_PER_PAGE, paginate

logger = logging.getLogger(__name__)

DEFAULT_LINE_WIDTH = 80
DEFAULT_LINES_PER_PAGE = 25
MIN_FONT_SCALE = -5
MAX_FONT_SCALE = 5
UNTITLED = "Untitled"


@dataclass(slots=True, frozen=True)
class Geometry:
    line_width: int = DEFAULT_LINE_WIDTH
    lines_per_page: int = DEFAULT_LINES_PER_PAGE

    def clamped(self) -> Geometry:
        return Geometry(
            line_width=max(MIN_LINE_WIDTH, self.line_width),
            lines_per_page=max(MIN_LINES_PER_PAGE, self.lines_per_page),
        )


@dataclass(slots=True, frozen=True)
class Book:
    title: str
    chapters: tuple[Chapter, ...] = ()
    pages: tuple[str, ...] = ()

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def repaginate(self, geometry: Geometry) -> Book:
        pages, chapters = build_pages(self.chapters, geometry)
        return Book(title=self.title, chapters=tuple(chapters), pages=tuple(pages))

    def chapter_at(self, page: int) -> int | None:
        """Index of the chapter containing *page*, or None for an empty book."""
        found: int | None = None
        for index, chapter in enumerate(self.chapters):
            if chapter.start_page > page:
                break
            found = index
        return found


def clamp_font_scale(scale: int) -> int:
    return max(MIN_FONT_SCALE, min(MAX_FONT_SCALE, scale))


def compute_page_layout(width: int, height: int, scale: int) -> Geometry:
    """Derive the page geometry for a viewport of *width* x *height* cells.

    Each font-scale step narrows lines by four cells and drops two lines;
    a non-positive viewport dimension falls back to the 80x25 default.
    """
    scale = clamp_font_scale(scale)
    base_width = width - 4 if width > 0 else DEFAULT_LINE_WIDTH
    base_lines = height - 8 if height > 0 else DEFAULT_LINES_PER_PAGE
    return Geometry(
        line_width=max(MIN_LINE_WIDTH, base_width - 4 * scale),
        lines_per_page=max(MIN_LINES_PER_PAGE, base_lines - 2 * scale),
    )


def build_pages(chapters: Sequence[Chapter], geometry: Geometry) -> tuple[list[str], list[Chapter]]:
    geometry = geometry.clamped()
    pages: list[str] = []
    placed: list[Chapter] = []
    for chapter in chapters:
        placed.append(replace(chapter, start_page=len(pages)))
        pages.extend(paginate(chapter.title, chapter.text, geometry.line_width, geometry.lines_per_page))
    logger.debug(
        "Paginated %d chapter(s) into %d page(s) at %dx%d",
        len(placed),
        len(pages),
        geometry.line_width,
        geometry.lines_per_page,
    )
    return pages, placed


def build_book(raw: bytes | str, geometry: Geometry) -> Book:
    title = extract_title(raw) or UNTITLED
    chapters = extract_chapters(raw)
    if not chapters:
        logger.debug("No heading structure in %r; using a single chapter", title)
        chapters = [Chapter(title=title, text=clean_html_to_text(raw))]
    return Book(title=title, chapters=tuple(chapters)).repaginate(geometry)


def load_book(path: Path | str, geometry: Geometry) -> Book:
    return build_book(Path(path).read_bytes(), geometry)


def remap_page(old_page: int, old_total: int, new_total: int) -> int:
    """Carry fractional reading progress from one layout to another."""
    if old_total <= 0 or new_total <= 0:
        return 0
    new_page = old_page * new_total // old_total
    return max(0, min(new_page, new_total - 1))


def clamp_page(page: int, total: int) -> int:
    if total <= 0:
        return 0
    return max(0, min(page, total - 1))
