from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .extract import clean_html_to_text, clean_inline_text, decode_markup

logger = logging.getLogger(__name__)

_HEADING_PATTERN = re.compile(r"<h[1-3][^>]*>(.*?)</h[1-3]>", re.IGNORECASE | re.DOTALL)


@dataclass(slots=True, frozen=True)
class Chapter:
    title: str
    text: str
    start_page: int = 0


@dataclass(slots=True, frozen=True)
class ChapterSpan:
    """A heading title plus the raw markup that follows it, up to the next heading."""

    title: str
    raw: str


def segment(raw: bytes | str) -> list[ChapterSpan]:
    markup = decode_markup(raw)
    matches = list(_HEADING_PATTERN.finditer(markup))
    spans: list[ChapterSpan] = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(markup)
        spans.append(
            ChapterSpan(
                title=clean_inline_text(match.group(1)),
                raw=markup[match.end():end],
            )
        )
    return spans


def extract_chapters(raw: bytes | str) -> list[Chapter]:
    """Split *raw* into cleaned chapters at ``<h1>``-``<h3>`` headings.

    Returns an empty list when the document does not yield at least two
    non-empty chapters; callers then treat the whole document as one chapter.
    """
    spans = segment(raw)
    chapters: list[Chapter] = []
    for span in spans:
        text = clean_html_to_text(span.raw)
        if not text.strip():
            continue
        chapters.append(Chapter(title=span.title, text=text))
    if len(chapters) <= 1:
        logger.debug("Heading segmentation found %d usable chapter(s) in %d heading(s)", len(chapters), len(spans))
        return []
    return chapters
