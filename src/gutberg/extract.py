from __future__ import annotations

import html
import re

PARAGRAPH_BREAK = "\n\n"

_STYLE_BLOCK = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
# Gutenberg wraps its site chrome in divs tagged with these ids.
_PG_HEADER_BLOCK = re.compile(r'<div\s+id="pg-header".*?</div>', re.IGNORECASE | re.DOTALL)
_PG_FOOTER_BLOCK = re.compile(r'<div\s+id="pg-footer".*?</div>', re.IGNORECASE | re.DOTALL)
_TITLE_PATTERN = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)

_START_MARKER = re.compile(r"\*\*\*\s*START OF THE PROJECT GUTENBERG.*?\*\*\*", re.IGNORECASE)
_END_MARKER = re.compile(r"\*\*\*\s*END OF THE PROJECT GUTENBERG.*?\*\*\*", re.IGNORECASE)
_EBOOK_OF_LINE = re.compile(r"^The Project Gutenberg eBook of.*$", re.MULTILINE)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def decode_markup(raw: bytes | str) -> str:
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


def _tag_pattern(tag: str) -> re.Pattern[str]:
    return re.compile(rf"<\s*{re.escape(tag)}\b[^>]*>", re.IGNORECASE)


_BLOCK_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_tag_pattern("br"), "\n"),
    (_tag_pattern("/p"), PARAGRAPH_BREAK),
    (_tag_pattern("p"), ""),
    (_tag_pattern("hr"), "\n"),
)


def strip_tags(text: str) -> str:
    """Drop everything between ``<`` and ``>``; unknown or broken tags included."""
    out: list[str] = []
    in_tag = False
    for ch in text:
        if ch == "<":
            in_tag = True
        elif ch == ">":
            in_tag = False
        elif not in_tag:
            out.append(ch)
    return "".join(out)


def normalize_whitespace(text: str) -> str:
    lines = [" ".join(line.split()) for line in text.split("\n")]
    output = _EXCESS_NEWLINES.sub(PARAGRAPH_BREAK, "\n".join(lines))
    return output.strip()


def strip_gutenberg_boilerplate(text: str) -> str:
    """Cut the Project Gutenberg licence frame around the actual work.

    Both markers are optional; text without them is only re-normalized.
    """
    if not text:
        return text
    start = _START_MARKER.search(text)
    if start is not None:
        text = text[start.end():]
    end = _END_MARKER.search(text)
    if end is not None:
        text = text[: end.start()]
    text = _EBOOK_OF_LINE.sub("", text)
    return normalize_whitespace(text)


def clean_inline_text(fragment: str) -> str:
    return html.unescape(strip_tags(fragment)).strip()


def extract_title(raw: bytes | str) -> str:
    match = _TITLE_PATTERN.search(decode_markup(raw))
    if match is None:
        return ""
    return clean_inline_text(match.group(1))


def clean_html_to_text(raw: bytes | str) -> str:
    """Convert an HTML document (or fragment) into paragraph-separated plain text.

    Paragraph structure survives as blank lines: ``</p>`` becomes a
    paragraph break while ``<br>`` and ``<hr>`` become single newlines.
    The result has Gutenberg's header and licence trailer removed.
    """
    text = decode_markup(raw).replace("\r\n", "\n").replace("\r", "\n")
    for pattern in (_STYLE_BLOCK, _PG_HEADER_BLOCK, _PG_FOOTER_BLOCK):
        text = pattern.sub("", text)
    for pattern, replacement in _BLOCK_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    text = html.unescape(strip_tags(text))
    text = normalize_whitespace(text)
    return strip_gutenberg_boilerplate(text)
