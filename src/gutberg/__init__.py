from .authors import AuthorIndex, default_index, load_authors
from .book import (
    Book,
    Geometry,
    build_book,
    build_pages,
    clamp_page,
    compute_page_layout,
    load_book,
    remap_page,
)
from .chapters import Chapter, ChapterSpan, extract_chapters, segment
from .extract import clean_html_to_text, extract_title, strip_gutenberg_boilerplate, strip_tags
from .gutenberg import BookResult, GutenbergError, download_book_html, fetch_books
from .paginate import paginate, wrap_paragraph

__all__ = [
    "AuthorIndex",
    "default_index",
    "load_authors",
    "Book",
    "Geometry",
    "build_book",
    "build_pages",
    "clamp_page",
    "compute_page_layout",
    "load_book",
    "remap_page",
    "Chapter",
    "ChapterSpan",
    "extract_chapters",
    "segment",
    "clean_html_to_text",
    "extract_title",
    "strip_gutenberg_boilerplate",
    "strip_tags",
    "BookResult",
    "GutenbergError",
    "download_book_html",
    "fetch_books",
    "paginate",
    "wrap_paragraph",
]
