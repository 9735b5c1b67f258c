from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

import requests
from bs4 import BeautifulSoup, Tag  # type: ignore

from .version import __version__

logger = logging.getLogger(__name__)

GUTENBERG_BASE_URL = "https://www.gutenberg.org"
SEARCH_URL = f"{GUTENBERG_BASE_URL}/ebooks/search/?query="
USER_AGENT = f"gutberg-cli/{__version__}"
REQUEST_TIMEOUT = 30.0
READ_NOW_LABELS = {"read now!", "read now", "read online"}


class GutenbergError(RuntimeError):
    """Raised when gutenberg.org cannot be reached or returns something unusable."""


@dataclass(slots=True, frozen=True)
class BookResult:
    title: str
    url: str
    subtitle: str = ""
    extra: str = ""

    @property
    def description(self) -> str:
        return " | ".join(part for part in (self.subtitle, self.extra, self.url) if part)


def _get(url: str, session: Any = None, *, stream: bool = False) -> requests.Response:
    client = session if session is not None else requests
    logger.debug("GET %s", url)
    try:
        response = client.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=REQUEST_TIMEOUT,
            stream=stream,
        )
    except requests.RequestException as exc:
        logger.warning("Request to %s failed: %s", url, exc)
        raise GutenbergError(f"Failed to fetch {url}: {exc}") from exc
    if response.status_code != 200:
        raise GutenbergError(f"unexpected status: {response.status_code} {response.reason} ({url})")
    return response


def _span_text(node: Tag, class_name: str) -> str:
    span = node.find("span", class_=class_name)
    if span is None:
        return ""
    return span.get_text().strip()


def parse_search_results(markup: str | bytes) -> list[BookResult]:
    soup = BeautifulSoup(markup, "html.parser")
    results: list[BookResult] = []
    for link in soup.find_all("a", class_="link"):
        href = link.get("href") or ""
        if not href.startswith("/ebooks/"):
            continue
        title = _span_text(link, "title")
        if not title:
            continue
        results.append(
            BookResult(
                title=title,
                url=GUTENBERG_BASE_URL + href,
                subtitle=_span_text(link, "subtitle"),
                extra=_span_text(link, "extra"),
            )
        )
    return results


def fetch_books(query: str, session: Any = None) -> list[BookResult]:
    response = _get(SEARCH_URL + quote_plus(query), session)
    results = parse_search_results(response.content)
    logger.debug("Search for %r returned %d book(s)", query, len(results))
    return results


def normalize_ebook_url(id_or_url: str) -> str:
    if id_or_url.startswith(("http://", "https://")):
        return id_or_url
    id_or_url = id_or_url.strip()
    if id_or_url.startswith("/ebooks/"):
        return GUTENBERG_BASE_URL + id_or_url
    return f"{GUTENBERG_BASE_URL}/ebooks/{id_or_url}"


def is_readable_html(href: str) -> bool:
    if not href:
        return False
    if "/cache/epub/" in href:
        return True
    return href.endswith((".html", ".html.images"))


def find_read_now_url(soup: BeautifulSoup) -> str:
    for link in soup.find_all("a"):
        href = link.get("href") or ""
        if not is_readable_html(href):
            continue
        title_attr = (link.get("title") or "").lower()
        text = link.get_text().strip().lower()
        if "read online" in title_attr or text in READ_NOW_LABELS:
            return href
    return ""


def sanitize_filename(text: str) -> str:
    cleaned = "".join(ch if ch.isascii() and ch.isalnum() else "_" for ch in text.strip())
    return re.sub(r"_{2,}", "_", cleaned).strip("_")


def file_name_from_url(href: str) -> str:
    return href.rstrip("/").split("/")[-1]


def build_book_file_name(author: str, title: str, href: str) -> str:
    author = sanitize_filename(author)
    title = sanitize_filename(title)
    if author and title:
        return f"{author}-{title}.html"
    if title:
        return f"{title}.html"
    return file_name_from_url(href)


def download_book_html(
    id_or_url: str,
    author: str,
    title: str,
    out_dir: Path,
    session: Any = None,
) -> Path:
    """Download the "read online" HTML edition of an ebook into *out_dir*."""
    ebook_url = normalize_ebook_url(id_or_url)
    landing = _get(ebook_url, session)
    read_now = find_read_now_url(BeautifulSoup(landing.content, "html.parser"))
    if not read_now:
        raise GutenbergError(f"read online link not found ({ebook_url})")

    full_url = read_now if read_now.startswith(("http://", "https://")) else GUTENBERG_BASE_URL + read_now
    response = _get(full_url, session, stream=True)

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / (build_book_file_name(author, title, read_now) or "book.html")
    part_path = out_path.with_name(out_path.name + ".part")
    try:
        with part_path.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=64 * 1024):
                if chunk:
                    handle.write(chunk)
        part_path.replace(out_path)
    except requests.RequestException as exc:
        part_path.unlink(missing_ok=True)
        raise GutenbergError(f"Failed to download {full_url}: {exc}") from exc
    except OSError:
        part_path.unlink(missing_ok=True)
        raise
    logger.debug("Saved %s to %s", full_url, out_path)
    return out_path
