from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console

from .authors import DEFAULT_SEARCH_LIMIT, default_index
from .book import clamp_page, compute_page_layout, load_book
from .config import ConfigError, load_config
from .gutenberg import GutenbergError, download_book_html, fetch_books
from .logging_utils import configure_logging
from .state import StateError, load_state
from .tui import run as run_tui
from .version import __version__


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"gutberg {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description=(
            "Terminal reader for Project Gutenberg books. Run without arguments for the "
            "interactive reader, or use one of: authors, search, download, pages, chapters. "
            "--debug and --config-dir may be given before the subcommand."
        ),
    )
    _add_common_flags(ap)
    ap.add_argument(
        "--config-dir",
        type=Path,
        help="Directory holding gutberg.toml (default: $XDG_CONFIG_HOME/gutberg).",
    )
    return ap


def build_authors_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gutberg authors", description="List authors whose name starts with PREFIX.")
    _add_common_flags(ap)
    ap.add_argument("prefix", help="Case-insensitive author name prefix, e.g. 'doy'.")
    ap.add_argument(
        "-n",
        "--limit",
        type=int,
        default=DEFAULT_SEARCH_LIMIT,
        help=f"Maximum number of names to print; 0 for all (default: {DEFAULT_SEARCH_LIMIT}).",
    )
    return ap


def build_search_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gutberg search", description="Search gutenberg.org for books.")
    _add_common_flags(ap)
    ap.add_argument("query", nargs="+", help="Author name or free-text query.")
    return ap


def build_download_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gutberg download", description="Download a book's HTML edition.")
    _add_common_flags(ap)
    ap.add_argument("book", help="Ebook number, /ebooks/ path, or full gutenberg.org URL.")
    ap.add_argument("--author", default="", help="Author used to name the downloaded file.")
    ap.add_argument("--title", default="", help="Title used to name the downloaded file.")
    ap.add_argument("--config-dir", type=Path, help="Directory holding gutberg.toml.")
    return ap


def _add_layout_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", type=Path, help="Path to a downloaded .html book.")
    parser.add_argument("--width", type=int, default=0, help="Viewport width in cells (default: 80-column page).")
    parser.add_argument("--height", type=int, default=0, help="Viewport height in lines (default: 25-line page).")
    parser.add_argument("--scale", type=int, default=0, help="Font scale between -5 and 5 (default: 0).")


def build_pages_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gutberg pages", description="Print the paginated text of a book.")
    _add_common_flags(ap)
    _add_layout_flags(ap)
    ap.add_argument("-p", "--page", type=int, help="Print only this 1-based page.")
    return ap


def build_chapters_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gutberg chapters", description="List a book's chapters and start pages.")
    _add_common_flags(ap)
    _add_layout_flags(ap)
    return ap


def _run_authors(args: argparse.Namespace, console: Console) -> int:
    for name in default_index().search(args.prefix, args.limit):
        console.print(name, highlight=False, markup=False)
    return 0


def _run_search(args: argparse.Namespace, console: Console) -> int:
    results = fetch_books(" ".join(args.query))
    if not results:
        console.print("No books found.")
        return 0
    for result in results:
        console.print(result.title, style="bold", highlight=False, markup=False)
        if result.description:
            console.print(f"  {result.description}", highlight=False, markup=False)
    return 0


def _run_download(args: argparse.Namespace, console: Console) -> int:
    config = load_config(args.config_dir)
    path = download_book_html(args.book, args.author, args.title, config.books_dir)
    console.print(str(path), highlight=False, markup=False)
    return 0


def _run_pages(args: argparse.Namespace, console: Console) -> int:
    geometry = compute_page_layout(args.width, args.height, args.scale)
    book = load_book(args.path, geometry)
    if args.page is not None:
        index = clamp_page(args.page - 1, book.page_count)
        if book.pages:
            console.print(book.pages[index], highlight=False, markup=False)
        return 0
    for number, page in enumerate(book.pages, start=1):
        console.rule(f"{book.title} {number}/{book.page_count}")
        console.print(page, highlight=False, markup=False)
    return 0


def _run_chapters(args: argparse.Namespace, console: Console) -> int:
    geometry = compute_page_layout(args.width, args.height, args.scale)
    book = load_book(args.path, geometry)
    console.print(f"{book.title} ({book.page_count} pages)", style="bold", highlight=False, markup=False)
    for index, chapter in enumerate(book.chapters, start=1):
        title = chapter.title or f"Chapter {index}"
        console.print(f"{index:3d}. {title}  (page {chapter.start_page + 1})", highlight=False, markup=False)
    return 0


def _run_reader(args: argparse.Namespace, console: Console) -> int:
    config = load_config(args.config_dir)
    configure_logging(args.debug, log_file=config.log_file)
    state = load_state(config.state_file)
    return run_tui(config, default_index(), state, console=console)


_HANDLERS = {
    "authors": (build_authors_parser, _run_authors),
    "search": (build_search_parser, _run_search),
    "download": (build_download_parser, _run_download),
    "pages": (build_pages_parser, _run_pages),
    "chapters": (build_chapters_parser, _run_chapters),
}


def _run_guarded(handler, args: argparse.Namespace, console: Console) -> int:
    try:
        return handler(args, console)
    except (GutenbergError, ConfigError, StateError, OSError) as exc:
        Console(stderr=True).print(f"error: {exc}", style="red", markup=False, highlight=False)
        return 1


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    console = Console()
    # global flags may precede the subcommand
    split = next((index for index, arg in enumerate(argv) if arg in _HANDLERS), len(argv))
    common = build_parser().parse_args(argv[:split])
    if split == len(argv):
        return _run_guarded(_run_reader, common, console)

    build, handler = _HANDLERS[argv[split]]
    args = build().parse_args(argv[split + 1:])
    args.debug = args.debug or common.debug
    if getattr(args, "config_dir", None) is None:
        args.config_dir = common.config_dir
    configure_logging(args.debug)
    return _run_guarded(handler, args, console)


if __name__ == "__main__":
    raise SystemExit(main())
