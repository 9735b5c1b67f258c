"""Application state machine for the interactive reader.

``update`` is a pure function of the current model and one event. It returns
the next model plus the tasks (network fetches, file loads, state saves) the
runtime should execute; tasks report back by producing new events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Union

from .authors import AuthorIndex
from .book import (
    Book,
    Geometry,
    clamp_font_scale,
    clamp_page,
    compute_page_layout,
    load_book,
    remap_page,
)
from .config import Config
from .gutenberg import BookResult, GutenbergError, download_book_html, fetch_books
from .library import LibraryEntry, list_library
from .state import ReadingState, StateError, save_state

logger = logging.getLogger(__name__)

AUTHOR_RESULT_LIMIT = 200
NEXT_PAGE_KEYS = {"enter", " ", "right", "down", "pgdown"}
PREV_PAGE_KEYS = {"left", "up", "pgup"}
QUIT_KEYS = {"q", "esc", "ctrl+c"}


# ---------- screens ----------


@dataclass(slots=True, frozen=True)
class AuthorSearch:
    cursor: int = 0


@dataclass(slots=True, frozen=True)
class Library:
    cursor: int = 0
    filter: str = ""
    filtering: bool = False


@dataclass(slots=True, frozen=True)
class BookList:
    cursor: int = 0
    filter: str = ""
    filtering: bool = False


@dataclass(slots=True, frozen=True)
class Reader:
    pass


@dataclass(slots=True, frozen=True)
class Chapters:
    cursor: int = 0
    filter: str = ""
    filtering: bool = False


Screen = Union[AuthorSearch, Library, BookList, Reader, Chapters]
ListScreen = Union[Library, BookList, Chapters]


# ---------- events ----------


@dataclass(slots=True, frozen=True)
class Key:
    name: str


@dataclass(slots=True, frozen=True)
class Resize:
    width: int
    height: int


@dataclass(slots=True, frozen=True)
class BooksLoaded:
    results: tuple[BookResult, ...] = ()
    error: str | None = None


@dataclass(slots=True, frozen=True)
class BookLoaded:
    path: str = ""
    book: Book | None = None
    geometry: Geometry | None = None
    library: tuple[LibraryEntry, ...] = ()
    error: str | None = None


@dataclass(slots=True, frozen=True)
class TaskFailed:
    error: str


Event = Union[Key, Resize, BooksLoaded, BookLoaded, TaskFailed]


# ---------- tasks ----------


@dataclass(slots=True, frozen=True)
class FetchBooks:
    author: str


@dataclass(slots=True, frozen=True)
class DownloadBook:
    url: str
    author: str
    title: str
    books_dir: Path
    geometry: Geometry


@dataclass(slots=True, frozen=True)
class OpenBook:
    path: Path
    books_dir: Path
    geometry: Geometry


@dataclass(slots=True, frozen=True)
class SaveState:
    path: Path
    state: ReadingState


@dataclass(slots=True, frozen=True)
class Quit:
    pass


Task = Union[FetchBooks, DownloadBook, OpenBook, SaveState, Quit]


# ---------- model ----------


@dataclass(slots=True)
class AppModel:
    config: Config
    authors: AuthorIndex
    screen: Screen = field(default_factory=AuthorSearch)
    state: ReadingState = field(default_factory=ReadingState)
    book: Book | None = None
    geometry: Geometry = field(default_factory=Geometry)
    viewport: tuple[int, int] = (0, 0)
    query: str = ""
    author_results: tuple[str, ...] = ()
    library: tuple[LibraryEntry, ...] = ()
    books: tuple[BookResult, ...] = ()
    status: str = ""

    @property
    def page_count(self) -> int:
        return self.book.page_count if self.book is not None else 0

    @property
    def current_page(self) -> str:
        if self.book is None or not self.book.pages:
            return ""
        return self.book.pages[clamp_page(self.state.page, self.page_count)]


def _copy(model: AppModel) -> AppModel:
    state = replace(model.state, pages=dict(model.state.pages))
    return replace(model, state=state)


def initial_model(
    config: Config,
    authors: AuthorIndex,
    state: ReadingState,
    library: list[LibraryEntry],
) -> tuple[AppModel, list[Task]]:
    """Start in the library when there are downloaded books, else in author search.

    A previously open book is reloaded in the background and takes over the
    screen once ``BookLoaded`` arrives.
    """
    model = AppModel(
        config=config,
        authors=authors,
        state=state,
        library=tuple(library),
        screen=Library() if library else AuthorSearch(),
    )
    model.geometry = compute_page_layout(0, 0, state.font_scale)
    tasks: list[Task] = []
    if state.current_book and Path(state.current_book).is_file():
        model.status = "Loading book..."
        tasks.append(OpenBook(Path(state.current_book), config.books_dir, model.geometry))
    return model, tasks


def _save(model: AppModel) -> SaveState:
    return SaveState(model.config.state_file, replace(model.state, pages=dict(model.state.pages)))


def _move(cursor: int, delta: int, size: int) -> int:
    if size <= 0:
        return 0
    return max(0, min(cursor + delta, size - 1))


def _cursor_delta(key: str) -> int:
    if key == "up":
        return -1
    if key == "down":
        return 1
    if key == "pgup":
        return -10
    if key == "pgdown":
        return 10
    return 0


def library_titles(model: AppModel) -> list[str]:
    return [entry.title for entry in model.library]


def book_titles(model: AppModel) -> list[str]:
    return [result.title for result in model.books]


def chapter_titles(model: AppModel) -> list[str]:
    chapters = model.book.chapters if model.book is not None else ()
    return [chapter.title or f"Chapter {index + 1}" for index, chapter in enumerate(chapters)]


def visible_indices(titles: list[str], query: str) -> list[int]:
    """Indices of *titles* containing *query*, ignoring case."""
    needle = query.casefold()
    if not needle:
        return list(range(len(titles)))
    return [index for index, title in enumerate(titles) if needle in title.casefold()]


def _filter_key(screen: ListScreen, key: str) -> ListScreen | None:
    """Apply *key* to the list filter; None when the key is not a filter edit.

    ``/`` starts typing a filter, enter keeps it, esc drops it.
    """
    if screen.filtering:
        if key == "enter":
            return replace(screen, filtering=False)
        if key == "esc":
            return replace(screen, cursor=0, filter="", filtering=False)
        if key == "backspace":
            return replace(screen, cursor=0, filter=screen.filter[:-1])
        if len(key) == 1 and key.isprintable():
            return replace(screen, cursor=0, filter=screen.filter + key)
        return None
    if key == "/":
        return replace(screen, cursor=0, filtering=True)
    if key == "esc" and screen.filter:
        return replace(screen, cursor=0, filter="")
    return None


def _selected(screen: ListScreen, visible: list[int]) -> int | None:
    if not visible:
        return None
    return visible[_move(screen.cursor, 0, len(visible))]


def _relayout(model: AppModel, geometry: Geometry) -> bool:
    """Re-paginate the open book for *geometry*; False if nothing changed."""
    if geometry == model.geometry:
        return False
    model.geometry = geometry
    if model.book is not None and model.book.chapters:
        old_total = model.page_count
        old_page = model.state.page
        model.book = model.book.repaginate(geometry)
        model.state.remember(remap_page(old_page, old_total, model.page_count))
    return True


def update(model: AppModel, event: Event) -> tuple[AppModel, list[Task]]:
    model = _copy(model)

    if isinstance(event, Resize):
        model.viewport = (event.width, event.height)
        changed = _relayout(model, compute_page_layout(event.width, event.height, model.state.font_scale))
        return model, [_save(model)] if changed else []
    if isinstance(event, TaskFailed):
        model.status = event.error
        return model, []
    if isinstance(event, BooksLoaded):
        if event.error is not None:
            model.status = event.error
            return model, []
        model.books = event.results
        model.screen = BookList()
        model.status = f"{len(event.results)} books"
        return model, []
    if isinstance(event, BookLoaded):
        return _on_book_loaded(model, event)

    key = event.name
    screen = model.screen
    if isinstance(screen, AuthorSearch):
        return _author_search(model, screen, key)
    if isinstance(screen, Library):
        return _library(model, screen, key)
    if isinstance(screen, BookList):
        return _book_list(model, screen, key)
    if isinstance(screen, Chapters):
        return _chapters(model, screen, key)
    return _reader(model, key)


def _on_book_loaded(model: AppModel, event: BookLoaded) -> tuple[AppModel, list[Task]]:
    if event.error is not None or event.book is None:
        model.status = event.error or "Failed to load book"
        return model, []
    book = event.book
    if event.geometry != model.geometry:
        book = book.repaginate(model.geometry)
    model.book = book
    if event.library:
        model.library = event.library
    model.state.current_book = event.path
    model.state.remember(clamp_page(model.state.pages.get(event.path, 0), book.page_count))
    model.screen = Reader()
    model.status = ""
    return model, [_save(model)]


def _author_search(model: AppModel, screen: AuthorSearch, key: str) -> tuple[AppModel, list[Task]]:
    if key in {"esc", "ctrl+c"}:
        return model, [Quit()]
    if key == "tab":
        model.screen = Library()
        return model, []
    if key == "enter":
        if model.author_results:
            author = model.author_results[_move(screen.cursor, 0, len(model.author_results))]
            model.status = "Searching books..."
            return model, [FetchBooks(author)]
        if not model.query.strip():
            model.status = "Enter a prefix to search"
        return model, []
    delta = _cursor_delta(key)
    if delta:
        model.screen = AuthorSearch(cursor=_move(screen.cursor, delta, len(model.author_results)))
        return model, []

    if key == "backspace":
        query = model.query[:-1]
    elif len(key) == 1 and key.isprintable():
        query = model.query + key
    else:
        return model, []
    if query != model.query:
        model.query = query
        model.author_results = tuple(model.authors.search(query, AUTHOR_RESULT_LIMIT))
        model.screen = AuthorSearch()
    return model, []


def _library(model: AppModel, screen: Library, key: str) -> tuple[AppModel, list[Task]]:
    filtered = _filter_key(screen, key)
    if filtered is not None:
        model.screen = filtered
        return model, []
    visible = visible_indices(library_titles(model), screen.filter)
    if key in QUIT_KEYS:
        return model, [Quit()]
    if key == "enter":
        selected = _selected(screen, visible)
        if selected is not None:
            entry = model.library[selected]
            model.status = "Loading book..."
            return model, [OpenBook(entry.path, model.config.books_dir, model.geometry)]
        return model, []
    if key == "s":
        model.screen = AuthorSearch()
        return model, []
    if key == "b":
        if model.state.current_book and model.page_count > 0:
            model.screen = Reader()
        return model, []
    if key == "c":
        if model.book is not None and model.book.chapters:
            model.screen = _chapters_screen(model)
        return model, []
    delta = _cursor_delta(key)
    if delta:
        model.screen = replace(screen, cursor=_move(screen.cursor, delta, len(visible)))
    return model, []


def _book_list(model: AppModel, screen: BookList, key: str) -> tuple[AppModel, list[Task]]:
    filtered = _filter_key(screen, key)
    if filtered is not None:
        model.screen = filtered
        return model, []
    visible = visible_indices(book_titles(model), screen.filter)
    if key in QUIT_KEYS:
        return model, [Quit()]
    if key == "enter":
        selected = _selected(screen, visible)
        if selected is not None:
            result = model.books[selected]
            model.status = "Downloading book..."
            return model, [
                DownloadBook(
                    url=result.url,
                    author=result.subtitle,
                    title=result.title,
                    books_dir=model.config.books_dir,
                    geometry=model.geometry,
                )
            ]
        return model, []
    if key == "b":
        model.screen = Library()
        return model, []
    if key == "s":
        model.screen = AuthorSearch()
        return model, []
    delta = _cursor_delta(key)
    if delta:
        model.screen = replace(screen, cursor=_move(screen.cursor, delta, len(visible)))
    return model, []


def _chapters_screen(model: AppModel) -> Chapters:
    current = model.book.chapter_at(model.state.page) if model.book is not None else None
    return Chapters(cursor=current or 0)


def _chapters(model: AppModel, screen: Chapters, key: str) -> tuple[AppModel, list[Task]]:
    filtered = _filter_key(screen, key)
    if filtered is not None:
        model.screen = filtered
        return model, []
    chapters = model.book.chapters if model.book is not None else ()
    visible = visible_indices(chapter_titles(model), screen.filter)
    if key in {"q", "ctrl+c"}:
        return model, [Quit()]
    if key in {"b", "esc"}:
        model.screen = Reader()
        return model, []
    if key == "enter":
        selected = _selected(screen, visible)
        if selected is not None:
            model.state.remember(clamp_page(chapters[selected].start_page, model.page_count))
            model.screen = Reader()
            return model, [_save(model)]
        return model, []
    delta = _cursor_delta(key)
    if delta:
        model.screen = replace(screen, cursor=_move(screen.cursor, delta, len(visible)))
    return model, []


def _reader(model: AppModel, key: str) -> tuple[AppModel, list[Task]]:
    total = model.page_count
    page = model.state.page
    if key in {"q", "ctrl+c"}:
        return model, [Quit()]
    if key == "b":
        model.screen = Library()
        return model, []
    if key == "s":
        model.screen = AuthorSearch()
        return model, []
    if key == "c":
        if model.book is not None and model.book.chapters:
            model.screen = _chapters_screen(model)
        return model, []
    if key in {"+", "=", "-"}:
        step = -1 if key == "-" else 1
        model.state.font_scale = clamp_font_scale(model.state.font_scale + step)
        width, height = model.viewport
        _relayout(model, compute_page_layout(width, height, model.state.font_scale))
        return model, [_save(model)]

    if key in NEXT_PAGE_KEYS:
        target = page + 1
    elif key in PREV_PAGE_KEYS:
        target = page - 1
    elif key == "home":
        target = 0
    elif key == "end":
        target = total - 1
    else:
        return model, []
    target = clamp_page(target, total)
    if target == page:
        return model, []
    model.state.remember(target)
    return model, [_save(model)]


# ---------- task execution ----------


def run_task(task: Task) -> Event | None:
    """Execute one side-effecting task and describe its outcome as an event."""
    if isinstance(task, FetchBooks):
        try:
            return BooksLoaded(results=tuple(fetch_books(task.author)))
        except GutenbergError as exc:
            return BooksLoaded(error=str(exc))
    if isinstance(task, DownloadBook):
        try:
            path = download_book_html(task.url, task.author, task.title, task.books_dir)
        except GutenbergError as exc:
            return BookLoaded(error=str(exc))
        return _open(path, task.books_dir, task.geometry)
    if isinstance(task, OpenBook):
        return _open(task.path, task.books_dir, task.geometry)
    if isinstance(task, SaveState):
        try:
            save_state(task.path, task.state)
        except StateError as exc:
            return TaskFailed(str(exc))
        return None
    return None


def _open(path: Path, books_dir: Path, geometry: Geometry) -> BookLoaded:
    try:
        book = load_book(path, geometry)
    except OSError as exc:
        logger.warning("Failed to open %s: %s", path, exc)
        return BookLoaded(error=f"open {path}: {exc}")
    return BookLoaded(
        path=str(path),
        book=book,
        geometry=geometry,
        library=tuple(list_library(books_dir)),
    )
