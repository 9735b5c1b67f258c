from __future__ import annotations

import contextlib
import logging
import os
import queue
import select
import sys
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterator, Sequence

from rich.console import Console, Group, RenderableType
from rich.text import Text

from .app import (
    AppModel,
    AuthorSearch,
    BookList,
    Chapters,
    Event,
    Key,
    Library,
    ListScreen,
    Quit,
    Resize,
    SaveState,
    Task,
    TaskFailed,
    book_titles,
    chapter_titles,
    initial_model,
    library_titles,
    run_task,
    update,
    visible_indices,
)
from .authors import AuthorIndex
from .config import Config
from .library import list_library
from .state import ReadingState

logger = logging.getLogger(__name__)

TITLE_STYLE = "bold color(63)"
META_STYLE = "color(242)"
HELP_STYLE = "color(245)"
POLL_INTERVAL = 0.1

_ESCAPE_SEQUENCES = {
    "[A": "up",
    "[B": "down",
    "[C": "right",
    "[D": "left",
    "[H": "home",
    "[F": "end",
    "OH": "home",
    "OF": "end",
    "[1~": "home",
    "[4~": "end",
    "[5~": "pgup",
    "[6~": "pgdown",
}
_CONTROL_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x03": "ctrl+c",
}


_SEQUENCES_LONGEST_FIRST = sorted(_ESCAPE_SEQUENCES, key=len, reverse=True)


def _skip_escape(data: str, start: int) -> int:
    """Index just past an unrecognised sequence introduced at *start*."""
    if data[start] == "O":
        return min(start + 2, len(data))
    index = start + 1
    while index < len(data) and data[index] in "0123456789;":
        index += 1
    return min(index + 1, len(data))


def parse_keys(data: str) -> list[str]:
    """Translate raw terminal input into key names.

    One read may hold several keys, so *data* is scanned left to right and
    each escape matches the longest known sequence.
    """
    keys: list[str] = []
    index = 0
    while index < len(data):
        ch = data[index]
        if ch != "\x1b":
            if ch in _CONTROL_KEYS:
                keys.append(_CONTROL_KEYS[ch])
            elif ch.isprintable():
                keys.append(ch)
            index += 1
            continue
        rest = data[index + 1:]
        for seq in _SEQUENCES_LONGEST_FIRST:
            if rest.startswith(seq):
                keys.append(_ESCAPE_SEQUENCES[seq])
                index += 1 + len(seq)
                break
        else:
            if rest[:1] in ("[", "O"):
                index = _skip_escape(data, index + 1)
            else:
                keys.append("esc")
                index += 1
    return keys


# ---------- rendering ----------


def _list_window(items: Sequence[str], cursor: int, height: int) -> Text:
    height = max(height, 1)
    start = max(0, min(cursor - height // 2, len(items) - height))
    text = Text()
    for index in range(start, min(len(items), start + height)):
        style = "reverse" if index == cursor else ""
        text.append(f"{'>' if index == cursor else ' '} {items[index]}\n", style=style)
    return text


def _help(message: str) -> Text:
    return Text(message, style=HELP_STYLE)


def _list_height(model: AppModel, reserved: int) -> int:
    height = model.viewport[1]
    return (height - reserved) if height > reserved else 10


def render(model: AppModel) -> RenderableType:
    screen = model.screen
    if isinstance(screen, AuthorSearch):
        status = model.status or "Type to filter, enter to select, tab: library, esc: quit"
        return Group(
            Text("Gutenberg Reader", style=TITLE_STYLE),
            Text(""),
            Text("Search authors by prefix"),
            Text(f"> {model.query}", style="bold"),
            Text(""),
            _list_window(model.author_results, screen.cursor, _list_height(model, 8)),
            Text(status),
        )
    if isinstance(screen, Library):
        titles = library_titles(model)
        rows = [titles[index] for index in visible_indices(titles, screen.filter)]
        if not titles:
            rows = ["(no downloaded books)"]
        return _list_screen(
            "Library",
            screen,
            rows,
            model,
            model.status or "enter: open  /: filter  s: search  c: chapters  b: back  q: quit",
        )
    if isinstance(screen, BookList):
        rows = [
            f"{model.books[index].title}  [{model.books[index].description}]"
            for index in visible_indices(book_titles(model), screen.filter)
        ]
        return _list_screen(
            "Books",
            screen,
            rows,
            model,
            model.status or "enter: download/read  /: filter  b: library  s: search  q: quit",
        )
    if isinstance(screen, Chapters):
        titles = chapter_titles(model)
        rows = [f"{index + 1:3d}. {titles[index]}" for index in visible_indices(titles, screen.filter)]
        return _list_screen("Chapters", screen, rows, model, "enter: open  /: filter  b/esc: back  q: quit")
    return _render_reader(model)


def _list_screen(
    title: str,
    screen: ListScreen,
    rows: list[str],
    model: AppModel,
    help_text: str,
) -> RenderableType:
    parts: list[RenderableType] = [Text(title, style=TITLE_STYLE)]
    reserved = 4
    if screen.filtering or screen.filter:
        cursor = "_" if screen.filtering else ""
        parts.append(Text(f"Filter: {screen.filter}{cursor}", style=META_STYLE))
        reserved += 1
    parts.append(_list_window(rows, screen.cursor, _list_height(model, reserved)))
    parts.append(_help(help_text))
    return Group(*parts)


def _render_reader(model: AppModel) -> RenderableType:
    if model.book is None or not model.book.pages:
        return Text("No pages available.")
    return Group(
        Text(model.book.title, style=TITLE_STYLE),
        Text(f"Page {model.state.page + 1}/{model.page_count}", style=META_STYLE),
        Text(""),
        Text(model.current_page, no_wrap=True, overflow="crop"),
        Text(""),
        _help(model.status or "enter/space: next  pgup: prev  +/-: size  c: chapters  b: library  s: search  q: quit"),
    )


# ---------- runtime ----------


@contextlib.contextmanager
def _raw_terminal(fd: int) -> Iterator[None]:
    import termios
    import tty

    saved = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def _read_keys(fd: int, timeout: float) -> list[str]:
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        return []
    data = os.read(fd, 64).decode("utf-8", errors="ignore")
    return parse_keys(data)


def _post_result(task: Task, events: queue.Queue[Event]) -> None:
    try:
        event = run_task(task)
    except Exception as exc:
        logger.exception("Task %r failed", task)
        event = TaskFailed(str(exc))
    if event is not None:
        events.put(event)


class TaskRunner:
    """Run tasks in the background and post their events to *events*.

    State saves go to a single worker of their own, so they reach the file
    in submission order.
    """

    def __init__(self, events: queue.Queue[Event], workers: int = 2) -> None:
        self.events = events
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gutberg-task")
        self._saves = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gutberg-save")

    def submit(self, task: Task) -> Future[None]:
        pool = self._saves if isinstance(task, SaveState) else self._pool
        return pool.submit(_post_result, task, self.events)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True)
        self._saves.shutdown(wait=True)

    def __enter__(self) -> TaskRunner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


def drain_events(events: queue.Queue[Event]) -> list[Event]:
    """Take everything queued, keeping only the last of consecutive resizes.

    Each resize triggers a full re-pagination, so a burst of resize signals
    collapses into the final size.
    """
    drained: list[Event] = []
    while True:
        try:
            event = events.get_nowait()
        except queue.Empty:
            break
        if isinstance(event, Resize) and drained and isinstance(drained[-1], Resize):
            drained[-1] = event
        else:
            drained.append(event)
    return drained


def run(
    config: Config,
    authors: AuthorIndex,
    state: ReadingState,
    console: Console | None = None,
) -> int:
    console = console or Console()
    if not console.is_terminal:
        console.print("gutberg needs an interactive terminal.", style="red")
        return 1
    fd = sys.stdin.fileno()
    model, tasks = initial_model(config, authors, state, list_library(config.books_dir))
    events: queue.Queue[Event] = queue.Queue()
    last_size: tuple[int, int] | None = None

    with TaskRunner(events) as runner, _raw_terminal(fd), console.screen() as screen:
        while True:
            for task in tasks:
                if isinstance(task, Quit):
                    return 0
                runner.submit(task)
            tasks = []

            size = (console.size.width, console.size.height)
            if size != last_size:
                last_size = size
                events.put(Resize(*size))
            for key in _read_keys(fd, POLL_INTERVAL):
                events.put(Key(key))

            for event in drain_events(events):
                model, produced = update(model, event)
                tasks.extend(produced)
            screen.update(render(model))
