from __future__ import annotations

from rich.cells import cell_len

from .extract import PARAGRAPH_BREAK

MIN_LINE_WIDTH = 20
MIN_LINES_PER_PAGE = 5


def wrap_paragraph(text: str, width: int) -> str:
    """Greedy word wrap measured in terminal cells.

    A word wider than *width* gets a line of its own and is left whole.
    """
    lines: list[str] = []
    current: list[str] = []
    line_len = 0
    for word in text.split():
        word_width = cell_len(word)
        if not current:
            current.append(word)
            line_len = word_width
            continue
        if line_len + 1 + word_width > width:
            lines.append(" ".join(current))
            current = [word]
            line_len = word_width
            continue
        current.append(word)
        line_len += 1 + word_width
    if current:
        lines.append(" ".join(current))
    return "\n".join(lines)


def wrap_text(text: str, width: int) -> str:
    paragraphs = (part.strip() for part in text.split(PARAGRAPH_BREAK))
    return PARAGRAPH_BREAK.join(wrap_paragraph(part, width) for part in paragraphs if part)


def paginate(title: str, body: str, line_width: int, lines_per_page: int) -> list[str]:
    if not body.strip():
        return []
    line_width = max(MIN_LINE_WIDTH, line_width)
    lines_per_page = max(MIN_LINES_PER_PAGE, lines_per_page)

    text = f"{title}{PARAGRAPH_BREAK}{body}".strip()
    lines = wrap_text(text, line_width).split("\n")
    return [
        "\n".join(lines[start:start + lines_per_page]).strip()
        for start in range(0, len(lines), lines_per_page)
    ]
