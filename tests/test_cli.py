from __future__ import annotations

import logging
from pathlib import Path

import pytest

from gutberg.cli import main
from gutberg.logging_utils import configure_logging

BOOK = (
    "<html><head><title>CLI Book</title></head><body>"
    "<h1>Opening</h1><p>It begins.</p>"
    "<h1>Closing</h1><p>It ends.</p>"
    "</body></html>"
)


def test_authors_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["authors", "dum"]) == 0
    assert capsys.readouterr().out.splitlines() == ["Dumas, Alexandre"]


def test_chapters_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "book.html"
    path.write_text(BOOK, encoding="utf-8")
    assert main(["chapters", str(path)]) == 0
    out = capsys.readouterr().out
    assert "CLI Book (2 pages)" in out
    assert "  1. Opening  (page 1)" in out
    assert "  2. Closing  (page 2)" in out


def test_pages_command_prints_one_page(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "book.html"
    path.write_text(BOOK, encoding="utf-8")
    assert main(["pages", str(path), "--page", "2"]) == 0
    assert capsys.readouterr().out == "Closing\n\nIt ends.\n"


def test_missing_file_exits_with_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["pages", str(tmp_path / "missing.html")]) == 1
    assert "error:" in capsys.readouterr().err


def test_reader_log_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "gutberg.log"
    handler = configure_logging(debug=True, log_file=log_file)
    logger = logging.getLogger("gutberg")
    try:
        assert logger.handlers == [handler]
        assert logger.level == logging.DEBUG
        logging.getLogger("gutberg.book").debug("paginated %d pages", 3)
        handler.flush()
        assert "paginated 3 pages" in log_file.read_text(encoding="utf-8")
    finally:
        configure_logging()
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1


def test_global_flags_before_subcommand(capsys: pytest.CaptureFixture[str]) -> None:
    try:
        assert main(["--debug", "authors", "dum"]) == 0
        assert logging.getLogger("gutberg").level == logging.DEBUG
    finally:
        configure_logging()
    assert capsys.readouterr().out.splitlines() == ["Dumas, Alexandre"]


def test_unknown_leading_flag_is_rejected() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--bogus", "authors", "dum"])
    assert excinfo.value.code == 2
