from __future__ import annotations

from gutberg.extract import (
    clean_html_to_text,
    extract_title,
    normalize_whitespace,
    strip_gutenberg_boilerplate,
    strip_tags,
)


def test_boilerplate_frame_is_removed() -> None:
    text = (
        "PREFIX\n"
        "*** START OF THE PROJECT GUTENBERG EBOOK X ***\n"
        "BODY\n"
        "*** END OF THE PROJECT GUTENBERG EBOOK X ***\n"
        "SUFFIX"
    )
    assert clean_html_to_text(text) == "BODY"


def test_boilerplate_markers_on_a_single_line() -> None:
    text = (
        "PREFIX *** start of the project gutenberg ebook x *** BODY "
        "*** END OF THE PROJECT GUTENBERG EBOOK X *** SUFFIX"
    )
    assert strip_gutenberg_boilerplate(text) == "BODY"


def test_text_without_markers_passes_through() -> None:
    assert strip_gutenberg_boilerplate("Just a story.\n\nThe end.") == "Just a story.\n\nThe end."


def test_ebook_of_attribution_line_is_dropped() -> None:
    text = "The Project Gutenberg eBook of Moby Dick\nCall me Ishmael."
    assert clean_html_to_text(text) == "Call me Ishmael."


def test_strip_tags_tolerates_malformed_markup() -> None:
    assert strip_tags("a <b>bold</b> <unclosed text") == "a bold "
    assert strip_tags("<<weird>>text<") == "text"


def test_paragraphs_and_line_breaks() -> None:
    raw = "<p class='x'>One\n   two</p><p>Three</p>"
    assert clean_html_to_text(raw) == "One\ntwo\n\nThree"
    assert clean_html_to_text("a<br/>b<hr class='tb'>c") == "a\nb\nc"


def test_style_and_site_chrome_are_removed() -> None:
    raw = (
        "<style type='text/css'>p { margin: 0 }</style>"
        '<div id="pg-header">Header stuff</div>'
        "<p>Body</p>"
        '<div id="pg-footer">Footer</div>'
    )
    assert clean_html_to_text(raw) == "Body"


def test_entities_are_decoded_and_spaces_collapsed() -> None:
    assert clean_html_to_text("<p>Fish &amp; Chips&nbsp;&nbsp;today</p>") == "Fish & Chips today"


def test_line_endings_are_normalized() -> None:
    assert clean_html_to_text("a\r\nb\rc") == "a\nb\nc"


def test_invalid_utf8_bytes_do_not_raise() -> None:
    text = clean_html_to_text(b"<p>caf\xc3\xa9 \xff</p>")
    assert text.startswith("café")


def test_normalize_whitespace_collapses_blank_runs() -> None:
    assert normalize_whitespace("  a  \n\n\n\n\n\tb\t ") == "a\n\nb"


def test_extract_title() -> None:
    raw = b"<html><head><TITLE>\n The Time &amp; <i>Space</i> Machine </TITLE></head></html>"
    assert extract_title(raw) == "The Time & Space Machine"
    assert extract_title("<html><body>No title</body></html>") == ""
