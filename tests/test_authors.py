from __future__ import annotations

from gutberg.authors import AuthorIndex, default_index, load_authors

NAMES = ["Austen, Jane", "Doyle, Arthur Conan", "Dumas, Alexandre"]


def test_prefix_search_returns_matches_in_key_order() -> None:
    index = AuthorIndex(NAMES)
    assert index.search("d", 10) == ["Doyle, Arthur Conan", "Dumas, Alexandre"]
    assert index.search("du", 10) == ["Dumas, Alexandre"]


def test_empty_and_missing_prefixes() -> None:
    index = AuthorIndex(NAMES)
    assert index.search("", 10) == []
    assert index.search("   ", 10) == []
    assert index.search("zz", 10) == []
    assert index.search("a", 10) == ["Austen, Jane"]


def test_query_is_trimmed_and_case_insensitive() -> None:
    index = AuthorIndex(reversed(NAMES))
    assert index.search("  DOY ", 10) == ["Doyle, Arthur Conan"]


def test_limit() -> None:
    index = AuthorIndex(NAMES + ["Dickens, Charles", "Defoe, Daniel"])
    assert index.search("d", 2) == ["Defoe, Daniel", "Dickens, Charles"]
    assert len(index.search("d", 0)) == 4
    assert len(index.search("d", -1)) == 4


def test_sorting_uses_lowercased_keys() -> None:
    index = AuthorIndex(["de la Mare, Walter", "Dante", "DICKENS, Charles"])
    assert index.search("d", 0) == ["Dante", "de la Mare, Walter", "DICKENS, Charles"]


def test_load_authors_skips_blank_lines() -> None:
    data = "Austen, Jane\n\n  Doyle, Arthur Conan  \r\n \nDumas, Alexandre\n"
    assert load_authors(data) == NAMES


def test_default_index_is_built_once_from_packaged_list() -> None:
    index = default_index()
    assert index is default_index()
    assert len(index) > 100
    assert index.search("austen") == ["Austen, Jane"]
    assert index.search("dumas", 10) == ["Dumas, Alexandre"]
