from __future__ import annotations

from bisect import bisect_left
from functools import lru_cache
from importlib import resources
from typing import Iterable

AUTHORS_RESOURCE = "data/authors.txt"
DEFAULT_SEARCH_LIMIT = 200


def load_authors(data: str) -> list[str]:
    return [name for name in (line.strip() for line in data.splitlines()) if name]


class AuthorIndex:
    """Case-insensitive prefix lookup over a fixed list of author names.

    Names are sorted once by their lowercased form; lookups binary-search
    the first candidate and scan forward while the prefix still matches.
    The index is never mutated after construction.
    """

    __slots__ = ("_keys", "_names")

    def __init__(self, names: Iterable[str]) -> None:
        pairs = sorted((name.lower(), name) for name in names)
        self._keys: tuple[str, ...] = tuple(key for key, _ in pairs)
        self._names: tuple[str, ...] = tuple(name for _, name in pairs)

    def __len__(self) -> int:
        return len(self._names)

    def search(self, prefix: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[str]:
        query = prefix.strip().lower()
        if not query:
            return []
        results: list[str] = []
        for index in range(bisect_left(self._keys, query), len(self._keys)):
            if not self._keys[index].startswith(query):
                break
            results.append(self._names[index])
            if 0 < limit <= len(results):
                break
        return results


@lru_cache(maxsize=1)
def default_index() -> AuthorIndex:
    data = resources.files("gutberg").joinpath(AUTHORS_RESOURCE).read_text("utf-8")
    return AuthorIndex(load_authors(data))
