"""Small helpers for working with strings and string collections."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, Mapping


class StringSet:
    """An unordered collection of distinct strings."""

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items: set[str] = set(items)

    def add(self, s: str) -> None:
        """Ensure ``s`` is part of the set."""
        self._items.add(s)

    def __contains__(self, s: object) -> bool:
        return s in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"StringSet({sorted(self._items)!r})"

    def to_list(self) -> list[str]:
        """Return every element of the set as a list, in no particular order."""
        return list(self._items)


def contains(items: Iterable[str] | None, item: str) -> bool:
    """Return whether ``item`` is present in ``items``."""
    return item in (items or ())


def filter_strings(items: Iterable[str] | None, predicate: Callable[[str], bool]) -> list[str]:
    """Return the elements of ``items`` satisfying ``predicate``, keeping their order."""
    return [it for it in (items or ()) if predicate(it)]


def merge_maps(
    m1: Mapping[str, str] | None, m2: Mapping[str, str] | None
) -> dict[str, str]:
    """Merge two mappings into a new dict; values from ``m2`` win."""
    return {**(m1 or {}), **(m2 or {})}


def is_empty_or_none(s: str | None) -> bool:
    """Return whether ``s`` is None or the empty string."""
    return s is None or s == ""