"""
=============================================================================
REQUEST HEADERS
=============================================================================

A read-only mapping from header name to value.

Two rules, both deliberate and both different from what a full HTTP
server does:

1. NAMES ARE CASE-SENSITIVE.
   "Host" and "host" are two different keys. Nothing is lowercased.

2. LAST WRITE WINS.
   A header that appears twice keeps only its last value:

       A: 1\r\n
       A: 2\r\n
       \r\n            →   Headers({"A": "2"})

   A full server would join them ("1, 2"). This one does not.

=============================================================================
"""

from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, Tuple


class Headers(Mapping):
    """
    Immutable header mapping with last-write-wins construction.

    Example:
        headers = Headers.from_pairs([("A", "1"), ("B", "x"), ("A", "2")])
        headers["A"]      # "2"
        len(headers)      # 2
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping = ()):
        self._items: Dict[str, str] = dict(items)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "Headers":
        """Build from (name, value) pairs in wire order; later pairs overwrite earlier ones."""
        items: Dict[str, str] = {}
        for name, value in pairs:
            items[name] = value
        return cls(items)

    def __getitem__(self, name: str) -> str:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"
