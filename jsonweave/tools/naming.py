"""Collision-free member names.

The default resolver appends a copy suffix until the name is free:
``name``, ``name (copy)``, ``name (copy 2)``, ``name (copy 3)``, ...
"""

from __future__ import annotations

from typing import Any, Callable, Container

UniqueNameFn = Callable[[str, Container[Any]], str]


def find_unique_name(name: str, existing: Container[Any]) -> str:
    """Return ``name`` or the first suffixed variant not in ``existing``.

    ``existing`` is anything supporting ``in``: a sibling dict, a set of
    keys, or a key list.
    """
    candidate = name
    i = 1
    while candidate in existing:
        copy = "copy" + (f" {i}" if i > 1 else "")
        candidate = f"{name} ({copy})"
        i += 1
    return candidate


class ReservedNames:
    """Sibling keys plus names already handed out during one edit.

    Lets a batch of entries resolve against each other as well as against
    the existing members.
    """

    def __init__(self, siblings: Any, resolver: UniqueNameFn = find_unique_name) -> None:
        self._taken = set(siblings.keys() if isinstance(siblings, dict) else siblings or ())
        self._resolver = resolver

    def __contains__(self, name: object) -> bool:
        return name in self._taken

    def claim(self, name: str) -> str:
        unique = self._resolver(name, self._taken)
        self._taken.add(unique)
        return unique
