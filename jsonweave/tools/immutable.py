"""Persistent (non-mutating) nested updates on JSON documents.

Documents are plain Python JSON values (dict/list/scalars). None of the
functions here mutate their input. Updates rebuild only the spine from the
root down to the changed location; every other subtree keeps its identity.

If an update produces a leaf that is identical (``is``) to the existing one,
or a scalar of the same type that compares equal, the original document is
returned unchanged, so callers can detect "no change" with a cheap identity
check.

Traversal is iterative: the spine is collected on the way down and rebuilt
on the way up, so document depth is not bounded by the recursion limit.
"""

from __future__ import annotations

from typing import Any, Callable, List, Sequence, Tuple, Union

Segment = Union[str, int]
Path = Tuple[Segment, ...]


class _Missing:
    """Marker for a path that does not resolve to a value."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class PathError(LookupError):
    """A path could not be traversed or written."""

    def __init__(self, message: str, path: Sequence[Segment]) -> None:
        super().__init__(message)
        self.message = message
        self.path: Path = tuple(path)

    def __str__(self) -> str:
        return f"{self.message} (path: {list(self.path)!r})"


def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_array(value: Any) -> bool:
    return isinstance(value, list)


def is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def _child(container: Any, key: Segment) -> Any:
    if isinstance(container, dict):
        return container.get(key, MISSING) if isinstance(key, str) else MISSING
    if isinstance(container, list):
        if isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(container):
            return container[key]
        return MISSING
    return MISSING


def _assoc(container: Any, key: Segment, value: Any, path: Path) -> Any:
    """Return a shallow copy of ``container`` with ``key`` set to ``value``."""
    if isinstance(container, dict):
        if not isinstance(key, str):
            raise PathError(f"Object member key must be a string, got {key!r}", path)
        updated = dict(container)
        updated[key] = value
        return updated

    if not isinstance(key, int) or isinstance(key, bool):
        raise PathError(f"Array index must be an integer, got {key!r}", path)
    if key < 0 or key > len(container):
        raise PathError(f"Array index {key} out of range (length {len(container)})", path)
    updated = list(container)
    if key == len(container):
        updated.append(value)
    else:
        updated[key] = value
    return updated


def _dissoc(container: Any, key: Segment) -> Any:
    if isinstance(container, dict):
        return {k: v for k, v in container.items() if k != key}
    updated = list(container)
    del updated[key]
    return updated


def _unchanged(old: Any, new: Any) -> bool:
    """Identity for containers; equal value and same type for scalars."""
    if new is old:
        return True
    if is_container(old) or is_container(new) or old is MISSING or new is MISSING:
        return False
    # type check keeps True vs 1 and 1 vs 1.0 apart
    return type(old) is type(new) and old == new


def _rebuild(spine: List[Tuple[Any, Segment]], leaf: Any, path: Path) -> Any:
    value = leaf
    for depth in range(len(spine) - 1, -1, -1):
        container, key = spine[depth]
        value = _assoc(container, key, value, path[: depth + 1])
    return value


def get_in(document: Any, path: Sequence[Segment]) -> Any:
    """Return the value at ``path``, or ``MISSING`` when it does not exist."""
    value = document
    for key in path:
        if not is_container(value):
            return MISSING
        value = _child(value, key)
    return value


def update_in(document: Any, path: Sequence[Segment], fn: Callable[[Any], Any]) -> Any:
    """Replace the value at ``path`` with ``fn(old_value)``.

    ``old_value`` is ``MISSING`` when the final segment does not exist yet.
    Every container along the way must exist; otherwise ``PathError``.
    """
    path = tuple(path)
    if not path:
        return fn(document)

    spine: List[Tuple[Any, Segment]] = []
    current = document
    for depth, key in enumerate(path):
        if not is_container(current):
            raise PathError("Path does not exist", path[:depth])
        spine.append((current, key))
        current = _child(current, key)

    updated = fn(current)
    if _unchanged(current, updated):
        return document
    return _rebuild(spine, updated, path)


def set_in(document: Any, path: Sequence[Segment], value: Any) -> Any:
    """Return a copy of ``document`` with ``value`` stored at ``path``."""
    return update_in(document, path, lambda _old: value)


def delete_in(document: Any, path: Sequence[Segment]) -> Any:
    """Return a copy of ``document`` without the member/item at ``path``.

    Deleting the root, or a path that does not exist, returns ``document``
    unchanged.
    """
    path = tuple(path)
    if not path:
        return document

    spine: List[Tuple[Any, Segment]] = []
    current = document
    for key in path[:-1]:
        if not is_container(current):
            return document
        spine.append((current, key))
        current = _child(current, key)

    last = path[-1]
    if not is_container(current) or _child(current, last) is MISSING:
        return document
    return _rebuild(spine, _dissoc(current, last), path)


def insert_in(document: Any, path: Sequence[Segment], value: Any) -> Any:
    """Insert ``value`` into the array at ``path[:-1]`` before index ``path[-1]``.

    Later items shift up by one. The index may equal the array length.
    """
    path = tuple(path)
    if not path:
        raise PathError("Cannot insert at the document root", path)
    index = path[-1]

    def _insert(array: Any) -> Any:
        if not is_array(array):
            raise PathError("Parent is not an array", path[:-1])
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index <= len(array):
            raise PathError(f"Array index {index!r} out of range (length {len(array)})", path)
        return array[:index] + [value] + array[index:]

    return update_in(document, path[:-1], _insert)
