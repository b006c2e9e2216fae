"""Selections: what part of a document an edit targets.

A selection has exactly one of these set:

- ``value_path``  a single value
- ``key_path``    the key of an object member
- ``before_path`` an insertion point right before an existing child
- ``append_path`` an insertion point at the end of a container
- ``paths``       several siblings (a multi-selection)

The wire form uses camelCase (``valuePath``, ``keyPath``, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple

from jsonweave.tools.immutable import Path
from jsonweave.tools.pointer import parse_pointer

_WIRE_NAMES = {
    "value_path": "valuePath",
    "key_path": "keyPath",
    "before_path": "beforePath",
    "append_path": "appendPath",
    "paths": "paths",
}


class SelectionError(ValueError):
    pass


class UnsupportedSelectionError(SelectionError):
    pass


@dataclass(frozen=True)
class Selection:
    value_path: Optional[Path] = None
    key_path: Optional[Path] = None
    before_path: Optional[Path] = None
    append_path: Optional[Path] = None
    paths: Optional[Tuple[Path, ...]] = None

    def __post_init__(self) -> None:
        populated = [f.name for f in fields(self) if getattr(self, f.name) is not None]
        if len(populated) != 1:
            raise SelectionError(
                f"Selection must have exactly one of {', '.join(_WIRE_NAMES.values())}; got {populated or 'none'}"
            )
        # normalise to tuples so selections hash and compare by value
        for name in ("value_path", "key_path", "before_path", "append_path"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(value))
        if self.paths is not None:
            object.__setattr__(self, "paths", tuple(tuple(p) for p in self.paths))

    @property
    def kind(self) -> str:
        for f in fields(self):
            if getattr(self, f.name) is not None:
                return _WIRE_NAMES[f.name]
        raise AssertionError("unreachable")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Selection":
        if not isinstance(data, dict):
            raise SelectionError("Selection must be an object")
        unknown = set(data) - set(_WIRE_NAMES.values())
        if unknown:
            raise SelectionError(f"Unknown selection field(s): {sorted(unknown)}")
        kwargs = {name: data[wire] for name, wire in _WIRE_NAMES.items() if data.get(wire) is not None}
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name, wire in _WIRE_NAMES.items():
            value = getattr(self, name)
            if value is None:
                continue
            out[wire] = [list(p) for p in value] if name == "paths" else list(value)
        return out


def get_parent_path(selection: Selection) -> Path:
    """Path of the container the selection points into."""
    if selection.append_path is not None:
        return selection.append_path
    if selection.paths is not None:
        return selection.paths[0][:-1] if selection.paths else ()
    for path in (selection.before_path, selection.key_path, selection.value_path):
        if path is not None:
            return path[:-1]
    return ()


def create_selection_from_operations(document: Any, operations: Sequence[Dict[str, Any]]) -> Selection:
    """Multi-selection of everything the operations added or copied.

    ``document`` is the document the operations will be applied to; it is
    used to tell array indices from object keys.
    """
    paths: List[Path] = [
        tuple(parse_pointer(op["path"], document))
        for op in operations
        if op.get("op") in ("add", "copy")
    ]
    return Selection(paths=tuple(paths))
