"""Edit intents -> JSON Patch documents.

Each function turns one editor action (insert, append, rename, replace,
duplicate, remove) into an ordered list of JSON Patch (RFC 6902) operations.
Nothing here mutates the document; the caller applies the patch.

Ordering of object members
--------------------------
New members always land at the end of an object when the patch is applied.
To show them at the intended spot, the members that should come after them
are re-emitted as ``move`` operations onto themselves, which sends each one
to the end in turn (see ``ordering.plan_reorder``).

Unique names
------------
Keys for new members are resolved with the unique-name resolver against the
siblings that will exist at that point, so a patch never overwrites an
existing member by accident. Replacing ``a`` with a new ``a`` keeps the name.

Multi-selections
----------------
``replace`` and ``duplicate`` put their ``paths`` into document order first
and require them to share one parent.

CLI:
  jsonweave edit insert    document.json --selection JSON --entries JSON
  jsonweave edit duplicate document.json --paths JSON
  jsonweave edit remove    document.json --paths JSON
  jsonweave edit rename    document.json --key-path JSON --new-key KEY
  jsonweave edit new-value document.json --selection JSON --kind KIND

Exit codes:
  0 OK
  2 invalid selection/path
  3 IO/JSON parse error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path as FsPath
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from jsonweave.tools.immutable import Path, PathError, get_in, is_array, is_object
from jsonweave.tools.naming import ReservedNames, UniqueNameFn, find_unique_name
from jsonweave.tools.ordering import DEFAULT_KEY_ORDER, plan_reorder
from jsonweave.tools.pointer import join_pointer
from jsonweave.tools.selection import (
    Selection,
    SelectionError,
    UnsupportedSelectionError,
    get_parent_path,
)

LOGGER = logging.getLogger(__name__)

PatchDocument = List[Dict[str, Any]]

NEW_ITEM_KEY = "New Item"


@dataclass(frozen=True)
class Entry:
    """A value waiting to be inserted; ``key`` only matters inside objects."""

    key: Optional[str]
    value: Any

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        if not isinstance(data, dict) or "value" not in data:
            raise ValueError("Entry must be an object with a 'value'")
        return cls(key=data.get("key"), value=data["value"])

    def to_dict(self) -> Dict[str, Any]:
        if self.key is None:
            return {"value": self.value}
        return {"key": self.key, "value": self.value}


def _entries(entries: Iterable[Any]) -> List[Entry]:
    return [e if isinstance(e, Entry) else Entry.from_dict(e) for e in entries]


def _add(path: Sequence[Any], value: Any) -> Dict[str, Any]:
    return {"op": "add", "path": join_pointer(path), "value": value}


def _copy(source: Sequence[Any], path: Sequence[Any]) -> Dict[str, Any]:
    return {"op": "copy", "from": join_pointer(source), "path": join_pointer(path)}


def _move_down(parent_path: Path, key: str) -> Dict[str, Any]:
    # a move onto itself sends the key to the end of the object
    pointer = join_pointer(parent_path + (key,))
    return {"op": "move", "from": pointer, "path": pointer}


def _reorder(parent_path: Path, current: Sequence[str], target: Sequence[str]) -> PatchDocument:
    return [_move_down(parent_path, key) for key in plan_reorder(current, target)]


def _container(document: Any, parent_path: Path) -> Any:
    parent = get_in(document, parent_path)
    if not (is_array(parent) or is_object(parent)):
        raise PathError("Path does not point to an object or array", parent_path)
    return parent


def _index(segment: Any) -> int:
    return int(segment)


def _siblings(paths: Sequence[Sequence[Any]]) -> Tuple[Path, Tuple[Path, ...]]:
    paths = tuple(tuple(p) for p in paths)
    if not paths:
        raise SelectionError("At least one path is required")
    if any(not p for p in paths):
        raise SelectionError("The document root cannot be part of a multi-selection")
    parent_path = paths[0][:-1]
    if any(p[:-1] != parent_path for p in paths):
        raise SelectionError("All selected paths must share the same parent")
    return parent_path, paths


def _document_order(
    paths: Tuple[Path, ...], parent: Any, keys: Sequence[str]
) -> Tuple[Path, ...]:
    if is_array(parent):
        return tuple(sorted(paths, key=lambda p: _index(p[-1])))
    position = {k: i for i, k in enumerate(keys)}
    return tuple(sorted(paths, key=lambda p: position.get(p[-1], len(position))))


def insert_before(
    document: Any,
    snapshot: Any,
    path: Sequence[Any],
    entries: Sequence[Any],
    *,
    key_order: Any = DEFAULT_KEY_ORDER,
    unique_name: UniqueNameFn = find_unique_name,
) -> PatchDocument:
    """Insert ``entries`` right before the existing child at ``path``."""
    path = tuple(path)
    entries = _entries(entries)
    parent_path = path[:-1]
    parent = _container(document, parent_path)

    if is_array(parent):
        offset = _index(path[-1])
        return [_add(parent_path + (offset + i,), e.value) for i, e in enumerate(entries)]

    names = ReservedNames(parent, unique_name)
    new_keys = [names.claim(e.key if e.key is not None else NEW_ITEM_KEY) for e in entries]
    operations = [_add(parent_path + (k,), e.value) for k, e in zip(new_keys, entries)]

    keys = list(key_order.get_keys(snapshot, parent_path))
    next_keys = list(key_order.get_next_keys(keys, path[-1], True))
    head = keys[: len(keys) - len(next_keys)]
    operations += _reorder(parent_path, keys + new_keys, head + new_keys + next_keys)
    return operations


def append(
    document: Any,
    path: Sequence[Any],
    entries: Sequence[Any],
    *,
    unique_name: UniqueNameFn = find_unique_name,
) -> PatchDocument:
    """Append ``entries`` at the end of the array or object at ``path``."""
    path = tuple(path)
    entries = _entries(entries)
    parent = _container(document, path)

    if is_array(parent):
        offset = len(parent)
        return [_add(path + (offset + i,), e.value) for i, e in enumerate(entries)]

    names = ReservedNames(parent, unique_name)
    return [
        _add(path + (names.claim(e.key if e.key is not None else NEW_ITEM_KEY),), e.value)
        for e in entries
    ]


def rename(parent_path: Sequence[Any], keys: Sequence[str], old_key: str, new_key: str) -> PatchDocument:
    """Rename an object member while keeping its place among ``keys``.

    ``keys`` is the member order before the rename. ``new_key`` is used as
    given; resolve it with the unique-name resolver first if needed.
    """
    parent_path = tuple(parent_path)
    keys = list(keys)
    operations = [
        {
            "op": "move",
            "from": join_pointer(parent_path + (old_key,)),
            "path": join_pointer(parent_path + (new_key,)),
        }
    ]
    if old_key not in keys:
        return operations

    current = [k for k in keys if k not in (old_key, new_key)] + [new_key]
    target = [new_key if k == old_key else k for k in keys if k != new_key or k == old_key]
    operations += _reorder(parent_path, current, target)
    return operations


def replace(
    document: Any,
    snapshot: Any,
    paths: Sequence[Sequence[Any]],
    entries: Sequence[Any],
    *,
    key_order: Any = DEFAULT_KEY_ORDER,
    unique_name: UniqueNameFn = find_unique_name,
) -> PatchDocument:
    """Replace the selected siblings at ``paths`` with ``entries``."""
    entries = _entries(entries)
    parent_path, paths = _siblings(paths)
    parent = _container(document, parent_path)
    keys = list(key_order.get_keys(snapshot, parent_path)) if is_object(parent) else []
    paths = _document_order(paths, parent, keys)

    if is_array(parent):
        offset = _index(paths[0][-1])
        return remove_all(paths) + [
            _add(parent_path + (offset + i,), e.value) for i, e in enumerate(entries)
        ]

    # the replaced keys are free again: replacing "a" with "a" keeps "a"
    removed = {p[-1] for p in paths}
    names = ReservedNames([k for k in parent if k not in removed], unique_name)
    new_keys = [names.claim(e.key if e.key is not None else NEW_ITEM_KEY) for e in entries]

    operations = remove_all(paths)
    operations += [_add(parent_path + (k,), e.value) for k, e in zip(new_keys, entries)]

    next_keys = list(key_order.get_next_keys(keys, paths[-1][-1], False))
    head = [k for k in keys[: len(keys) - len(next_keys)] if k not in removed]
    tail = [k for k in next_keys if k not in removed]
    remaining = [k for k in keys if k not in removed]
    operations += _reorder(parent_path, remaining + new_keys, head + new_keys + tail)
    return operations


def duplicate(
    document: Any,
    snapshot: Any,
    paths: Sequence[Sequence[Any]],
    *,
    key_order: Any = DEFAULT_KEY_ORDER,
    unique_name: UniqueNameFn = find_unique_name,
) -> PatchDocument:
    """Copy the selected siblings and place the copies right after the last one."""
    parent_path, paths = _siblings(paths)
    parent = _container(document, parent_path)
    keys = list(key_order.get_keys(snapshot, parent_path)) if is_object(parent) else []
    paths = _document_order(paths, parent, keys)

    if is_array(parent):
        offset = _index(paths[-1][-1]) + 1
        return [_copy(p, parent_path + (offset + i,)) for i, p in enumerate(paths)]

    names = ReservedNames(parent, unique_name)
    new_keys = [names.claim(p[-1]) for p in paths]
    operations = [_copy(p, parent_path + (k,)) for p, k in zip(paths, new_keys)]

    next_keys = list(key_order.get_next_keys(keys, paths[-1][-1], False))
    head = keys[: len(keys) - len(next_keys)]
    operations += _reorder(parent_path, keys + new_keys, head + new_keys + next_keys)
    return operations


def remove(path: Sequence[Any]) -> PatchDocument:
    return [{"op": "remove", "path": join_pointer(path)}]


def remove_all(paths: Sequence[Sequence[Any]]) -> PatchDocument:
    # last first, so removing an array item never shifts one still to be removed
    return [{"op": "remove", "path": join_pointer(p)} for p in reversed(paths)]


def insert(
    document: Any,
    snapshot: Any,
    selection: Selection,
    entries: Sequence[Any],
    *,
    key_order: Any = DEFAULT_KEY_ORDER,
    unique_name: UniqueNameFn = find_unique_name,
) -> PatchDocument:
    """Insert ``entries`` at ``selection``.

    ``before_path`` inserts before a child, ``append_path`` appends, and
    ``paths`` replaces the selected children. Value and key selections are
    not insertion points and raise ``UnsupportedSelectionError``.
    """
    if selection.before_path is not None:
        operations = insert_before(
            document, snapshot, selection.before_path, entries, key_order=key_order, unique_name=unique_name
        )
    elif selection.append_path is not None:
        operations = append(document, selection.append_path, entries, unique_name=unique_name)
    elif selection.paths is not None:
        operations = replace(
            document, snapshot, selection.paths, entries, key_order=key_order, unique_name=unique_name
        )
    else:
        raise UnsupportedSelectionError(f"Cannot insert: unsupported type of selection ({selection.kind})")

    LOGGER.debug("insert at %s selection: %d operation(s)", selection.kind, len(operations))
    return operations


def _clone_structure(example: Any) -> Any:
    if is_array(example):
        return []
    if is_object(example):
        return {k: _clone_structure(v) for k, v in example.items()}
    return ""


def create_new_value(document: Any, selection: Selection, kind: str) -> Any:
    """Seed value for a new node of ``kind``: value, object, array or structure.

    ``structure`` takes the shape of the first item of the array the
    selection points into: objects keep their keys, arrays become empty and
    scalars become ``""``. Without such an example the result is ``""``.
    """
    if kind == "object":
        return {}
    if kind == "array":
        return []
    if kind == "structure":
        parent = get_in(document, get_parent_path(selection))
        if is_array(parent) and parent:
            return _clone_structure(parent[0])
    return ""


# -------------------------
# CLI
# -------------------------


def _load_json_arg(raw: str) -> Any:
    """Parse ``raw`` as inline JSON, or as ``@file`` holding JSON."""
    if raw.startswith("@"):
        return json.loads(FsPath(raw[1:]).read_text(encoding="utf-8"))
    return json.loads(raw)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonweave edit")
    sub = ap.add_subparsers(dest="action", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("document", help="Path to the JSON document")
        p.add_argument("--snapshot", help="JSON file whose object key order is the visual order (default: document)")

    p_insert = sub.add_parser("insert", help="Insert entries at a selection")
    _common(p_insert)
    p_insert.add_argument("--selection", required=True, help="Selection as JSON (or @file)")
    p_insert.add_argument("--entries", required=True, help='Entries as JSON [{"key": ..., "value": ...}] (or @file)')

    p_dup = sub.add_parser("duplicate", help="Duplicate sibling paths")
    _common(p_dup)
    p_dup.add_argument("--paths", required=True, help="List of paths as JSON (or @file)")

    p_rm = sub.add_parser("remove", help="Remove paths")
    _common(p_rm)
    p_rm.add_argument("--paths", required=True, help="List of paths as JSON (or @file)")

    p_ren = sub.add_parser("rename", help="Rename an object member")
    _common(p_ren)
    p_ren.add_argument("--key-path", required=True, help="Path of the member as JSON")
    p_ren.add_argument("--new-key", required=True, help="New key (made unique among siblings)")

    p_new = sub.add_parser("new-value", help="Print a seed value for a new node")
    _common(p_new)
    p_new.add_argument("--selection", required=True, help="Selection as JSON (or @file)")
    p_new.add_argument("--kind", default="value", choices=["value", "object", "array", "structure"])

    args = ap.parse_args(argv)

    try:
        document = json.loads(FsPath(args.document).read_text(encoding="utf-8"))
        snapshot = (
            json.loads(FsPath(args.snapshot).read_text(encoding="utf-8")) if args.snapshot else document
        )
        if args.action == "insert":
            selection_data = _load_json_arg(args.selection)
            entries_data = _load_json_arg(args.entries)
        elif args.action in ("duplicate", "remove"):
            paths_data = _load_json_arg(args.paths)
        elif args.action == "rename":
            key_path = tuple(_load_json_arg(args.key_path))
        else:
            selection_data = _load_json_arg(args.selection)
    except (OSError, ValueError) as e:
        print(f"Failed to read/parse JSON: {e}", file=sys.stderr)
        return 3

    from jsonweave.engine import JsonEditEngine

    engine = JsonEditEngine()
    try:
        if args.action == "insert":
            result: Any = engine.insert(
                document, Selection.from_dict(selection_data), _entries(entries_data), snapshot=snapshot
            )
        elif args.action == "duplicate":
            result = engine.duplicate(document, paths_data, snapshot=snapshot)
        elif args.action == "remove":
            result = engine.remove(paths_data)
        elif args.action == "rename":
            result = engine.rename(document, key_path, args.new_key, snapshot=snapshot)
        else:
            result = create_new_value(document, Selection.from_dict(selection_data), args.kind)
    except (SelectionError, PathError, ValueError) as e:
        print(f"edit error: {e}", file=sys.stderr)
        return 2

    sys.stdout.write(json.dumps(result, indent=2, ensure_ascii=False) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
