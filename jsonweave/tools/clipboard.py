"""Paste support: clipboard text -> JSON Patch.

Clipboard text is often a fragment copied out of a larger document, e.g.
``"a": 1, "b": 2,`` or ``1, 2, 3``. ``parse_partial_json`` tries a few
repairs in order and gives up with ``ClipboardParseError``; raw text is
never silently turned into a string value.

The pasted value is then turned into entries and routed by selection:

- value selected: replace that value
- key selected, container pasted: replace the whole member
- key selected, scalar pasted: rename the key
- otherwise: insert at the selection

CLI:
  jsonweave paste document.json --selection JSON [--clipboard FILE]

Reads clipboard text from stdin when --clipboard is omitted and prints
``{"operations": [...], "selection": {...}}``.

Exit codes:
  0 OK
  2 unparseable clipboard / invalid selection
  3 IO/JSON parse error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from jsonweave.tools.immutable import PathError, get_in, is_array, is_container, is_object
from jsonweave.tools.naming import UniqueNameFn, find_unique_name
from jsonweave.tools.operations import NEW_ITEM_KEY, Entry, PatchDocument, insert, rename
from jsonweave.tools.ordering import DEFAULT_KEY_ORDER
from jsonweave.tools.pointer import join_pointer
from jsonweave.tools.selection import Selection, SelectionError, create_selection_from_operations

LOGGER = logging.getLogger(__name__)

EventHook = Callable[[str, Dict[str, Any]], None]


@dataclass
class ClipboardParseError(Exception):
    """Clipboard text is not JSON, not even after repairs."""

    message: str
    text: str

    def __str__(self) -> str:
        return self.message


@dataclass
class PasteResult:
    operations: PatchDocument
    selection: Selection

    def to_dict(self) -> Dict[str, Any]:
        return {"operations": self.operations, "selection": self.selection.to_dict()}


_CLOSERS = {"{": "}", "[": "]"}


def _close_open(text: str) -> str:
    """Append the quote/brackets needed to close what ``text`` leaves open."""
    stack: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
    suffix = '"' if in_string else ""
    return text + suffix + "".join(reversed(stack))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_partial_json(text: str) -> Any:
    """Parse possibly truncated JSON copied to the clipboard.

    Tried in order, after dropping one trailing comma: the text as-is,
    wrapped in ``[...]``, wrapped in ``{...}``, and with unterminated
    strings/arrays/objects closed.
    """
    partial = text.rstrip()
    if partial.endswith(","):
        partial = partial[:-1]

    for candidate in (partial, "[" + partial + "]", "{" + partial + "}", _close_open(partial)):
        try:
            return json.loads(candidate, parse_constant=_reject_constant)
        except ValueError:
            continue

    raise ClipboardParseError("Failed to parse partial JSON", text)


def clipboard_to_entries(clipboard: Any) -> List[Entry]:
    if is_array(clipboard):
        return [Entry(key=f"New item {index}", value=value) for index, value in enumerate(clipboard)]
    if is_object(clipboard):
        return [Entry(key=key, value=value) for key, value in clipboard.items()]
    return [Entry(key=NEW_ITEM_KEY, value=clipboard)]


def _key_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _emit(on_event: Optional[EventHook], name: str, payload: Dict[str, Any]) -> None:
    LOGGER.debug("%s: %s", name, payload)
    if on_event is not None:
        on_event(name, payload)


def create_paste_operations(
    document: Any,
    snapshot: Any,
    selection: Selection,
    clipboard_text: str,
    *,
    key_order: Any = DEFAULT_KEY_ORDER,
    unique_name: UniqueNameFn = find_unique_name,
    on_event: Optional[EventHook] = None,
) -> PasteResult:
    """Operations for pasting ``clipboard_text`` at ``selection``.

    ``on_event`` is called with ``("clipboard.parsed", {...})`` once the text
    is parsed, with ``("clipboard.entries", {...})`` when the text becomes
    inserted entries, and with ``("paste.operations", {...})`` at the end.

    A pasted key is made unique against the other siblings only, so pasting
    ``"b"`` onto key ``b`` keeps ``b`` rather than producing ``b (copy)``.
    """
    clipboard = parse_partial_json(clipboard_text)
    _emit(on_event, "clipboard.parsed", {"selection": selection.kind, "clipboard": clipboard})

    if selection.value_path is not None:
        operations: PatchDocument = [
            {"op": "replace", "path": join_pointer(selection.value_path), "value": clipboard}
        ]
        result = PasteResult(operations, selection)

    elif selection.key_path is not None and not is_container(clipboard):
        parent_path = selection.key_path[:-1]
        old_key = selection.key_path[-1]
        parent = get_in(document, parent_path)
        if not is_object(parent):
            raise PathError("Key selection does not point into an object", parent_path)
        keys = key_order.get_keys(snapshot, parent_path)
        new_key = unique_name(_key_text(clipboard), [k for k in parent if k != old_key])
        operations = rename(parent_path, keys, old_key, new_key)
        result = PasteResult(operations, Selection(key_path=parent_path + (new_key,)))

    else:
        if selection.key_path is not None:
            # a pasted container replaces the whole member, not just its key
            selection = Selection(paths=(selection.key_path,))
        entries = clipboard_to_entries(clipboard)
        _emit(on_event, "clipboard.entries", {"entries": [e.to_dict() for e in entries]})
        operations = insert(
            document, snapshot, selection, entries, key_order=key_order, unique_name=unique_name
        )
        result = PasteResult(operations, create_selection_from_operations(document, operations))

    _emit(on_event, "paste.operations", {"operations": result.operations, "selection": result.selection.to_dict()})
    return result


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonweave paste")
    ap.add_argument("document", help="Path to the JSON document")
    ap.add_argument("--selection", required=True, help="Selection as JSON")
    ap.add_argument("--clipboard", help="File holding the clipboard text (default: stdin)")
    ap.add_argument("--snapshot", help="JSON file whose object key order is the visual order (default: document)")
    args = ap.parse_args(argv)

    try:
        document = json.loads(Path(args.document).read_text(encoding="utf-8"))
        snapshot = json.loads(Path(args.snapshot).read_text(encoding="utf-8")) if args.snapshot else document
        selection_data = json.loads(args.selection)
        text = Path(args.clipboard).read_text(encoding="utf-8") if args.clipboard else sys.stdin.read()
    except (OSError, ValueError) as e:
        print(f"Failed to read/parse input: {e}", file=sys.stderr)
        return 3

    from jsonweave.engine import JsonEditEngine

    try:
        result = JsonEditEngine().paste(document, Selection.from_dict(selection_data), text, snapshot=snapshot)
    except (ClipboardParseError, SelectionError, PathError) as e:
        print(f"paste error: {e}", file=sys.stderr)
        return 2

    sys.stdout.write(json.dumps(result.to_dict(), indent=2, ensure_ascii=False) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
