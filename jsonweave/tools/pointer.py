"""JSON Pointer + JSON Patch utilities.

We use JSON Pointer (RFC 6901) to address locations inside a document and
JSON Patch (RFC 6902) as the wire format for every generated edit.

Supported patch operations:
- add
- remove
- replace
- move
- copy

Notes:
- For lists, the special index '-' is supported (append).
- For 'add' into a list at index i, we insert.
- 'move' is remove-then-add. Moving an object member onto itself therefore
  moves it to the end of the member order; the edit operations rely on this
  to restore visual ordering.
- The input document is never mutated (see ``immutable``).

CLI:
  jsonweave apply document.json patch.json [--out FILE] [--no-validate]

Exit codes:
  0 OK
  2 patch invalid or could not be applied
  3 IO/JSON parse error
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from jsonweave.tools.immutable import (
    MISSING,
    PathError,
    delete_in,
    get_in,
    insert_in,
    is_array,
    is_object,
    set_in,
)

Json = Union[None, bool, int, float, str, List["Json"], Dict[str, "Json"]]
Segment = Union[str, int]


def escape_segment(seg: str) -> str:
    return seg.replace("~", "~0").replace("/", "~1")


def unescape_segment(seg: str) -> str:
    return seg.replace("~1", "/").replace("~0", "~")


def split_pointer(pointer: str) -> List[str]:
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"Invalid JSON pointer (must start with '/'): {pointer}")
    return [unescape_segment(p) for p in pointer[1:].split("/")]


def join_pointer(segments: Sequence[Segment]) -> str:
    if not segments:
        return ""
    out: List[str] = []
    for s in segments:
        out.append(escape_segment(str(s)))
    return "/" + "/".join(out)


def _coerce_index(seg: str, cur: Any) -> Segment:
    """Interpret seg as int index only if current container is a list."""
    if isinstance(cur, list) and seg != "-" and seg.isdigit():
        return int(seg)
    return seg


def parse_pointer(pointer: str, document: Any = MISSING) -> List[Segment]:
    """Split ``pointer`` into path segments.

    Segments addressing array items in ``document`` become ints. Segments
    below a location that does not exist stay strings.
    """
    cur: Any = document
    out: List[Segment] = []
    for raw in split_pointer(pointer):
        seg = _coerce_index(raw, cur)
        out.append(seg)
        cur = get_in(cur, [seg])
    return out


@dataclass
class PatchError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


def _resolve_parent(doc: Json, pointer: str) -> tuple:
    segs = split_pointer(pointer)
    if not segs:
        raise PatchError("Pointer refers to document root; no parent")
    parent_path = parse_pointer(pointer, doc)[:-1]
    parent = get_in(doc, parent_path)
    if parent is MISSING:
        raise PatchError(f"Parent of {pointer!r} does not exist")
    last = _coerce_index(segs[-1], parent)
    return parent_path, parent, last


def _add(doc: Json, pointer: str, value: Json) -> Json:
    if pointer == "":
        return value
    parent_path, parent, key = _resolve_parent(doc, pointer)
    if is_array(parent):
        if key == "-":
            key = len(parent)
        if not isinstance(key, int) or key > len(parent):
            raise PatchError(f"Invalid list index for add: {pointer!r}")
        return insert_in(doc, parent_path + [key], value)
    if is_object(parent):
        return set_in(doc, parent_path + [key], value)
    raise PatchError(f"Parent of {pointer!r} is not a container")


def _remove(doc: Json, pointer: str) -> Json:
    if pointer == "":
        raise PatchError("Cannot remove the document root")
    parent_path, parent, key = _resolve_parent(doc, pointer)
    if get_in(parent, [key]) is MISSING:
        raise PatchError(f"Nothing to remove at {pointer!r}")
    return delete_in(doc, parent_path + [key])


def _get(doc: Json, pointer: str) -> Json:
    value = get_in(doc, parse_pointer(pointer, doc))
    if value is MISSING:
        raise PatchError(f"No value at {pointer!r}")
    return value


def apply_operation(doc: Json, op: Dict[str, Any]) -> Json:
    """Apply a single patch operation and return the new document."""
    if not isinstance(op, dict):
        raise PatchError("Patch operation must be an object")
    kind = op.get("op")
    path = op.get("path")
    if kind not in ("add", "remove", "replace", "move", "copy"):
        raise PatchError(f"Unsupported patch op: {kind}")
    if not isinstance(path, str):
        raise PatchError("Patch op missing string 'path'")

    try:
        if kind == "remove":
            return _remove(doc, path)

        if kind in ("add", "replace"):
            if "value" not in op:
                raise PatchError(f"Patch op '{kind}' missing 'value'")
            if kind == "replace":
                if path == "":
                    return op["value"]
                _get(doc, path)
                return set_in(doc, parse_pointer(path, doc), op["value"])
            return _add(doc, path, op["value"])

        source = op.get("from")
        if not isinstance(source, str):
            raise PatchError(f"Patch op '{kind}' missing string 'from'")
        value = _get(doc, source)
        if kind == "copy":
            return _add(doc, path, value)
        if path != source and path.startswith(source + "/"):
            raise PatchError(f"Cannot move {source!r} into its own child {path!r}")
        return _add(_remove(doc, source), path, value)
    except (PathError, ValueError) as e:
        raise PatchError(str(e)) from e


def apply_patch(doc: Json, patch: List[Dict[str, Any]]) -> Json:
    """Apply a JSON Patch (RFC 6902, without 'test') to doc.

    Operations are applied strictly in order; ``doc`` itself is left untouched.
    """
    for op in patch:
        doc = apply_operation(doc, op)
    return doc


def load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def main(argv: Optional[List[str]] = None) -> int:
    from jsonweave.tools import validate

    ap = argparse.ArgumentParser(prog="jsonweave apply")
    ap.add_argument("document", help="Path to the JSON document")
    ap.add_argument("patch", help="Path to the JSON Patch document")
    ap.add_argument("--out", help="Write the patched document to this file (default: stdout)")
    ap.add_argument("--no-validate", action="store_true", help="Skip schema validation of the patch")
    args = ap.parse_args(argv)

    try:
        doc = load_json(Path(args.document))
        patch = load_json(Path(args.patch))
    except (OSError, ValueError) as e:
        print(f"Failed to read/parse JSON: {e}", file=sys.stderr)
        return 3

    if not args.no_validate:
        errors = validate.validate(patch)
        if errors:
            for e in errors:
                print(f"{e['pointer']}: {e['message']}", file=sys.stderr)
            return 2

    try:
        result = apply_patch(doc, patch)
    except PatchError as e:
        print(f"apply error: {e}", file=sys.stderr)
        return 2

    text = json.dumps(result, indent=2, ensure_ascii=False) + "\n"
    if args.out:
        Path(args.out).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
