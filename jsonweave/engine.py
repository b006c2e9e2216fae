"""A small "drop-in" integration layer for jsonweave.

Wires the edit operations, the paste flow, validation and patch application
into one object configured once with the collaborators an editor supplies:

- ``key_order``: key-order oracle (``get_keys`` / ``get_next_keys``)
- ``unique_name``: unique-name resolver
- ``on_event``: diagnostics hook for the paste flow
- ``validate_patches``: schema-check every patch produced or applied

The engine keeps no document state. Apply each patch before building the
next one; unique names are resolved against the document you pass in.

Typical usage:

    from jsonweave.engine import JsonEditEngine
    from jsonweave.tools.operations import Entry
    from jsonweave.tools.selection import Selection

    eng = JsonEditEngine()
    ops = eng.insert(doc, Selection(before_path=("b",)), [Entry("x", 1)])
    doc = eng.apply(doc, ops)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from jsonweave.tools import clipboard, operations, validate
from jsonweave.tools.immutable import PathError, get_in, is_object
from jsonweave.tools.naming import UniqueNameFn, find_unique_name
from jsonweave.tools.ordering import DEFAULT_KEY_ORDER
from jsonweave.tools.pointer import apply_patch

LOGGER = logging.getLogger(__name__)

PatchDocument = List[Dict[str, Any]]


class JsonEditEngine:
    def __init__(
        self,
        *,
        key_order: Any = None,
        unique_name: Optional[UniqueNameFn] = None,
        validate_patches: bool = True,
        on_event: Optional[Callable[[str, Dict[str, Any]], None]] = None,
    ):
        self.key_order = key_order or DEFAULT_KEY_ORDER
        self.unique_name = unique_name or find_unique_name
        self.validate_patches = validate_patches
        self.on_event = on_event

    def _checked(self, ops: PatchDocument) -> PatchDocument:
        if self.validate_patches:
            validate.check(ops)
        return ops

    def _snapshot(self, document: Any, snapshot: Any) -> Any:
        return document if snapshot is None else snapshot

    def insert(self, document: Any, selection: Any, entries: Sequence[Any], *, snapshot: Any = None) -> PatchDocument:
        return self._checked(
            operations.insert(
                document,
                self._snapshot(document, snapshot),
                selection,
                entries,
                key_order=self.key_order,
                unique_name=self.unique_name,
            )
        )

    def duplicate(self, document: Any, paths: Sequence[Sequence[Any]], *, snapshot: Any = None) -> PatchDocument:
        return self._checked(
            operations.duplicate(
                document,
                self._snapshot(document, snapshot),
                paths,
                key_order=self.key_order,
                unique_name=self.unique_name,
            )
        )

    def remove(self, paths: Sequence[Sequence[Any]]) -> PatchDocument:
        return self._checked(operations.remove_all(paths))

    def rename(self, document: Any, key_path: Sequence[Any], new_key: str, *, snapshot: Any = None) -> PatchDocument:
        """Rename the member at ``key_path``; ``new_key`` is made unique among its siblings."""
        key_path = tuple(key_path)
        if not key_path:
            raise PathError("Cannot rename the document root", key_path)
        parent_path, old_key = key_path[:-1], key_path[-1]
        parent = get_in(document, parent_path)
        if not is_object(parent):
            raise PathError("Key path does not point into an object", parent_path)
        unique = self.unique_name(new_key, [k for k in parent if k != old_key])
        keys = self.key_order.get_keys(self._snapshot(document, snapshot), parent_path)
        return self._checked(operations.rename(parent_path, keys, old_key, unique))

    def paste(self, document: Any, selection: Any, text: str, *, snapshot: Any = None) -> clipboard.PasteResult:
        result = clipboard.create_paste_operations(
            document,
            self._snapshot(document, snapshot),
            selection,
            text,
            key_order=self.key_order,
            unique_name=self.unique_name,
            on_event=self.on_event,
        )
        self._checked(result.operations)
        return result

    def create_new_value(self, document: Any, selection: Any, kind: str) -> Any:
        return operations.create_new_value(document, selection, kind)

    def apply(self, document: Any, ops: PatchDocument) -> Any:
        """Apply ``ops`` and return the new document; ``document`` is untouched."""
        self._checked(ops)
        result = apply_patch(document, ops)
        LOGGER.debug("applied %d operation(s)", len(ops))
        return result
