"""Key ordering for objects.

JSON objects have no member order, but an editor shows them in one and has
to keep that order stable across edits. The key-order oracle answers "what
is the visual order of the members under this path". The default oracle,
``DocumentKeyOrder``, reads it from the snapshot's own ``dict`` order;
callers that keep visual order elsewhere can pass any object with the same
two methods.

The patch format cannot position a member directly. The only tool is a
``move`` of a member onto itself, which sends it to the end of the order.
``plan_reorder`` works out the shortest run of such moves that turns the
order left behind by an edit into the wanted order.
"""

from __future__ import annotations

from typing import Any, List, Sequence

from jsonweave.tools.immutable import get_in, is_object


def get_keys(snapshot: Any, parent_path: Sequence[Any]) -> List[str]:
    node = get_in(snapshot, parent_path)
    if is_object(node):
        return list(node.keys())
    return []


def get_next_keys(keys: Sequence[str], key: str, inclusive: bool = False) -> List[str]:
    """Keys positioned after ``key`` (and ``key`` itself when ``inclusive``).

    An unknown ``key`` has nothing after it.
    """
    keys = list(keys)
    if key not in keys:
        return []
    index = keys.index(key)
    return keys[index:] if inclusive else keys[index + 1 :]


class DocumentKeyOrder:
    """Key-order oracle backed by insertion order of the snapshot's dicts."""

    def get_keys(self, snapshot: Any, parent_path: Sequence[Any]) -> List[str]:
        return get_keys(snapshot, parent_path)

    def get_next_keys(self, keys: Sequence[str], key: str, inclusive: bool = False) -> List[str]:
        return get_next_keys(keys, key, inclusive)


DEFAULT_KEY_ORDER = DocumentKeyOrder()


def plan_reorder(current: Sequence[str], target: Sequence[str]) -> List[str]:
    """Keys to move to the end, in order, to turn ``current`` into ``target``.

    Both sequences must hold the same keys. The longest prefix of ``target``
    that already occurs in ``current`` in the same relative order can stay;
    everything after it is moved.
    """
    kept = 0
    pos = 0
    current = list(current)
    for key in target:
        try:
            pos = current.index(key, pos) + 1
        except ValueError:
            break
        kept += 1
    return list(target[kept:])
