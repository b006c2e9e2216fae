"""Tests for the edit operations (patch synthesis).

Object results are checked by applying the patch and looking at the member
order, since that is what an editor shows.
"""

import pytest

from jsonweave.tools.operations import (
    Entry,
    append,
    create_new_value,
    duplicate,
    insert,
    insert_before,
    remove,
    remove_all,
    rename,
    replace,
)
from jsonweave.tools.ordering import get_next_keys, plan_reorder
from jsonweave.tools.pointer import apply_patch
from jsonweave.tools.immutable import PathError
from jsonweave.tools.naming import find_unique_name
from jsonweave.tools.selection import Selection, SelectionError, UnsupportedSelectionError


def _abc():
    return {"a": 1, "b": 2, "c": 3}


def _move(key):
    return {"op": "move", "from": f"/{key}", "path": f"/{key}"}


# ═══════════════════════════════════════════════════════════════════
#  insert_before
# ═══════════════════════════════════════════════════════════════════

class TestInsertBefore:

    def test_array_consecutive_indices(self):
        doc = {"arr": [1, 2, 3]}
        ops = insert_before(doc, doc, ("arr", 1), [Entry(None, "x"), Entry(None, "y")])
        assert ops == [
            {"op": "add", "path": "/arr/1", "value": "x"},
            {"op": "add", "path": "/arr/2", "value": "y"},
        ]
        assert apply_patch(doc, ops) == {"arr": [1, "x", "y", 2, 3]}

    def test_object_keeps_order(self):
        doc = _abc()
        ops = insert_before(doc, doc, ("b",), [Entry("x", 10)])
        assert ops == [{"op": "add", "path": "/x", "value": 10}, _move("b"), _move("c")]
        assert list(apply_patch(doc, ops)) == ["a", "x", "b", "c"]

    def test_object_before_first_key(self):
        doc = _abc()
        ops = insert_before(doc, doc, ("a",), [Entry("x", 0)])
        assert list(apply_patch(doc, ops)) == ["x", "a", "b", "c"]

    def test_colliding_key_gets_copy_suffix(self):
        doc = _abc()
        ops = insert_before(doc, doc, ("c",), [Entry("b", 9)])
        assert ops[0] == {"op": "add", "path": "/b (copy)", "value": 9}
        result = apply_patch(doc, ops)
        assert list(result) == ["a", "b", "b (copy)", "c"]
        assert result["b"] == 2

    def test_entries_with_same_key_do_not_collide(self):
        doc = {"z": 0}
        ops = insert_before(doc, doc, ("z",), [Entry("n", 1), Entry("n", 2)])
        assert list(apply_patch(doc, ops).items()) == [("n", 1), ("n (copy)", 2), ("z", 0)]

    def test_entry_without_key_in_object(self):
        doc = {"z": 0}
        ops = insert_before(doc, doc, ("z",), [Entry(None, 1)])
        assert ops[0]["path"] == "/New Item"

    def test_no_entries_no_operations(self):
        doc = _abc()
        assert insert_before(doc, doc, ("b",), []) == []

    def test_nested_parent(self):
        doc = {"outer": {"p": 1, "q": 2}}
        ops = insert_before(doc, doc, ("outer", "q"), [Entry("m", 5)])
        assert ops == [
            {"op": "add", "path": "/outer/m", "value": 5},
            {"op": "move", "from": "/outer/q", "path": "/outer/q"},
        ]

    def test_visual_order_comes_from_snapshot(self):
        doc = _abc()
        snapshot = {"c": 3, "b": 2, "a": 1}
        ops = insert_before(doc, snapshot, ("b",), [Entry("x", 0)])
        assert ops == [{"op": "add", "path": "/x", "value": 0}, _move("b"), _move("a")]

    def test_custom_unique_name_resolver(self):
        def numbered(name, existing):
            n = 2
            candidate = name
            while candidate in existing:
                candidate = f"{name}_{n}"
                n += 1
            return candidate

        doc = _abc()
        ops = insert_before(doc, doc, ("c",), [Entry("a", 0)], unique_name=numbered)
        assert ops[0]["path"] == "/a_2"

    def test_parent_must_be_container(self):
        with pytest.raises(PathError):
            insert_before({"a": 1}, {"a": 1}, ("a", "x"), [Entry("k", 1)])

    def test_deterministic(self):
        doc = _abc()
        entries = [Entry("x", {"deep": [1, 2]}), Entry("b", None)]
        assert insert_before(doc, doc, ("b",), entries) == insert_before(doc, doc, ("b",), entries)


# ═══════════════════════════════════════════════════════════════════
#  append
# ═══════════════════════════════════════════════════════════════════

class TestAppend:

    def test_array(self):
        doc = {"arr": [1]}
        ops = append(doc, ("arr",), [Entry(None, 2), Entry(None, 3)])
        assert ops == [
            {"op": "add", "path": "/arr/1", "value": 2},
            {"op": "add", "path": "/arr/2", "value": 3},
        ]

    def test_object(self):
        assert append({"a": 1}, (), [Entry("z", 1)]) == [{"op": "add", "path": "/z", "value": 1}]

    def test_object_collision(self):
        ops = append({"a": 1}, (), [Entry("a", 2), Entry("a", 3)])
        assert [op["path"] for op in ops] == ["/a (copy)", "/a (copy 2)"]

    def test_accepts_entry_dicts(self):
        assert append([], (), [{"value": 1}]) == [{"op": "add", "path": "/0", "value": 1}]

    def test_scalar_target_fails(self):
        with pytest.raises(PathError):
            append({"a": 1}, ("a",), [Entry("z", 1)])


# ═══════════════════════════════════════════════════════════════════
#  rename
# ═══════════════════════════════════════════════════════════════════

class TestRename:

    def test_keeps_position(self):
        doc = _abc()
        ops = rename((), list(doc), "b", "B")
        assert ops == [{"op": "move", "from": "/b", "path": "/B"}, _move("c")]
        assert list(apply_patch(doc, ops).items()) == [("a", 1), ("B", 2), ("c", 3)]

    def test_last_key_needs_no_reorder(self):
        assert rename((), ["a", "b", "c"], "c", "C") == [{"op": "move", "from": "/c", "path": "/C"}]

    def test_first_key(self):
        doc = _abc()
        ops = rename((), list(doc), "a", "A")
        assert list(apply_patch(doc, ops)) == ["A", "b", "c"]

    def test_nested_with_escaping(self):
        ops = rename(("x/y",), ["k"], "k", "a~b")
        assert ops == [{"op": "move", "from": "/x~1y/k", "path": "/x~1y/a~0b"}]


# ═══════════════════════════════════════════════════════════════════
#  replace
# ═══════════════════════════════════════════════════════════════════

class TestReplace:

    def test_same_name_is_kept(self):
        doc = {"a": 1}
        ops = replace(doc, doc, [("a",)], [Entry("a", 2)])
        assert ops == [{"op": "remove", "path": "/a"}, {"op": "add", "path": "/a", "value": 2}]

    def test_object_middle_member(self):
        doc = _abc()
        ops = replace(doc, doc, [("b",)], [Entry("x", 5)])
        assert ops == [
            {"op": "remove", "path": "/b"},
            {"op": "add", "path": "/x", "value": 5},
            _move("c"),
        ]
        assert list(apply_patch(doc, ops).items()) == [("a", 1), ("x", 5), ("c", 3)]

    def test_object_collision_with_remaining_member(self):
        doc = {"a": 1, "b": 2}
        ops = replace(doc, doc, [("b",)], [Entry("a", 9)])
        assert ops[1] == {"op": "add", "path": "/a (copy)", "value": 9}

    def test_object_non_contiguous_selection(self):
        doc = {"a": 1, "b": 2, "c": 3, "d": 4, "e": 5}
        ops = replace(doc, doc, [("d",), ("b",)], [Entry("n", 0)])
        assert ops[:2] == [{"op": "remove", "path": "/d"}, {"op": "remove", "path": "/b"}]
        assert list(apply_patch(doc, ops)) == ["a", "c", "n", "e"]

    def test_array_sorted_and_removed_from_the_end(self):
        doc = {"arr": [0, 1, 2, 3]}
        ops = replace(doc, doc, [("arr", 2), ("arr", 1)], [Entry(None, "x")])
        assert ops == [
            {"op": "remove", "path": "/arr/2"},
            {"op": "remove", "path": "/arr/1"},
            {"op": "add", "path": "/arr/1", "value": "x"},
        ]
        assert apply_patch(doc, ops) == {"arr": [0, "x", 3]}

    def test_paths_must_share_parent(self):
        doc = {"a": {"x": 1}, "b": 2}
        with pytest.raises(SelectionError):
            replace(doc, doc, [("a", "x"), ("b",)], [Entry("k", 1)])

    def test_empty_paths_rejected(self):
        with pytest.raises(SelectionError):
            replace({}, {}, [], [Entry("k", 1)])


# ═══════════════════════════════════════════════════════════════════
#  duplicate
# ═══════════════════════════════════════════════════════════════════

class TestDuplicate:

    def test_single_array_item(self):
        doc = [10, 11, 12, 13]
        assert duplicate(doc, doc, [(2,)]) == [{"op": "copy", "from": "/2", "path": "/3"}]

    def test_array_block_after_last_selected(self):
        doc = ["a", "b", "c", "d"]
        ops = duplicate(doc, doc, [(3,), (1,)])
        assert ops == [
            {"op": "copy", "from": "/1", "path": "/4"},
            {"op": "copy", "from": "/3", "path": "/5"},
        ]
        assert apply_patch(doc, ops) == ["a", "b", "c", "d", "b", "d"]

    def test_object_copy_placed_after_source(self):
        doc = _abc()
        ops = duplicate(doc, doc, [("a",)])
        assert ops == [{"op": "copy", "from": "/a", "path": "/a (copy)"}, _move("b"), _move("c")]
        assert list(apply_patch(doc, ops).items()) == [("a", 1), ("a (copy)", 1), ("b", 2), ("c", 3)]

    def test_object_multiple(self):
        doc = _abc()
        ops = duplicate(doc, doc, [("b",), ("a",)])
        assert list(apply_patch(doc, ops)) == ["a", "b", "a (copy)", "b (copy)", "c"]

    def test_second_duplicate_gets_numbered_name(self):
        doc = {"a": 1, "a (copy)": 1}
        ops = duplicate(doc, doc, [("a",)])
        assert ops[0]["path"] == "/a (copy 2)"

    def test_mixed_parents_rejected(self):
        doc = {"a": [1], "b": [2]}
        with pytest.raises(SelectionError):
            duplicate(doc, doc, [("a", 0), ("b", 0)])


# ═══════════════════════════════════════════════════════════════════
#  remove / remove_all
# ═══════════════════════════════════════════════════════════════════

class TestRemove:

    def test_remove(self):
        assert remove(("a", 0)) == [{"op": "remove", "path": "/a/0"}]

    def test_remove_all_reverses_input_order(self):
        ops = remove_all([(0,), (1,), (2,)])
        assert [op["path"] for op in ops] == ["/2", "/1", "/0"]

    def test_remove_all_on_array_removes_every_target(self):
        doc = ["a", "b", "c", "d"]
        assert apply_patch(doc, remove_all([(0,), (2,), (3,)])) == ["b"]


# ═══════════════════════════════════════════════════════════════════
#  insert (dispatch)
# ═══════════════════════════════════════════════════════════════════

class TestInsert:

    def test_before_path(self):
        doc = _abc()
        ops = insert(doc, doc, Selection(before_path=("b",)), [Entry("x", 1)])
        assert ops == insert_before(doc, doc, ("b",), [Entry("x", 1)])

    def test_append_path(self):
        doc = {"l": []}
        ops = insert(doc, doc, Selection(append_path=("l",)), [Entry(None, 1)])
        assert ops == [{"op": "add", "path": "/l/0", "value": 1}]

    def test_paths_replace(self):
        doc = {"a": 1}
        ops = insert(doc, doc, Selection(paths=[("a",)]), [Entry("a", 2)])
        assert ops == [{"op": "remove", "path": "/a"}, {"op": "add", "path": "/a", "value": 2}]

    @pytest.mark.parametrize("selection", [
        Selection(value_path=("a",)),
        Selection(key_path=("a",)),
    ])
    def test_unsupported_selection(self, selection):
        doc = {"a": 1}
        with pytest.raises(UnsupportedSelectionError):
            insert(doc, doc, selection, [Entry("x", 1)])


# ═══════════════════════════════════════════════════════════════════
#  create_new_value
# ═══════════════════════════════════════════════════════════════════

class TestCreateNewValue:

    DOC = {
        "items": [
            {"name": "first", "tags": ["x", "y"], "meta": {"n": 1, "ok": True}},
            {"name": "second"},
        ],
        "empty": [],
        "obj": {"k": 1},
    }

    @pytest.mark.parametrize("kind,expected", [
        ("value", ""),
        ("object", {}),
        ("array", []),
        ("bogus", ""),
    ])
    def test_plain_kinds(self, kind, expected):
        assert create_new_value(self.DOC, Selection(append_path=("items",)), kind) == expected

    def test_structure_from_first_item(self):
        value = create_new_value(self.DOC, Selection(append_path=("items",)), "structure")
        assert value == {"name": "", "tags": [], "meta": {"n": "", "ok": ""}}

    def test_structure_from_before_path(self):
        value = create_new_value(self.DOC, Selection(before_path=("items", 1)), "structure")
        assert value == {"name": "", "tags": [], "meta": {"n": "", "ok": ""}}

    def test_structure_does_not_touch_example(self):
        create_new_value(self.DOC, Selection(append_path=("items",)), "structure")
        assert self.DOC["items"][0]["tags"] == ["x", "y"]

    @pytest.mark.parametrize("selection", [
        Selection(append_path=("empty",)),
        Selection(append_path=("obj",)),
        Selection(value_path=("obj", "k")),
    ])
    def test_structure_without_example(self, selection):
        assert create_new_value(self.DOC, selection, "structure") == ""


# ═══════════════════════════════════════════════════════════════════
#  ordering / naming helpers
# ═══════════════════════════════════════════════════════════════════

class TestHelpers:

    @pytest.mark.parametrize("key,inclusive,expected", [
        ("b", False, ["c"]),
        ("b", True, ["b", "c"]),
        ("c", False, []),
        ("zzz", True, []),
    ])
    def test_get_next_keys(self, key, inclusive, expected):
        assert get_next_keys(["a", "b", "c"], key, inclusive) == expected

    @pytest.mark.parametrize("current,target,moves", [
        (["a", "b", "c", "x"], ["a", "x", "b", "c"], ["b", "c"]),
        (["a", "b"], ["a", "b"], []),
        (["b", "a"], ["a", "b"], ["b"]),
        (["c", "b", "a"], ["a", "b", "c"], ["b", "c"]),
    ])
    def test_plan_reorder(self, current, target, moves):
        assert plan_reorder(current, target) == moves

    @pytest.mark.parametrize("name,existing,expected", [
        ("a", {}, "a"),
        ("a", {"a": 1}, "a (copy)"),
        ("a", {"a": 1, "a (copy)": 1}, "a (copy 2)"),
        ("a", {"a", "a (copy)", "a (copy 2)"}, "a (copy 3)"),
    ])
    def test_find_unique_name(self, name, existing, expected):
        assert find_unique_name(name, existing) == expected
