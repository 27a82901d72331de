"""Tests for merge, merge_copy and inherit."""

import pytest as _pytest

import layerdoc.node as node_module
import layerdoc.ops.merge as merge_module

JsonNode = node_module.JsonNode


def _tree(value: object, meta: str = "") -> JsonNode:
    return JsonNode.from_native(value, meta=meta)


def _override(value: object) -> JsonNode:
    node = _tree(value)
    node.flags.append("override")
    return node


class TestMergeStructs:
    """Struct merging and tombstones."""

    def test_null_deletes_key(self) -> None:
        """{"a":1,"b":2} merged with {"b":null,"c":3} gives {"a":1,"c":3}."""
        dest = _tree({"a": 1, "b": 2})
        merge_module.merge(dest, _tree({"b": None, "c": 3}))

        assert dest.to_native() == {"a": 1, "c": 3}

    def test_null_ignored_with_ignore_override(self) -> None:
        """With ignore_override NULLs in source leave dest alone."""
        dest = _tree({"a": 1, "b": 2})
        merge_module.merge(dest, _tree({"b": None, "c": 3}), ignore_override=True)

        assert dest.to_native() == {"a": 1, "b": 2, "c": 3}

    def test_null_tombstone_for_missing_key_is_dropped(self) -> None:
        """Deleting a key that does not exist adds nothing."""
        dest = _tree({"a": 1})
        merge_module.merge(dest, _tree({"z": None}))

        assert dest.to_native() == {"a": 1}

    def test_nested_structs_merge(self) -> None:
        """Nested structs merge key by key."""
        dest = _tree({"skills": {"archery": 1, "logistics": 2}})
        merge_module.merge(dest, _tree({"skills": {"archery": 3, "tactics": 1}}))

        assert dest.to_native() == {"skills": {"archery": 3, "logistics": 2, "tactics": 1}}

    def test_null_root_source_clears_dest(self) -> None:
        """A NULL root deletes everything unless overrides are ignored."""
        dest = _tree({"a": 1})
        merge_module.merge(dest, JsonNode())
        assert dest.is_null()

        dest = _tree({"a": 1})
        merge_module.merge(dest, JsonNode(), ignore_override=True)
        assert dest.to_native() == {"a": 1}

    def test_merge_into_null_takes_source(self) -> None:
        """An absent dest takes source wholesale, meta included."""
        dest = JsonNode()
        merge_module.merge(dest, _tree({"a": [1]}, meta="mod.json"))

        assert dest.to_native() == {"a": [1]}
        assert dest.meta == "mod.json"

    def test_mismatched_types_replace(self) -> None:
        """Different container types are replaced."""
        dest = _tree({"a": {"x": 1}})
        merge_module.merge(dest, _tree({"a": [1]}))

        assert dest.to_native() == {"a": [1]}

    def test_scalars_replace(self) -> None:
        """Scalars never merge."""
        dest = _tree({"a": 1})
        merge_module.merge(dest, _tree({"a": "one"}))

        assert dest["a"].as_string() == "one"

    def test_source_is_consumed(self) -> None:
        """merge leaves source NULL."""
        source = _tree({"a": 1})
        merge_module.merge(_tree({}), source)

        assert source.is_null()


class TestMergeVectors:
    """Positional vector merging."""

    def test_positional_merge(self) -> None:
        """Elements merge by position and extra elements are appended."""
        dest = _tree([{"a": 1}, {"b": 2}])
        merge_module.merge(dest, _tree([{"a": 9}, {"c": 3}, {"d": 4}]))

        assert dest.to_native() == [{"a": 9}, {"b": 2, "c": 3}, {"d": 4}]

    def test_null_elements_delete_original_positions(self) -> None:
        """Deletions refer to positions before any element was removed."""
        dest = _tree(["a", "b", "c", "d"])
        merge_module.merge(dest, _tree([None, "B", None]))

        assert dest.to_native() == ["B", "d"]

    def test_null_elements_kept_with_ignore_override(self) -> None:
        """ignore_override skips NULL elements."""
        dest = _tree(["a", "b"])
        merge_module.merge(dest, _tree([None, "B"]), ignore_override=True)

        assert dest.to_native() == ["a", "B"]

    def test_null_beyond_end_is_not_appended(self) -> None:
        """NULL elements past the end of dest do nothing."""
        dest = _tree(["a"])
        merge_module.merge(dest, _tree(["A", None]))

        assert dest.to_native() == ["A"]


class TestOverrideFlag:
    """The override flag forces replacement."""

    def test_override_replaces_struct(self) -> None:
        """A flagged struct replaces instead of merging."""
        dest = _tree({"skills": {"archery": 1, "logistics": 2}})
        source = _tree({})
        source["skills"] = _override({"tactics": 1})
        merge_module.merge(dest, source)

        assert dest.to_native() == {"skills": {"tactics": 1}}

    def test_override_replaces_vector(self) -> None:
        """A flagged vector replaces instead of merging by position."""
        dest = _tree({"army": ["pikeman", "archer"]})
        source = _tree({})
        source["army"] = _override(["griffin"])
        merge_module.merge(dest, source)

        assert dest.to_native() == {"army": ["griffin"]}

    def test_override_ignored_with_ignore_override(self) -> None:
        """ignore_override merges flagged nodes normally."""
        dest = _tree({"skills": {"archery": 1}})
        source = _tree({})
        source["skills"] = _override({"tactics": 1})
        merge_module.merge(dest, source, ignore_override=True)

        assert dest.to_native() == {"skills": {"archery": 1, "tactics": 1}}

    def test_flag_not_kept_after_replacement(self) -> None:
        """The merged tree holds no override flags."""
        dest = _tree({"army": ["pikeman", "archer"]})
        source = _tree({})
        source["army"] = _override(["griffin"])
        merge_module.merge(dest, source)

        assert not dest["army"].has_flag("override")

    def test_flag_not_kept_in_new_subtrees(self) -> None:
        """Subtrees moved into empty positions lose nested override flags."""
        source = _tree({"hero": {}, "extra": [[]]})
        source["hero"]["army"] = _override(["griffin"])
        source["extra"][0] = _override([1])
        dest = _tree({"extra": []})
        merge_module.merge(dest, source)

        assert not dest["hero"]["army"].has_flag("override")
        assert not dest["extra"][0].has_flag("override")
        assert dest.to_native() == {"extra": [[1]], "hero": {"army": ["griffin"]}}


class TestMeta:
    """Provenance handling."""

    def test_replaced_values_keep_dest_meta_by_default(self) -> None:
        """Without copy_meta replaced nodes keep their old meta."""
        dest = _tree({"a": 1}, meta="base.json")
        merge_module.merge(dest, _tree({"a": 2}, meta="mod.json"))

        assert dest["a"].as_integer() == 2
        assert dest["a"].meta == "base.json"

    def test_copy_meta_takes_source_meta(self) -> None:
        """With copy_meta replaced nodes carry the source's meta."""
        dest = _tree({"a": 1, "b": 1}, meta="base.json")
        merge_module.merge(dest, _tree({"a": 2}, meta="mod.json"), copy_meta=True)

        assert dest["a"].meta == "mod.json"
        assert dest["b"].meta == "base.json"
        assert dest.meta == "mod.json"

    def test_new_keys_keep_their_meta(self) -> None:
        """Added subtrees arrive with their own provenance."""
        dest = _tree({"a": 1}, meta="base.json")
        merge_module.merge(dest, _tree({"c": {"d": 1}}, meta="mod.json"))

        assert dest["c"]["d"].meta == "mod.json"


class TestMergeCopy:
    """Non-destructive merge."""

    def test_source_unchanged(self) -> None:
        """merge_copy leaves source intact."""
        source = _tree({"b": None, "c": 3})
        dest = _tree({"a": 1, "b": 2})
        merge_module.merge_copy(dest, source)

        assert dest.to_native() == {"a": 1, "c": 3}
        assert source.to_native() == {"b": None, "c": 3}

    def test_dest_does_not_share_nodes_with_source(self) -> None:
        """Later changes to source do not reach dest."""
        source = _tree({"c": {"d": 1}})
        dest = _tree({})
        merge_module.merge_copy(dest, source)
        source["c"]["d"] = 2

        assert dest["c"]["d"].as_integer() == 1

    @_pytest.mark.parametrize(
        ("base", "patch"),
        [
            ({"a": 1}, {}),
            ({"a": {"b": [1, 2]}}, {"a": {"b": [3]}}),
            ([1, 2], [None]),
        ],
    )
    def test_merge_copy_equals_merge_of_copy(self, base: object, patch: object) -> None:
        """merge_copy behaves like merge on a copy of source."""
        via_copy = _tree(base)
        merge_module.merge_copy(via_copy, _tree(patch))
        direct = _tree(base)
        merge_module.merge(direct, _tree(patch).copy())

        assert via_copy == direct


class TestInherit:
    """Inheritance from a base tree."""

    def test_descendant_values_win(self) -> None:
        """Descendant fields override base fields; others are inherited."""
        base = _tree({"hp": 10, "speed": 4, "skills": {"archery": 1}}, meta="base.json")
        child = _tree({"hp": 20, "skills": {"tactics": 1}}, meta="elite.json")
        merge_module.inherit(child, base)

        assert child.to_native() == {"hp": 20, "speed": 4, "skills": {"archery": 1, "tactics": 1}}
        assert child["hp"].meta == "elite.json"
        assert child["speed"].meta == "base.json"

    def test_null_deletes_inherited_field(self) -> None:
        """A NULL in the descendant removes the inherited field."""
        base = _tree({"hp": 10, "speed": 4})
        child = _tree({"speed": None})
        merge_module.inherit(child, base)

        assert child.to_native() == {"hp": 10}

    def test_base_unchanged(self) -> None:
        """inherit does not modify base."""
        base = _tree({"hp": 10})
        merge_module.inherit(_tree({"hp": 1}), base)

        assert base.to_native() == {"hp": 10}
