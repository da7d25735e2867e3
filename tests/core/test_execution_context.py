"""Tests for ExecutionContext."""

import pytest

from batchspine.core.execution_context import ExecutionContext


class TestReadWrite:
    def test_put_and_get(self):
        ctx = ExecutionContext()
        ctx.put("reader.offset", 120)
        assert ctx.get("reader.offset") == 120
        assert "reader.offset" in ctx
        assert len(ctx) == 1

    def test_get_default(self):
        assert ExecutionContext().get("missing", "fallback") == "fallback"

    def test_put_none_removes(self):
        ctx = ExecutionContext({"a": 1})
        ctx.put("a", None)
        assert "a" not in ctx

    def test_non_string_key_rejected(self):
        with pytest.raises(TypeError):
            ExecutionContext().put(1, "x")
        with pytest.raises(TypeError):
            ExecutionContext({1: "x"})

    def test_put_if_absent(self):
        ctx = ExecutionContext({"a": 1})
        assert ctx.put_if_absent("a", 2) == 1
        assert ctx.put_if_absent("b", 3) == 3
        assert ctx.to_dict() == {"a": 1, "b": 3}

    def test_remove(self):
        ctx = ExecutionContext({"a": 1})
        assert ctx.remove("a") == 1
        assert ctx.remove("a") is None
        assert ctx.is_empty()

    def test_views(self):
        ctx = ExecutionContext({"a": 1, "b": "two"})
        assert ctx.keys() == ["a", "b"]
        assert ctx.items() == [("a", 1), ("b", "two")]
        assert list(ctx) == ["a", "b"]
        assert ctx.contains_key("a")
        assert ctx.contains_value("two")
        assert not ctx.contains_value(3)


class TestTypedGetters:
    def test_typed_values(self):
        ctx = ExecutionContext({"s": "x", "i": 3, "f": 1.5})
        assert ctx.get_string("s") == "x"
        assert ctx.get_int("i") == 3
        assert ctx.get_float("f") == 1.5
        assert ctx.get_float("i") == 3.0

    def test_wrong_type_raises(self):
        ctx = ExecutionContext({"s": "x"})
        with pytest.raises(TypeError):
            ctx.get_int("s")

    def test_bool_is_not_an_int(self):
        with pytest.raises(TypeError):
            ExecutionContext({"flag": True}).get_int("flag")

    def test_missing_returns_default(self):
        assert ExecutionContext().get_int("missing", 7) == 7
        assert ExecutionContext().get_float("missing") is None


class TestDirtyTracking:
    def test_new_context_is_clean(self):
        assert not ExecutionContext({"a": 1}).is_dirty()

    def test_put_marks_dirty(self):
        ctx = ExecutionContext()
        ctx.put("a", 1)
        assert ctx.is_dirty()
        ctx.clear_dirty_flag()
        assert not ctx.is_dirty()

    def test_same_value_keeps_clean(self):
        ctx = ExecutionContext({"a": 1})
        ctx.put("a", 1)
        assert not ctx.is_dirty()

    def test_removing_missing_key_keeps_clean(self):
        ctx = ExecutionContext()
        ctx.put("a", None)
        assert not ctx.is_dirty()


class TestCopyAndEquality:
    def test_copy_constructor(self):
        original = ExecutionContext({"a": 1})
        copy = ExecutionContext(original)
        copy.put("b", 2)
        assert original.to_dict() == {"a": 1}
        assert copy == ExecutionContext({"a": 1, "b": 2})

    def test_not_hashable(self):
        with pytest.raises(TypeError):
            hash(ExecutionContext())
