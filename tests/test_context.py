"""
Tests for the execution context (variable pools).
"""

import pytest

from dicenic import (
    ExecutionContext, create_context, number_val, string_val,
    VariableAccessError, ScriptRuntimeError, ErrorKind,
)


class TestLocals:
    """Test local variables."""

    def test_missing_local_is_zero(self):
        ctx = ExecutionContext()
        assert ctx.get_local("hp") == number_val(0)
        assert not ctx.has_local("hp")

    def test_set_and_get(self):
        ctx = ExecutionContext()
        ctx.set_local("回合数", number_val(3))
        assert ctx.get_local("回合数") == number_val(3)
        assert ctx.has_local("回合数")

    def test_clear_locals_keeps_pools(self):
        ctx = create_context({"locals": {"x": 1}, "attributes": {"hp": 10}})
        ctx.clear_locals()
        assert not ctx.has_local("x")
        assert ctx.get_special("a", "hp") == number_val(10)


class TestSpecialVariables:
    """Test the $a/$r/$s/$d pools."""

    def test_defaults(self):
        ctx = ExecutionContext()
        assert ctx.get_special("a", "missing") == number_val(0)
        assert ctx.get_special("d", "missing") == number_val(0)
        assert ctx.get_special("r", "missing") == string_val("")
        assert ctx.get_special("s", "missing") == string_val("")

    def test_write_permissions(self):
        assert ExecutionContext.can_write("a")
        assert ExecutionContext.can_write("d")
        assert not ExecutionContext.can_write("r")
        assert not ExecutionContext.can_write("s")
        assert not ExecutionContext.can_write("x")

    def test_writable_pools(self):
        ctx = ExecutionContext()
        ctx.set_special("a", "力量", number_val(18))
        ctx.set_special("d", "mood", string_val("happy"))
        assert ctx.get_special("a", "力量") == number_val(18)
        assert ctx.get_special("d", "mood") == string_val("happy")
        assert ctx.has_special("a", "力量")

    @pytest.mark.parametrize("prefix", ["r", "s"])
    def test_read_only_pools(self, prefix):
        ctx = create_context({"role": {"name": "Aria"}, "system": {"name": "core"}})
        before = dict(ctx.pool(prefix))
        with pytest.raises(VariableAccessError) as exc:
            ctx.set_special(prefix, "name", string_val("changed"))
        assert exc.value.code == "E501"
        assert exc.value.access == "write"
        assert dict(ctx.pool(prefix)) == before

    def test_unknown_prefix(self):
        ctx = ExecutionContext()
        with pytest.raises(ScriptRuntimeError) as exc:
            ctx.get_special("x", "name")
        assert exc.value.kind == ErrorKind.RUNTIME
        assert exc.value.code == "E403"

    def test_pool_view_is_read_only(self):
        ctx = create_context({"attributes": {"hp": 5}})
        view = ctx.pool("a")
        assert view["hp"] == number_val(5)
        with pytest.raises(TypeError):
            view["hp"] = number_val(6)


class TestCreateContext:
    """Test building a context from plain mappings."""

    def test_wraps_plain_values(self):
        ctx = create_context({
            "locals": {"x": 2},
            "attributes": {"力量": 15},
            "role": {"名字": "张三"},
            "system": {"version": "1.0.0"},
            "dice_persona": {"style": "cute"},
        })
        assert ctx.get_local("x") == number_val(2)
        assert ctx.get_special("a", "力量") == number_val(15)
        assert ctx.get_special("r", "名字") == string_val("张三")
        assert ctx.get_special("s", "version") == string_val("1.0.0")
        assert ctx.get_special("d", "style") == string_val("cute")

    def test_camel_case_aliases(self):
        ctx = create_context({"roleInfo": {"name": "x"}, "diceInfo": {"n": 1}})
        assert ctx.get_special("r", "name") == string_val("x")
        assert ctx.get_special("d", "n") == number_val(1)

    def test_unknown_pool(self):
        with pytest.raises(ValueError):
            create_context({"inventory": {}})

    @pytest.mark.parametrize("value", [[1, 2], {"max": 10}, object()])
    def test_unsupported_value(self, value):
        with pytest.raises(ValueError, match="Unsupported value for attributes.hp"):
            create_context({"attributes": {"hp": value}})

    def test_pool_must_be_a_mapping(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            create_context({"attributes": [1, 2]})

    def test_none_and_bool_accepted(self):
        ctx = create_context({"locals": {"flag": True, "missing": None}})
        assert ctx.get_local("flag") == number_val(1)
        assert ctx.get_local("missing") == string_val("")

    def test_empty(self):
        ctx = create_context(None)
        assert ctx.locals == {}

    def test_snapshot_is_independent(self):
        ctx = create_context({"attributes": {"hp": 5}})
        snap = ctx.snapshot()
        ctx.set_special("a", "hp", number_val(1))
        assert snap["attributes"]["hp"] == number_val(5)
