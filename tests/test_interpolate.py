"""
Tests for string escape decoding and {$name} interpolation.
"""

import logging

from dicenic import create_context, Diagnostics, SourceSpan
from dicenic.runtime import (
    decode_escapes, decode_literal, has_interpolation, interpolation_variables,
    escape_interpolation, unescape_interpolation,
    validate_interpolation_syntax, interpolate,
)
from dicenic.runtime.interpolate import classify


class TestEscapes:
    """Test escape decoding."""

    def test_standard_escapes(self):
        assert decode_escapes(r"a\nb\tc") == "a\nb\tc"
        assert decode_escapes(r"\"q\" \'s\'") == "\"q\" 's'"
        assert decode_escapes(r"back\\slash") == "back\\slash"

    def test_unknown_escape_is_the_character(self):
        assert decode_escapes(r"\q") == "q"

    def test_trailing_backslash_kept(self):
        assert decode_escapes("end\\") == "end\\"

    def test_escaped_placeholder_offsets(self):
        text, escaped = decode_literal(r"ab\{$x} {$y}")
        assert text == "ab{$x} {$y}"
        assert escaped == {2}

    def test_escaped_backslash_is_not_an_escaped_placeholder(self):
        text, escaped = decode_literal(r"C:\\{$x}")
        assert text == "C:\\{$x}"
        assert escaped == frozenset()

    def test_escaped_brace_decodes(self):
        assert decode_escapes(r"a\}") == "a}"
        assert decode_escapes(r"a\\}") == "a\\}"


class TestPlaceholders:
    """Test placeholder helpers."""

    def test_has_interpolation(self):
        assert has_interpolation("hp: {$hp}")
        assert not has_interpolation("hp: {hp}")
        assert not has_interpolation(r"\{$hp}")

    def test_interpolation_variables(self):
        assert interpolation_variables("{$a} and {$ b } and {$}") == ["a", "b", ""]

    def test_escape_round_trip(self):
        assert unescape_interpolation(escape_interpolation("{$x}")) == "{$x}"
        assert not has_interpolation(escape_interpolation("{$x}"))

    def test_validate_syntax(self):
        assert validate_interpolation_syntax("{$x} {$y}") == []
        assert validate_interpolation_syntax("{$}") == ["empty interpolation at position 0"]
        assert validate_interpolation_syntax("ab {$x") == ["unclosed interpolation at position 3"]
        assert "nested interpolation at position 4" in validate_interpolation_syntax("{$a {$b}")


class TestClassify:
    """Test how placeholder bodies map to variables."""

    def test_local(self):
        assert classify("hp") == (None, "hp")
        assert classify("回合数") == (None, "回合数")

    def test_special_with_non_ascii_name(self):
        assert classify("a力量") == ("a", "力量")
        assert classify("r职业") == ("r", "职业")

    def test_ascii_word_stays_local(self):
        """Names like 'age' or 'sum' start with a prefix letter but are locals."""
        assert classify("age") == (None, "age")
        assert classify("sum") == (None, "sum")

    def test_special_with_digits_or_underscore(self):
        assert classify("d1") == ("d", "1")
        assert classify("a_hp") == ("a", "_hp")

    def test_single_letter_is_local(self):
        assert classify("a") == (None, "a")

    def test_malformed(self):
        assert classify("") is None
        assert classify("x y") is None
        assert classify("1+1") is None


class TestInterpolate:
    """Test template expansion."""

    def test_local_variable(self):
        ctx = create_context({"locals": {"x": 5}})
        assert interpolate("x={$x}", ctx) == "x=5"

    def test_special_variables(self):
        ctx = create_context({"attributes": {"力量": 15}, "role": {"名字": "张三"}})
        assert interpolate("{$r名字}的力量是{$a力量}", ctx) == "张三的力量是15"

    def test_missing_variables_use_defaults(self):
        ctx = create_context()
        assert interpolate("[{$nothing}][{$r名字}]", ctx) == "[0][]"

    def test_repeated_and_adjacent(self):
        ctx = create_context({"locals": {"n": 1, "b": "two"}})
        assert interpolate("{$n}{$b}{$n}", ctx) == "1two1"

    def test_whitespace_in_body(self):
        ctx = create_context({"locals": {"hp": 3}})
        assert interpolate("{$ hp }", ctx) == "3"

    def test_empty_placeholder_warns(self):
        diagnostics = Diagnostics()
        result = interpolate("a{$}b", create_context(), diagnostics, SourceSpan.at(1, 1))
        assert result == "ab"
        assert diagnostics.warning_count == 1
        assert diagnostics.warning_diagnostics[0].code == "W301"

    def test_malformed_placeholder_warns(self):
        diagnostics = Diagnostics()
        result = interpolate("[{$x + 1}]", create_context(), diagnostics)
        assert result == "[]"
        assert diagnostics.warning_diagnostics[0].code == "W302"

    def test_warning_without_diagnostics_goes_to_log(self, caplog):
        with caplog.at_level(logging.WARNING, logger="dicenic.interpolate"):
            assert interpolate("{$}", create_context()) == ""
        assert "W301" in caplog.text

    def test_no_placeholders(self):
        assert interpolate("plain text", create_context()) == "plain text"

    def test_escaped_offsets_are_skipped(self):
        ctx = create_context({"locals": {"x": 5}})
        text, escaped = decode_literal(r"\{$x} {$x}")
        assert interpolate(text, ctx, escaped=escaped) == "{$x} 5"

    def test_backslash_before_placeholder_is_text(self):
        ctx = create_context({"locals": {"x": 5}})
        assert interpolate("C:\\{$x}", ctx) == "C:\\5"

    def test_replacement_is_not_rescanned(self):
        ctx = create_context({"locals": {"x": "{$y}", "y": 1}})
        assert interpolate("{$x}", ctx) == "{$y}"
