"""
Tests for diagnostics collection, formatting and the recovery policy.
"""

import logging
import pytest

from dicenic import (
    Diagnostics, DiagnosticsConfig, create_diagnostics, SourceSpan,
    ErrorKind, ErrorSeverity, ErrorLimitExceeded, ScriptRuntimeError,
    TypeConversionError, number_val, string_val,
)
from dicenic.errors import (
    error_type_conversion,
    error_division_by_zero,
    warning_division_by_zero,
    error_read_only_variable,
    error_unexpected_token,
    warning_invalid_dice,
    warning_loop_limit,
)
from dicenic.runtime import ValueKind


def span(line=1, column=1):
    return SourceSpan.at(line, column)


class TestConfig:
    """Test DiagnosticsConfig."""

    def test_defaults(self):
        config = DiagnosticsConfig()
        assert config.enable_recovery is True
        assert config.log_warnings is True
        assert config.max_errors == 10
        assert config.use_default_on_type_error is True
        assert config.strict_division is False

    def test_from_dict_camel_case(self):
        config = DiagnosticsConfig.from_dict({"enableRecovery": False, "maxErrors": 3})
        assert config.enable_recovery is False
        assert config.max_errors == 3

    def test_from_dict_snake_case(self):
        config = DiagnosticsConfig.from_dict({"strict_division": True})
        assert config.strict_division is True

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            DiagnosticsConfig.from_dict({"verbose": True})

    def test_bad_max_errors(self):
        with pytest.raises(ValueError):
            DiagnosticsConfig().update(max_errors=-1)

    @pytest.mark.parametrize("bad", [-1, True, "5", 2.5])
    def test_rejected_update_changes_nothing(self, bad):
        config = DiagnosticsConfig()
        with pytest.raises(ValueError):
            config.update(enable_recovery=False, max_errors=bad)
        assert config.max_errors == 10
        assert config.enable_recovery is True

    def test_unknown_option_changes_nothing(self):
        config = DiagnosticsConfig()
        with pytest.raises(ValueError):
            config.update(strict_division=True, verbose=True)
        assert config.strict_division is False

    def test_update_config(self):
        diagnostics = Diagnostics()
        diagnostics.update_config(maxErrors=1)
        assert diagnostics.config.max_errors == 1

    def test_to_dict(self):
        assert DiagnosticsConfig().to_dict()["max_errors"] == 10

    def test_create_diagnostics_from_mapping(self):
        diagnostics = create_diagnostics({"logWarnings": False})
        assert diagnostics.config.log_warnings is False


class TestCollection:
    """Test recording errors and warnings."""

    def test_empty(self):
        diagnostics = Diagnostics()
        assert not diagnostics.has_errors
        assert not diagnostics.has_warnings
        assert diagnostics.summary() == "no errors or warnings"
        assert diagnostics.format_all() == ""

    def test_warning_strings(self):
        diagnostics = Diagnostics()
        diagnostics.warn(warning_division_by_zero("/", span(1, 4)))
        assert diagnostics.warnings == ["1:4: warning[W402]: division by zero in '/', result is 0"]

    def test_errors_kept_as_exceptions(self):
        diagnostics = Diagnostics()
        error = error_division_by_zero("/", span())
        diagnostics.add_error(error)
        assert diagnostics.errors == [error]
        assert diagnostics.error_count == 1
        assert diagnostics.error_messages()[0].startswith("1:1: error[E402]")

    def test_error_ceiling(self):
        """Recording past max_errors raises and keeps the list at the limit."""
        diagnostics = Diagnostics(DiagnosticsConfig(max_errors=2))
        diagnostics.add_error(error_division_by_zero("/", span()))
        diagnostics.add_error(error_division_by_zero("/", span()))
        with pytest.raises(ErrorLimitExceeded) as exc:
            diagnostics.add_error(error_division_by_zero("/", span()))
        assert exc.value.code == "E404"
        assert diagnostics.error_count == 2

    def test_source_line_attached(self):
        diagnostics = Diagnostics(source="x = 1\ny = 10 / 0")
        diagnostics.warn(warning_division_by_zero("/", SourceSpan.at(2, 5)))
        rendered = diagnostics.format_all()
        assert "y = 10 / 0" in rendered
        assert "^" in rendered
        assert rendered.endswith("0 error(s), 1 warning(s)")

    def test_unknown_span_has_no_location(self):
        diagnostics = Diagnostics()
        diagnostics.warn(warning_division_by_zero("%", SourceSpan.unknown()))
        assert diagnostics.warnings[0].startswith("warning[W402]")

    def test_clear(self):
        diagnostics = Diagnostics()
        diagnostics.add_error(error_division_by_zero("/", span()))
        diagnostics.warn(warning_division_by_zero("/", span()))
        diagnostics.clear()
        assert diagnostics.error_count == 0
        assert diagnostics.warning_count == 0

    def test_to_json(self):
        diagnostics = Diagnostics()
        diagnostics.add_error(error_read_only_variable("r", "name", span(3, 2)))
        data = diagnostics.to_json()
        assert data["error_count"] == 1
        error = data["errors"][0]
        assert error["code"] == "E501"
        assert error["kind"] == "VariableAccessError"
        assert error["access"] == "write"
        assert error["range"]["start"]["line"] == 3

    def test_logging_mirror(self, caplog):
        diagnostics = Diagnostics()
        with caplog.at_level(logging.WARNING, logger="dicenic.diagnostics"):
            diagnostics.warn(warning_division_by_zero("/", span()))
        assert "W402" in caplog.text

    def test_logging_disabled(self, caplog):
        diagnostics = Diagnostics(DiagnosticsConfig(log_warnings=False))
        with caplog.at_level(logging.WARNING, logger="dicenic.diagnostics"):
            diagnostics.warn(warning_division_by_zero("/", span()))
        assert caplog.records == []


class TestPolicy:
    """Test per-kind handling."""

    def test_runtime_error_recovered(self):
        diagnostics = Diagnostics()
        diagnostics.handle_runtime_error(error_division_by_zero("/", span()))
        assert diagnostics.error_count == 1

    def test_runtime_error_raised_without_recovery(self):
        diagnostics = Diagnostics(DiagnosticsConfig(enable_recovery=False))
        with pytest.raises(ScriptRuntimeError):
            diagnostics.handle_runtime_error(error_division_by_zero("/", span()))
        assert diagnostics.error_count == 1

    def test_type_conversion_downgraded(self):
        diagnostics = Diagnostics()
        error = error_type_conversion("string", "number", "abc", span())
        result = diagnostics.handle_type_conversion_error(error, ValueKind.NUMBER)
        assert result == number_val(0)
        assert diagnostics.error_count == 0
        warning = diagnostics.warning_diagnostics[0]
        assert warning.code == "W201"
        assert warning.severity == ErrorSeverity.WARNING

    def test_type_conversion_default_for_string(self):
        diagnostics = Diagnostics()
        error = error_type_conversion("number", "string", 1, span())
        assert diagnostics.handle_type_conversion_error(error, ValueKind.STRING) == string_val("")

    def test_strict_type_conversion(self):
        diagnostics = Diagnostics(DiagnosticsConfig(use_default_on_type_error=False))
        error = error_type_conversion("string", "number", "abc", span())
        assert diagnostics.handle_type_conversion_error(error) == number_val(0)
        assert diagnostics.error_count == 1
        assert isinstance(diagnostics.errors[0], TypeConversionError)

    def test_dice_error_is_warning(self):
        diagnostics = Diagnostics(DiagnosticsConfig(enable_recovery=False))
        result = diagnostics.handle_dice_error(warning_invalid_dice("0d6", "bad", span()))
        assert result == number_val(0)
        assert diagnostics.warning_count == 1
        assert not diagnostics.has_errors

    def test_loop_error_is_warning(self):
        diagnostics = Diagnostics()
        diagnostics.handle_loop_error(warning_loop_limit("while", 10, span()))
        assert diagnostics.warning_diagnostics[0].code == "W701"

    def test_report_dispatch(self):
        diagnostics = Diagnostics()
        assert diagnostics.report(warning_invalid_dice("x", "bad", span())) == number_val(0)
        assert diagnostics.report(error_read_only_variable("s", "v", span())) is None
        assert diagnostics.report(error_unexpected_token("x", "y", span())) is None
        assert diagnostics.error_count == 2
        assert diagnostics.warning_count == 1
        assert [e.kind for e in diagnostics.errors] == [ErrorKind.VARIABLE_ACCESS, ErrorKind.SYNTAX]
