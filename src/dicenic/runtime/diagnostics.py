"""
Error and warning collection with the recovery policy.

Every condition the interpreter runs into is reported here. The policy
decides whether it becomes an error or a warning, whether execution
continues with a fallback value, and when to give up:

- Syntax, Runtime, VariableAccess: error; raised when recovery is off
- TypeConversion: warning + default value, unless use_default_on_type_error
  is off, in which case it is handled like Runtime
- Dice: warning, resolves to 0
- Loop: warning, the loop stops
- More than max_errors errors: ErrorLimitExceeded, always raised
"""

import logging
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List, Mapping, Optional

from ..tokens import SourceSpan
from ..errors import (
    Diagnostic,
    DicenicError,
    ErrorKind,
    TypeConversionError,
    error_too_many_errors,
)
from .values import Value, ValueKind, number_val
from .convert import default_value

logger = logging.getLogger("dicenic.diagnostics")

_CAMEL_KEYS = {
    "enableRecovery": "enable_recovery",
    "logWarnings": "log_warnings",
    "maxErrors": "max_errors",
    "useDefaultOnTypeError": "use_default_on_type_error",
    "strictDivision": "strict_division",
}


@dataclass
class DiagnosticsConfig:
    """Recovery and reporting settings."""
    enable_recovery: bool = True
    log_warnings: bool = True           # mirror diagnostics to the dicenic logger
    max_errors: int = 10
    use_default_on_type_error: bool = True
    strict_division: bool = False       # division by zero is an error, not a warning

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "DiagnosticsConfig":
        """Build from a mapping with snake_case or camelCase keys."""
        config = cls()
        if data:
            config.update(**data)
        return config

    def update(self, **changes: Any) -> None:
        """Apply option changes. Nothing is changed if any of them is invalid."""
        known = {f.name for f in fields(self)}
        merged = {}
        for key, value in changes.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown diagnostics option: {key!r}")
            merged[name] = value
        max_errors = merged.get("max_errors", self.max_errors)
        if isinstance(max_errors, bool) or not isinstance(max_errors, int) or max_errors < 0:
            raise ValueError(f"max_errors must be a non-negative integer, got {max_errors!r}")
        for name, value in merged.items():
            setattr(self, name, value)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Diagnostics:
    """
    Collects errors and warnings for one execution.

    Errors are kept as DicenicError instances whatever the recovery mode;
    warnings are kept as formatted strings (and as Diagnostic records in
    `warning_diagnostics`).
    """

    def __init__(self, config: Optional[DiagnosticsConfig] = None, source: Optional[str] = None):
        self.config = config or DiagnosticsConfig()
        self._errors: List[DicenicError] = []
        self._warnings: List[Diagnostic] = []
        self.source_lines: List[str] = source.splitlines() if source else []

    # --- queries ---

    @property
    def errors(self) -> List[DicenicError]:
        return list(self._errors)

    @property
    def warnings(self) -> List[str]:
        return [d.format(show_source=False) for d in self._warnings]

    @property
    def warning_diagnostics(self) -> List[Diagnostic]:
        return list(self._warnings)

    @property
    def error_count(self) -> int:
        return len(self._errors)

    @property
    def warning_count(self) -> int:
        return len(self._warnings)

    @property
    def has_errors(self) -> bool:
        return len(self._errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self._warnings) > 0

    def error_messages(self) -> List[str]:
        return [e.diagnostic.format(show_source=False) for e in self._errors]

    def summary(self) -> str:
        """One-line count of errors and warnings."""
        if not self._errors and not self._warnings:
            return "no errors or warnings"
        return f"{len(self._errors)} error(s), {len(self._warnings)} warning(s)"

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display, errors first."""
        parts = [e.diagnostic.format(show_source) for e in self._errors]
        parts.extend(d.format(show_source) for d in self._warnings)
        if self._errors or self._warnings:
            parts.append(self.summary())
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        return {
            "errors": [e.to_json() for e in self._errors],
            "warnings": [d.to_json() for d in self._warnings],
            "error_count": len(self._errors),
            "warning_count": len(self._warnings),
        }

    def clear(self) -> None:
        self._errors.clear()
        self._warnings.clear()

    def update_config(self, **changes: Any) -> None:
        self.config.update(**changes)

    # --- recording ---

    def _source_line(self, span: SourceSpan) -> Optional[str]:
        line_num = span.start.line
        if 1 <= line_num <= len(self.source_lines):
            return self.source_lines[line_num - 1]
        return None

    def _attach_source(self, diagnostic: Diagnostic) -> None:
        if diagnostic.source_line is None:
            diagnostic.source_line = self._source_line(diagnostic.span)

    def add_error(self, error: DicenicError) -> None:
        """Record an error, enforcing the error ceiling."""
        if len(self._errors) >= self.config.max_errors:
            raise error_too_many_errors(len(self._errors) + 1, error.diagnostic.span)
        self._attach_source(error.diagnostic)
        self._errors.append(error)
        if self.config.log_warnings:
            logger.error("%s", error.diagnostic.format(show_source=False))

    def warn(self, diagnostic: Diagnostic) -> None:
        """Record a warning."""
        self._attach_source(diagnostic)
        self._warnings.append(diagnostic)
        if self.config.log_warnings:
            logger.warning("%s", diagnostic.format(show_source=False))

    def _escalate(self, error: DicenicError) -> None:
        self.add_error(error)
        if not self.config.enable_recovery:
            raise error

    # --- policy per error kind ---

    def handle_syntax_error(self, error: DicenicError) -> None:
        self._escalate(error)

    def handle_runtime_error(self, error: DicenicError) -> None:
        self._escalate(error)

    def handle_variable_access_error(self, error: DicenicError) -> None:
        self._escalate(error)

    def handle_type_conversion_error(self, error: TypeConversionError,
                                     target_kind: ValueKind = ValueKind.NUMBER) -> Value:
        """Return the default for target_kind, recording a warning or an error."""
        if self.config.use_default_on_type_error:
            self.warn(error.diagnostic.as_warning())
        else:
            self._escalate(error)
        return default_value(target_kind)

    def handle_dice_error(self, error: DicenicError) -> Value:
        self.warn(error.diagnostic)
        return number_val(0)

    def handle_loop_error(self, error: DicenicError) -> None:
        self.warn(error.diagnostic)

    def report(self, error: DicenicError) -> Optional[Value]:
        """Dispatch on the error's kind. Returns the fallback value, if the kind has one."""
        if error.kind == ErrorKind.SYNTAX:
            self.handle_syntax_error(error)
        elif error.kind == ErrorKind.RUNTIME:
            self.handle_runtime_error(error)
        elif error.kind == ErrorKind.VARIABLE_ACCESS:
            self.handle_variable_access_error(error)
        elif error.kind == ErrorKind.TYPE_CONVERSION:
            return self.handle_type_conversion_error(error)
        elif error.kind == ErrorKind.DICE:
            return self.handle_dice_error(error)
        elif error.kind == ErrorKind.LOOP:
            self.handle_loop_error(error)
        else:
            raise ValueError(f"Unknown error kind: {error.kind}")
        return None


def create_diagnostics(config: Any = None, source: Optional[str] = None) -> Diagnostics:
    """Create a Diagnostics from a DiagnosticsConfig, a mapping, or None."""
    if config is None or isinstance(config, DiagnosticsConfig):
        return Diagnostics(config, source)
    return Diagnostics(DiagnosticsConfig.from_dict(config), source)
