"""
Script errors, warnings and their diagnostic records.

Error code ranges:
- E0xx: Lexer errors (Syntax)
- E1xx: Parser errors (Syntax)
- E2xx: Type conversion errors
- W3xx: String interpolation warnings
- E4xx: Runtime errors (W4xx: runtime warnings)
- E5xx: Variable access errors
- W6xx: Dice warnings
- W7xx: Loop warnings
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, List, Optional
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


class ErrorKind(Enum):
    """The script error taxonomy."""
    SYNTAX = "SyntaxError"
    RUNTIME = "RuntimeError"
    TYPE_CONVERSION = "TypeConversionError"
    VARIABLE_ACCESS = "VariableAccessError"
    DICE = "DiceError"
    LOOP = "LoopError"


@dataclass
class Diagnostic:
    """A single diagnostic message (error or warning)."""
    code: str                       # E001, E401, W601, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)  # kind-specific details

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        header = f"{self.severity.value}[{self.code}]: {self.message}"
        if self.span.start.is_known:
            header = f"{self.span.start}: {header}"
        parts.append(header)

        # Source line with caret
        if show_source and self.source_line is not None and self.span.start.is_known:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = max(1, self.span.start.column)
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for note in self.notes:
            parts.append(f"    = note: {note}")
        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def as_warning(self) -> "Diagnostic":
        """Copy of this diagnostic downgraded to a warning (E201 -> W201)."""
        code = "W" + self.code[1:] if self.code.startswith("E") else self.code
        return replace(self, code=code, severity=ErrorSeverity.WARNING,
                       hints=list(self.hints), notes=list(self.notes))

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            },
            "hints": self.hints,
            "notes": self.notes,
        }


class DicenicError(Exception):
    """Base exception for script errors."""

    kind: ErrorKind = ErrorKind.RUNTIME

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def line(self) -> int:
        return self.diagnostic.span.start.line

    @property
    def column(self) -> int:
        return self.diagnostic.span.start.column

    def locate(self, span: SourceSpan, source_line: Optional[str] = None) -> "DicenicError":
        """Attach a source position if the error was raised without one."""
        if not self.diagnostic.span.start.is_known:
            self.diagnostic.span = span
        if self.diagnostic.source_line is None:
            self.diagnostic.source_line = source_line
        return self

    def details(self) -> dict:
        """Kind-specific fields."""
        return {}

    def to_json(self) -> dict:
        data = self.diagnostic.to_json()
        data["kind"] = self.kind.value
        data.update(self.details())
        return data


class ScriptSyntaxError(DicenicError):
    """Error in the script text (E0xx, E1xx)."""
    kind = ErrorKind.SYNTAX


class LexerError(ScriptSyntaxError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(ScriptSyntaxError):
    """Error during parsing (E1xx)."""
    pass


class ScriptRuntimeError(DicenicError):
    """General evaluation failure (E4xx)."""
    kind = ErrorKind.RUNTIME

    def __init__(self, diagnostic: Diagnostic, context: Optional[str] = None):
        super().__init__(diagnostic)
        self.context = context
        if context:
            diagnostic.notes.append(f"Context: {context}")

    def details(self) -> dict:
        return {"context": self.context}


class ErrorLimitExceeded(ScriptRuntimeError):
    """Raised when the error ceiling is crossed, regardless of recovery."""
    pass


class TypeConversionError(DicenicError):
    """A coercion that had to fall back to a default value (E2xx)."""
    kind = ErrorKind.TYPE_CONVERSION

    def __init__(self, diagnostic: Diagnostic, source_kind: str, target_kind: str,
                 source_value: Any):
        super().__init__(diagnostic)
        self.source_kind = source_kind
        self.target_kind = target_kind
        self.source_value = source_value
        diagnostic.notes.append(f"Failed to convert {source_kind}({source_value!r}) to {target_kind}")

    def details(self) -> dict:
        return {
            "source_kind": self.source_kind,
            "target_kind": self.target_kind,
            "source_value": self.source_value,
        }


class VariableAccessError(DicenicError):
    """Permission violation or malformed special variable (E5xx)."""
    kind = ErrorKind.VARIABLE_ACCESS

    def __init__(self, diagnostic: Diagnostic, variable_name: str, access: str):
        super().__init__(diagnostic)
        self.variable_name = variable_name
        self.access = access  # "read" or "write"
        diagnostic.notes.append(f"Variable: {variable_name}, Access: {access}")

    def details(self) -> dict:
        return {"variable_name": self.variable_name, "access": self.access}


class DiceError(DicenicError):
    """Malformed or out-of-bounds dice expression (W6xx)."""
    kind = ErrorKind.DICE

    def __init__(self, diagnostic: Diagnostic, expression: str):
        super().__init__(diagnostic)
        self.expression = expression
        diagnostic.notes.append(f"Dice Expression: {expression}")

    def details(self) -> dict:
        return {"expression": self.expression}


class LoopError(DicenicError):
    """Loop iteration ceiling reached (W7xx)."""
    kind = ErrorKind.LOOP

    def __init__(self, diagnostic: Diagnostic, loop_type: str, max_iterations: int):
        super().__init__(diagnostic)
        self.loop_type = loop_type
        self.max_iterations = max_iterations
        diagnostic.notes.append(f"Loop Type: {loop_type}, Max Iterations: {max_iterations}")

    def details(self) -> dict:
        return {"loop_type": self.loop_type, "max_iterations": self.max_iterations}


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["strings cannot span lines; use \\n for a line break"],
    )
    return LexerError(diag)


def error_unterminated_comment(span: SourceSpan, source_line: str = None) -> LexerError:
    """E003: Unterminated block comment."""
    diag = Diagnostic(
        code="E003",
        message="unterminated block comment",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_invalid_special_prefix(prefix: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E004: '$' not followed by a known prefix."""
    found = f"'{prefix}'" if prefix else "nothing"
    diag = Diagnostic(
        code="E004",
        message=f"invalid special variable prefix: '$' followed by {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["special variables start with $a, $r, $s or $d"],
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of file."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of file, expected {expected}",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ParserError(diag)


def error_invalid_expression(found: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Token cannot start an expression."""
    diag = Diagnostic(
        code="E103",
        message=f"invalid expression, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_invalid_assignment_target(operator: str, span: SourceSpan,
                                    source_line: str = None) -> ParserError:
    """E104: Assignment to something that is not a variable."""
    diag = Diagnostic(
        code="E104",
        message=f"invalid assignment target for '{operator}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["only variables and special variables can be assigned"],
    )
    return ParserError(diag)


# --- Type conversion error codes ---

def error_type_conversion(source_kind: str, target_kind: str, source_value: Any,
                          span: SourceSpan, source_line: str = None) -> TypeConversionError:
    """E201: Value cannot be converted, default used instead."""
    diag = Diagnostic(
        code="E201",
        message=f"cannot convert {source_kind} to {target_kind}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return TypeConversionError(diag, source_kind, target_kind, source_value)


# --- Interpolation warning codes ---

def warning_empty_interpolation(span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W301: '{$}' with nothing inside."""
    return Diagnostic(
        code="W301",
        message="empty interpolation '{$}' replaced with an empty string",
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
    )


def warning_malformed_interpolation(body: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W302: Interpolation body that is not a variable name."""
    return Diagnostic(
        code="W302",
        message=f"malformed interpolation '{{${body}}}' replaced with an empty string",
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
        hints=["only variable names can be interpolated"],
    )


# --- Runtime error codes ---

def error_invalid_left_hand_side(node_kind: str, span: SourceSpan,
                                 source_line: str = None) -> ScriptRuntimeError:
    """E401: Assignment target is not a variable."""
    diag = Diagnostic(
        code="E401",
        message=f"invalid left-hand side in assignment: {node_kind}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ScriptRuntimeError(diag, context="assignment")


def error_division_by_zero(operator: str, span: SourceSpan,
                           source_line: str = None) -> ScriptRuntimeError:
    """E402: Division or modulo by zero under strict division."""
    diag = Diagnostic(
        code="E402",
        message=f"division by zero in '{operator}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ScriptRuntimeError(diag, context="arithmetic")


def warning_division_by_zero(operator: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W402: Division or modulo by zero resolved to 0."""
    return Diagnostic(
        code="W402",
        message=f"division by zero in '{operator}', result is 0",
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
    )


def error_unknown_prefix(prefix: str, span: SourceSpan, source_line: str = None) -> ScriptRuntimeError:
    """E403: Special variable prefix outside a/r/s/d."""
    diag = Diagnostic(
        code="E403",
        message=f"unknown special variable prefix '{prefix}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ScriptRuntimeError(diag, context="special variable lookup")


def error_too_many_errors(count: int, span: SourceSpan) -> ErrorLimitExceeded:
    """E404: Error ceiling crossed."""
    diag = Diagnostic(
        code="E404",
        message=f"too many errors ({count}), stopping execution",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ErrorLimitExceeded(diag, context="error limit exceeded")


# --- Variable access error codes ---

def error_read_only_variable(prefix: str, name: str, span: SourceSpan,
                             source_line: str = None) -> VariableAccessError:
    """E501: Write to a read-only special pool."""
    diag = Diagnostic(
        code="E501",
        message=f"cannot write read-only special variable '${prefix}{name}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["$r and $s variables are supplied by the host and cannot be assigned"],
    )
    return VariableAccessError(diag, f"${prefix}{name}", "write")


def error_malformed_special_variable(prefix: str, access: str, span: SourceSpan,
                                     source_line: str = None) -> VariableAccessError:
    """E502: Special variable with no name after the prefix."""
    diag = Diagnostic(
        code="E502",
        message=f"special variable '${prefix}' has no name",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=[f"write the variable name right after the prefix, e.g. ${prefix}hp"],
    )
    return VariableAccessError(diag, f"${prefix}", access)


# --- Dice warning codes ---

def warning_invalid_dice(expression: str, reason: str, span: SourceSpan,
                         source_line: str = None) -> DiceError:
    """W601: Dice expression that cannot be rolled."""
    diag = Diagnostic(
        code="W601",
        message=f"invalid dice expression '{expression}': {reason}",
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
    )
    return DiceError(diag, expression)


# --- Loop warning codes ---

def warning_loop_limit(loop_type: str, max_iterations: int, span: SourceSpan,
                       source_line: str = None) -> LoopError:
    """W701: Loop stopped at the iteration ceiling."""
    diag = Diagnostic(
        code="W701",
        message=f"{loop_type} loop exceeded maximum iteration count ({max_iterations})",
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
    )
    return LoopError(diag, loop_type, max_iterations)
