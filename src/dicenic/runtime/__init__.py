"""
Dicenic runtime - tree-walking interpreter for dice scripts.

This module provides:
- Interpreter: Executes a parsed script against variable pools
- Value: Tagged runtime values (number, string, dice)
- Type conversion between value kinds and host values
- DiceCalculator: NdM dice parsing and rolling
- ExecutionContext: Local and special-variable pools
- String escape decoding and {$name} interpolation
- Diagnostics: Error/warning collection and recovery policy
"""

from .values import (
    Value,
    ValueKind,
    NUMERIC_KINDS,
    number_val,
    string_val,
    dice_val,
    bool_val,
    ZERO,
    ONE,
    EMPTY,
)

from .convert import (
    parse_number,
    is_numeric_text,
    format_number,
    to_number,
    to_string,
    to_boolean,
    default_value,
    implicit_convert,
    validate_kind,
    to_value,
    from_value,
    coerce_for_operator,
)

from .dice import (
    DiceCalculator,
    is_dice_expression,
    MAX_DICE_COUNT,
    MAX_DICE_SIDES,
)

from .context import (
    ExecutionContext,
    create_context,
    WRITE_PERMISSIONS,
    SPECIAL_DEFAULTS,
)

from .interpolate import (
    decode_escapes,
    decode_literal,
    has_interpolation,
    interpolation_variables,
    escape_interpolation,
    unescape_interpolation,
    validate_interpolation_syntax,
    interpolate,
)

from .diagnostics import (
    Diagnostics,
    DiagnosticsConfig,
    create_diagnostics,
)

from .interpreter import (
    Interpreter,
    ScriptResult,
    run,
    execute_script,
    DEFAULT_MAX_LOOP_ITERATIONS,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'NUMERIC_KINDS',
    'number_val',
    'string_val',
    'dice_val',
    'bool_val',
    'ZERO',
    'ONE',
    'EMPTY',
    # Conversion
    'parse_number',
    'is_numeric_text',
    'format_number',
    'to_number',
    'to_string',
    'to_boolean',
    'default_value',
    'implicit_convert',
    'validate_kind',
    'to_value',
    'from_value',
    'coerce_for_operator',
    # Dice
    'DiceCalculator',
    'is_dice_expression',
    'MAX_DICE_COUNT',
    'MAX_DICE_SIDES',
    # Context
    'ExecutionContext',
    'create_context',
    'WRITE_PERMISSIONS',
    'SPECIAL_DEFAULTS',
    # Interpolation
    'decode_escapes',
    'decode_literal',
    'has_interpolation',
    'interpolation_variables',
    'escape_interpolation',
    'unescape_interpolation',
    'validate_interpolation_syntax',
    'interpolate',
    # Diagnostics
    'Diagnostics',
    'DiagnosticsConfig',
    'create_diagnostics',
    # Interpreter
    'Interpreter',
    'ScriptResult',
    'run',
    'execute_script',
    'DEFAULT_MAX_LOOP_ITERATIONS',
]
