"""
Dicenic - an embeddable interpreter for tabletop-RPG dice scripts.

This module provides:
- Lexer: Tokenizes script source
- Parser: Builds an AST from tokens
- Interpreter: Evaluates scripts against attribute/role/system/dice pools
- Diagnostics: Recoverable errors and warnings instead of exceptions

Usage:
    from dicenic import execute_script

    result = execute_script('''
        bonus = $a力量 > 3 ? 2 : 0
        roll = 1d20 + bonus
        roll >= 15 ? "{$r名字} hits ({$roll})" : "{$r名字} misses"
    ''', {
        "attributes": {"力量": 5},
        "role": {"名字": "Aria"},
    }, seed=7)

    print(result.result, result.success)
    for warning in result.warnings:
        print(warning)

    # Or parse once and run many times
    program = parse_script('hp -= 1d6; hp')
    for _ in range(3):
        print(run(program, {"locals": {"hp": 20}}).result)
"""

import logging

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
    SPECIAL_PREFIXES,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
    parse_script,
    validate_script,
)

from .ast import (
    # Base
    AstNode,
    # Expressions
    Expression,
    NumberLiteral,
    StringLiteral,
    DiceLiteral,
    Identifier,
    SpecialVariable,
    BinaryOp,
    UnaryOp,
    LogicalOp,
    TernaryOp,
    Assignment,
    Grouping,
    # Statements
    Statement,
    ExpressionStatement,
    Block,
    IfStatement,
    WhileStatement,
    Program,
    # Helpers
    format_ast,
    print_ast,
)

from .errors import (
    Diagnostic,
    ErrorSeverity,
    ErrorKind,
    DicenicError,
    ScriptSyntaxError,
    LexerError,
    ParserError,
    ScriptRuntimeError,
    ErrorLimitExceeded,
    TypeConversionError,
    VariableAccessError,
    DiceError,
    LoopError,
)

from .runtime import (
    # Interpreter
    Interpreter,
    ScriptResult,
    run,
    execute_script,
    # Values
    Value,
    ValueKind,
    number_val,
    string_val,
    dice_val,
    # Conversion
    to_number,
    to_string,
    to_boolean,
    to_value,
    from_value,
    # Dice
    DiceCalculator,
    # Context
    ExecutionContext,
    create_context,
    # Interpolation
    interpolate,
    # Diagnostics
    Diagnostics,
    DiagnosticsConfig,
    create_diagnostics,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',
    'SPECIAL_PREFIXES',
    # Lexer
    'Lexer',
    'tokenize',
    # Parser
    'Parser',
    'parse',
    'parse_script',
    'validate_script',
    # AST
    'AstNode',
    'Expression',
    'NumberLiteral',
    'StringLiteral',
    'DiceLiteral',
    'Identifier',
    'SpecialVariable',
    'BinaryOp',
    'UnaryOp',
    'LogicalOp',
    'TernaryOp',
    'Assignment',
    'Grouping',
    'Statement',
    'ExpressionStatement',
    'Block',
    'IfStatement',
    'WhileStatement',
    'Program',
    'format_ast',
    'print_ast',
    # Errors
    'Diagnostic',
    'ErrorSeverity',
    'ErrorKind',
    'DicenicError',
    'ScriptSyntaxError',
    'LexerError',
    'ParserError',
    'ScriptRuntimeError',
    'ErrorLimitExceeded',
    'TypeConversionError',
    'VariableAccessError',
    'DiceError',
    'LoopError',
    # Runtime
    'Interpreter',
    'ScriptResult',
    'run',
    'execute_script',
    'Value',
    'ValueKind',
    'number_val',
    'string_val',
    'dice_val',
    'to_number',
    'to_string',
    'to_boolean',
    'to_value',
    'from_value',
    'DiceCalculator',
    'ExecutionContext',
    'create_context',
    'interpolate',
    'Diagnostics',
    'DiagnosticsConfig',
    'create_diagnostics',
]
