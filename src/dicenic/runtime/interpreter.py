"""
Tree-walking interpreter for Dicenic scripts.

Evaluates AST nodes against an ExecutionContext. The value of the last
executed expression statement is the script's result. Conditions that a
script can trigger (bad dice, division by zero, read-only writes, ...)
go to Diagnostics, which decides whether execution continues.
"""

import logging
import math
import random
import time
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from .values import Value, ValueKind, number_val, string_val, bool_val
from .convert import (
    to_number, to_string, to_boolean, coerce_for_operator, fails_numeric_conversion,
    ARITHMETIC_OPERATORS, EQUALITY_OPERATORS, ORDERING_OPERATORS,
)
from .context import ExecutionContext, create_context, SPECIAL_DEFAULTS, WRITE_PERMISSIONS
from .dice import DiceCalculator
from .interpolate import decode_literal, interpolate
from .diagnostics import Diagnostics, DiagnosticsConfig, create_diagnostics

from ..ast import (
    Program, Statement, Block, IfStatement, WhileStatement, ExpressionStatement,
    Expression, NumberLiteral, StringLiteral, DiceLiteral, Identifier,
    SpecialVariable, BinaryOp, UnaryOp, LogicalOp, TernaryOp, Assignment, Grouping,
)
from ..errors import (
    DicenicError,
    DiceError,
    ScriptSyntaxError,
    error_type_conversion,
    error_invalid_left_hand_side,
    error_division_by_zero,
    warning_division_by_zero,
    error_unknown_prefix,
    error_read_only_variable,
    error_malformed_special_variable,
    warning_loop_limit,
)
from ..tokens import TokenType, COMPOUND_OPERATORS, operator_symbol

logger = logging.getLogger("dicenic.interpreter")

DEFAULT_MAX_LOOP_ITERATIONS = 10000


@dataclass
class ScriptResult:
    """Result of running a script."""
    result: str
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    success: bool = True
    diagnostics: Optional[Diagnostics] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        return {
            "result": self.result,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "success": self.success,
        }


class Interpreter:
    """
    Tree-walking interpreter for Dicenic scripts.

    Evaluates AST nodes by dispatching to type-specific methods. One
    interpreter instance serves one execution at a time; use separate
    instances (and contexts) to run scripts in parallel.
    """

    def __init__(
        self,
        context: Optional[ExecutionContext] = None,
        diagnostics: Optional[Diagnostics] = None,
        dice: Optional[DiceCalculator] = None,
        max_loop_iterations: int = DEFAULT_MAX_LOOP_ITERATIONS,
    ):
        self.context = context if context is not None else ExecutionContext()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.dice = dice if dice is not None else DiceCalculator()
        self.max_loop_iterations = max_loop_iterations
        self.last_value: Value = number_val(0)

    def interpret(self, program: Program) -> str:
        """Run a program and return the text of its last value."""
        self.last_value = number_val(0)
        for stmt in program.statements:
            self._execute_statement(stmt)
        return to_string(self.last_value)

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statement(self, stmt: Statement) -> None:
        """Execute a statement."""
        if isinstance(stmt, ExpressionStatement):
            self.last_value = self._evaluate(stmt.expression)
        elif isinstance(stmt, Block):
            for body_stmt in stmt.statements:
                self._execute_statement(body_stmt)
        elif isinstance(stmt, IfStatement):
            self._execute_if_statement(stmt)
        elif isinstance(stmt, WhileStatement):
            self._execute_while(stmt)
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_if_statement(self, stmt: IfStatement) -> None:
        condition = self._evaluate(stmt.condition)
        if to_boolean(condition):
            self._execute_statement(stmt.then_branch)
        elif stmt.else_branch is not None:
            self._execute_statement(stmt.else_branch)

    def _execute_while(self, stmt: WhileStatement) -> None:
        """Execute a while loop, stopping at the iteration ceiling."""
        iterations = 0
        while True:
            condition = self._evaluate(stmt.condition)
            if not to_boolean(condition):
                break
            if iterations >= self.max_loop_iterations:
                self.diagnostics.handle_loop_error(
                    warning_loop_limit("while", self.max_loop_iterations, stmt.span)
                )
                break
            self._execute_statement(stmt.body)
            iterations += 1

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, NumberLiteral):
            return number_val(expr.value)
        elif isinstance(expr, StringLiteral):
            return self._eval_string(expr)
        elif isinstance(expr, DiceLiteral):
            return self._eval_dice(expr)
        elif isinstance(expr, Identifier):
            return self.context.get_local(expr.name)
        elif isinstance(expr, SpecialVariable):
            return self._eval_special_variable(expr)
        elif isinstance(expr, Grouping):
            return self._evaluate(expr.expression)
        elif isinstance(expr, BinaryOp):
            left = self._evaluate(expr.left)
            right = self._evaluate(expr.right)
            return self._apply_binary(expr.operator, left, right, expr)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr)
        elif isinstance(expr, LogicalOp):
            return self._eval_logical_op(expr)
        elif isinstance(expr, TernaryOp):
            return self._eval_ternary(expr)
        elif isinstance(expr, Assignment):
            return self._eval_assignment(expr)
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_string(self, lit: StringLiteral) -> Value:
        """Decode escapes, then expand {$name} placeholders."""
        text, escaped = decode_literal(lit.raw)
        if "{$" in text:
            text = interpolate(text, self.context, self.diagnostics, lit.span, escaped)
        return string_val(text)

    def _eval_dice(self, lit: DiceLiteral) -> Value:
        """Roll a dice literal. Bad dice resolve to 0 with a warning."""
        try:
            return self.dice.evaluate(lit.expression)
        except DiceError as error:
            return self.diagnostics.handle_dice_error(error.locate(lit.span))

    def _eval_special_variable(self, var: SpecialVariable) -> Value:
        if not var.name:
            self.diagnostics.handle_variable_access_error(
                error_malformed_special_variable(var.prefix, "read", var.span)
            )
            return SPECIAL_DEFAULTS.get(var.prefix, number_val(0))
        try:
            return self.context.get_special(var.prefix, var.name, var.span)
        except DicenicError as error:
            self.diagnostics.report(error.locate(var.span))
            return number_val(0)

    def _numeric_operand(self, value: Value, node: Expression) -> Value:
        """Operand for arithmetic; text with no numeric prefix becomes the default."""
        if fails_numeric_conversion(value):
            error = error_type_conversion("string", "number", value.payload, node.span)
            return self.diagnostics.handle_type_conversion_error(error, ValueKind.NUMBER)
        return value

    def _apply_binary(self, op: TokenType, left: Value, right: Value, node: Expression) -> Value:
        """Apply a binary operator to two evaluated operands."""
        if op == TokenType.PLUS:
            left, right = coerce_for_operator(left, right, op)
            if left.is_string:
                return string_val(left.payload + right.payload)
            return number_val(left.payload + right.payload)

        if op in ARITHMETIC_OPERATORS:
            left = self._numeric_operand(left, node)
            right = self._numeric_operand(right, node)
            left, right = coerce_for_operator(left, right, op)
            a, b = left.payload, right.payload
            if op == TokenType.MINUS:
                return number_val(a - b)
            if op == TokenType.STAR:
                return number_val(a * b)
            if b == 0:
                return self._division_by_zero(op, node)
            if op == TokenType.SLASH:
                return number_val(a / b)
            if op == TokenType.PERCENT:
                # Truncated remainder: the sign follows the dividend
                return number_val(math.fmod(a, b))

        if op in EQUALITY_OPERATORS:
            left, right = coerce_for_operator(left, right, op)
            equal = left.payload == right.payload
            return bool_val(equal if op == TokenType.EQ else not equal)

        if op in ORDERING_OPERATORS:
            left, right = coerce_for_operator(left, right, op)
            a, b = left.payload, right.payload
            if op == TokenType.LT:
                return bool_val(a < b)
            if op == TokenType.GT:
                return bool_val(a > b)
            if op == TokenType.LE:
                return bool_val(a <= b)
            return bool_val(a >= b)

        raise RuntimeError(f"Unknown binary operator: {op}")

    def _division_by_zero(self, op: TokenType, node: Expression) -> Value:
        symbol = operator_symbol(op)
        if self.diagnostics.config.strict_division:
            self.diagnostics.handle_runtime_error(error_division_by_zero(symbol, node.span))
        else:
            self.diagnostics.warn(warning_division_by_zero(symbol, node.span))
        return number_val(0)

    def _eval_unary_op(self, op: UnaryOp) -> Value:
        """Evaluate a unary operation."""
        operand = self._evaluate(op.operand)

        if op.operator == TokenType.NOT:
            return bool_val(not to_boolean(operand))
        elif op.operator in (TokenType.MINUS, TokenType.PLUS):
            n = to_number(self._numeric_operand(operand, op))
            return number_val(-n if op.operator == TokenType.MINUS else n)
        else:
            raise RuntimeError(f"Unknown unary operator: {op.operator}")

    def _eval_logical_op(self, op: LogicalOp) -> Value:
        """Short-circuit && / || chains. The result is always 1 or 0."""
        if op.operator == TokenType.OR:
            for operand in op.operands:
                if to_boolean(self._evaluate(operand)):
                    return number_val(1)
            return number_val(0)
        elif op.operator == TokenType.AND:
            for operand in op.operands:
                if not to_boolean(self._evaluate(operand)):
                    return number_val(0)
            return number_val(1)
        else:
            raise RuntimeError(f"Unknown logical operator: {op.operator}")

    def _eval_ternary(self, expr: TernaryOp) -> Value:
        """Evaluate the condition and only the selected branch."""
        if to_boolean(self._evaluate(expr.condition)):
            return self._evaluate(expr.true_branch)
        return self._evaluate(expr.false_branch)

    def _eval_assignment(self, expr: Assignment) -> Value:
        """Evaluate = and compound assignments; the result is the assigned value."""
        target = expr.target
        if not isinstance(target, (Identifier, SpecialVariable)):
            value = self._evaluate(expr.value)
            self.diagnostics.handle_runtime_error(
                error_invalid_left_hand_side(type(target).__name__, target.span)
            )
            return value

        if expr.operator == TokenType.ASSIGN:
            value = self._evaluate(expr.value)
        elif expr.operator in COMPOUND_OPERATORS:
            current = self._evaluate(target)
            operand = self._evaluate(expr.value)
            value = self._apply_binary(COMPOUND_OPERATORS[expr.operator], current, operand, expr)
        else:
            raise RuntimeError(f"Unknown assignment operator: {expr.operator}")

        self._store(target, value)
        return value

    def _store(self, target: Union[Identifier, SpecialVariable], value: Value) -> None:
        """Write a variable, reporting denied writes instead of performing them."""
        if isinstance(target, Identifier):
            self.context.set_local(target.name, value)
            return

        if not target.name:
            self.diagnostics.handle_variable_access_error(
                error_malformed_special_variable(target.prefix, "write", target.span)
            )
            return

        if not self.context.can_write(target.prefix):
            if target.prefix in WRITE_PERMISSIONS:
                error = error_read_only_variable(target.prefix, target.name, target.span)
            else:
                error = error_unknown_prefix(target.prefix, target.span)
            self.diagnostics.report(error)
            return

        self.context.set_special(target.prefix, target.name, value, target.span)


# =============================================================================
# Embedding API
# =============================================================================

def _make_result(result: str, diagnostics: Diagnostics) -> ScriptResult:
    return ScriptResult(
        result=result,
        errors=diagnostics.error_messages(),
        warnings=diagnostics.warnings,
        success=not diagnostics.has_errors,
        diagnostics=diagnostics,
    )


def _make_context(pools: Union[ExecutionContext, Mapping[str, Any], None]) -> ExecutionContext:
    if isinstance(pools, ExecutionContext):
        return pools
    return create_context(pools)


def run(
    program: Program,
    pools: Union[ExecutionContext, Mapping[str, Any], None] = None,
    config: Union[DiagnosticsConfig, Mapping[str, Any], None] = None,
    *,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    max_loop_iterations: int = DEFAULT_MAX_LOOP_ITERATIONS,
    source: Optional[str] = None,
) -> ScriptResult:
    """
    Run a parsed program.

    Args:
        program: Program AST (from parse_script or built by hand)
        pools: An ExecutionContext, or a mapping accepted by create_context
        config: DiagnosticsConfig or a mapping of its fields
        rng / seed: randomness for dice rolls
        max_loop_iterations: while-loop ceiling
        source: Original source text, for caret diagnostics

    Returns:
        ScriptResult; success is False when any error was recorded

    Raises:
        DicenicError: only when recovery is disabled or the error
            ceiling is exceeded
    """
    context = _make_context(pools)
    diagnostics = create_diagnostics(config, source)
    interpreter = Interpreter(context, diagnostics, DiceCalculator(rng, seed), max_loop_iterations)

    started = time.perf_counter()
    result = interpreter.interpret(program)
    logger.debug("script finished in %.3f ms: %s",
                 (time.perf_counter() - started) * 1000, diagnostics.summary())
    return _make_result(result, diagnostics)


def execute_script(
    source: str,
    pools: Union[ExecutionContext, Mapping[str, Any], None] = None,
    config: Union[DiagnosticsConfig, Mapping[str, Any], None] = None,
    *,
    filename: Optional[str] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    max_loop_iterations: int = DEFAULT_MAX_LOOP_ITERATIONS,
) -> ScriptResult:
    """
    High-level API to parse and run a script in one call.

        from dicenic import execute_script

        result = execute_script('''
            attack = 1d20 + $a力量
            attack >= 15 ? "hit for {$attack}" : "miss"
        ''', {"attributes": {"力量": 3}}, seed=42)

        if result.success:
            print(result.result)
        else:
            print(result.errors)

    A lexer or parser error is recorded as a Syntax error and returned as
    an unsuccessful result with an empty result string (raised instead
    when recovery is disabled).
    """
    from ..parser import parse_script

    diagnostics = create_diagnostics(config, source)
    try:
        program = parse_script(source, filename)
    except ScriptSyntaxError as error:
        diagnostics.handle_syntax_error(error)
        return _make_result("", diagnostics)

    context = _make_context(pools)
    interpreter = Interpreter(context, diagnostics, DiceCalculator(rng, seed), max_loop_iterations)
    result = interpreter.interpret(program)
    return _make_result(result, diagnostics)
