"""
Recursive descent parser for Dicenic scripts.

Converts a token stream into an Abstract Syntax Tree (AST).
Statements are separated by newlines or semicolons; blocks use braces.
"""

from typing import List, Optional, Tuple
from .tokens import (
    Token, TokenType, SourceSpan, ASSIGNMENT_OPERATORS, operator_symbol,
)
from .ast import (
    # Expressions
    Expression, NumberLiteral, StringLiteral, DiceLiteral, Identifier,
    SpecialVariable, BinaryOp, UnaryOp, LogicalOp, TernaryOp, Assignment,
    Grouping,
    # Statements
    Statement, ExpressionStatement, Block, IfStatement, WhileStatement,
    Program,
)
from .errors import (
    ScriptSyntaxError,
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_expression,
    error_invalid_assignment_target,
)


class Parser:
    """
    Recursive descent parser for Dicenic scripts.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    Expression precedence, lowest first:
        ?:          (ternary, right-associative)
        ||
        &&
        == !=
        < > <= >=
        + -
        * / %
        ! - +       (unary)
        = += -= *= /= %=   (assignment, right-hand side is a full expression)
        primary
    """

    # Binary operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
        TokenType.PERCENT: 6,
    }

    LOGICAL_OPERATORS = {TokenType.AND, TokenType.OR}

    def __init__(self, tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.source = source
        self.pos = 0
        self._lines = source.splitlines() if source is not None else []

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _previous(self) -> Optional[Token]:
        if self.pos == 0:
            return None
        return self.tokens[self.pos - 1]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        """Check if current token is any of given types."""
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _skip_newlines(self) -> None:
        """Skip any NEWLINE tokens."""
        while self._check(TokenType.NEWLINE):
            self._advance()

    def _skip_separators(self) -> None:
        """Skip NEWLINE and ';' tokens between statements."""
        while self._check_any(TokenType.NEWLINE, TokenType.SEMICOLON):
            self._advance()

    def _expect_statement_end(self) -> None:
        """A statement ends at a newline, ';', '}', EOF, or right after a '}'."""
        if self._check_any(TokenType.EOF, TokenType.RBRACE):
            return
        if self._match(TokenType.NEWLINE, TokenType.SEMICOLON):
            return
        previous = self._previous()
        if previous is not None and previous.type == TokenType.RBRACE:
            return
        self._error("newline or ';'")

    def _source_line(self, token: Token) -> Optional[str]:
        line_num = token.span.start.line
        if 1 <= line_num <= len(self._lines):
            return self._lines[line_num - 1]
        return None

    def _describe(self, token: Token) -> str:
        if token.type == TokenType.NEWLINE:
            return "end of line"
        if token.lexeme:
            return f"'{token.lexeme}'"
        return token.type.name

    def _error(self, expected: str) -> None:
        """Raise a parser error."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(
            expected, self._describe(token), token.span, self._source_line(token)
        )

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to current position."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression (ternary is the lowest level)."""
        return self._parse_ternary()

    def _parse_ternary(self) -> Expression:
        """Parse cond ? a : b (right-associative)."""
        condition = self._parse_binary_expr(0)

        if not self._match(TokenType.QUESTION):
            return condition

        self._skip_newlines()
        true_branch = self._parse_ternary()
        self._skip_newlines()
        self._consume(TokenType.COLON, "':' in conditional expression")
        self._skip_newlines()
        false_branch = self._parse_ternary()

        return TernaryOp(
            span=SourceSpan(condition.span.start, false_branch.span.end),
            condition=condition,
            true_branch=true_branch,
            false_branch=false_branch
        )

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary and logical expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            self._skip_newlines()
            right = self._parse_binary_expr(precedence + 1)
            span = SourceSpan(left.span.start, right.span.end)

            if op_token.type in self.LOGICAL_OPERATORS:
                if isinstance(left, LogicalOp) and left.operator == op_token.type:
                    left = LogicalOp(span=span, operator=left.operator,
                                     operands=left.operands + [right])
                else:
                    left = LogicalOp(span=span, operator=op_token.type,
                                     operands=[left, right])
            else:
                left = BinaryOp(
                    span=span,
                    left=left,
                    operator=op_token.type,
                    right=right
                )

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (!, -, +)."""
        if self._check_any(TokenType.NOT, TokenType.MINUS, TokenType.PLUS):
            op = self._advance()
            operand = self._parse_unary_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand
            )

        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse target op= expression, or fall through to a primary."""
        target = self._parse_primary_expr()

        if not self._check_any(*ASSIGNMENT_OPERATORS):
            return target

        op = self._current()
        if not isinstance(target, (Identifier, SpecialVariable)):
            raise error_invalid_assignment_target(
                operator_symbol(op.type), op.span, self._source_line(op)
            )
        self._advance()
        self._skip_newlines()
        value = self._parse_expression()

        return Assignment(
            span=SourceSpan(target.span.start, value.span.end),
            target=target,
            operator=op.type,
            value=value
        )

    def _parse_primary_expr(self) -> Expression:
        """Parse literals, names and parenthesized expressions."""
        token = self._current()

        if token.type == TokenType.NUMBER_LITERAL:
            self._advance()
            return NumberLiteral(span=token.span, value=token.value)

        if token.type == TokenType.STRING_LITERAL:
            self._advance()
            return StringLiteral(span=token.span, raw=token.value)

        if token.type == TokenType.DICE_LITERAL:
            self._advance()
            return DiceLiteral(span=token.span, expression=token.value)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.SPECIAL_VARIABLE:
            self._advance()
            prefix, name = token.value
            return SpecialVariable(span=token.span, prefix=prefix, name=name)

        if token.type == TokenType.LPAREN:
            start = self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')'")
            return Grouping(span=self._span_from(start), expression=expr)

        if token.type == TokenType.EOF:
            raise error_unexpected_eof("expression", token.span)
        raise error_invalid_expression(
            self._describe(token), token.span, self._source_line(token)
        )

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a single statement (without its terminator)."""
        if self._check(TokenType.IF):
            return self._parse_if_statement()
        if self._check(TokenType.WHILE):
            return self._parse_while_statement()
        if self._check(TokenType.LBRACE):
            return self._parse_block()

        expr = self._parse_expression()
        return ExpressionStatement(span=expr.span, expression=expr)

    def _parse_condition(self) -> Expression:
        """Parse '(' expression ')' after if/while."""
        self._consume(TokenType.LPAREN, "'('")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')'")
        return condition

    def _parse_if_statement(self) -> IfStatement:
        """Parse if (cond) stmt [else stmt]."""
        start = self._advance()  # consume 'if'
        condition = self._parse_condition()
        self._skip_newlines()
        then_branch = self._parse_statement()

        # 'else' may sit on a following line
        offset = 0
        while self._peek(offset).type in (TokenType.NEWLINE, TokenType.SEMICOLON):
            offset += 1

        else_branch = None
        if self._peek(offset).type == TokenType.ELSE:
            self.pos += offset
            self._advance()  # consume 'else'
            self._skip_newlines()
            if self._check(TokenType.IF):
                else_branch = self._parse_if_statement()
            else:
                else_branch = self._parse_statement()

        return IfStatement(
            span=self._span_from(start),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch
        )

    def _parse_while_statement(self) -> WhileStatement:
        """Parse while (cond) stmt."""
        start = self._advance()  # consume 'while'
        condition = self._parse_condition()
        self._skip_newlines()
        body = self._parse_statement()

        return WhileStatement(
            span=self._span_from(start),
            condition=condition,
            body=body
        )

    def _parse_statement_list(self, terminator: TokenType) -> List[Statement]:
        """Parse statements until the terminator token (not consumed)."""
        statements = []
        self._skip_separators()
        while not self._check(terminator) and not self._is_at_end():
            statements.append(self._parse_statement())
            self._expect_statement_end()
            self._skip_separators()
        return statements

    def _parse_block(self) -> Block:
        """Parse a brace-delimited block."""
        start = self._consume(TokenType.LBRACE, "'{'")
        statements = self._parse_statement_list(TokenType.RBRACE)
        self._consume(TokenType.RBRACE, "'}'")

        return Block(span=self._span_from(start), statements=statements)

    def parse_program(self) -> Program:
        """Parse a complete script."""
        start = self._current()
        statements = self._parse_statement_list(TokenType.EOF)
        if not self._is_at_end():
            self._error("end of file")
        return Program(span=self._span_from(start), statements=statements)


def parse(tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages
        source: Optional original source code for caret diagnostics

    Returns:
        Parsed Program AST

    Raises:
        ParserError: If parsing fails
    """
    parser = Parser(tokens, filename, source)
    return parser.parse_program()


def parse_script(source: str, filename: Optional[str] = None) -> Program:
    """
    Tokenize and parse a script in one step.

    Raises:
        LexerError: If tokenization fails
        ParserError: If parsing fails
    """
    from .lexer import tokenize
    tokens = tokenize(source, filename)
    return parse(tokens, filename, source)


def validate_script(source: str, filename: Optional[str] = None) -> Tuple[bool, List[str]]:
    """Check that a script parses. Returns (ok, formatted errors)."""
    try:
        parse_script(source, filename)
    except ScriptSyntaxError as e:
        return False, [e.diagnostic.format()]
    return True, []
