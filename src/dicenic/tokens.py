"""
Token types for the Dicenic script lexer.

Token categories follow the diagnostic code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the Dicenic lexer."""

    # --- Literals ---
    NUMBER_LITERAL = auto()     # 42, 3.5
    STRING_LITERAL = auto()     # "hello {$name}", 'text'
    DICE_LITERAL = auto()       # 3d6, 1D20

    # --- Names ---
    IDENTIFIER = auto()         # hp, 回合数
    SPECIAL_VARIABLE = auto()   # $a力量, $rname

    # --- Keywords ---
    IF = auto()
    ELSE = auto()
    WHILE = auto()

    # --- Arithmetic ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %

    # --- Comparison ---
    EQ = auto()                 # ==
    NE = auto()                 # !=
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=

    # --- Logical ---
    AND = auto()                # &&
    OR = auto()                 # ||
    NOT = auto()                # !

    # --- Assignment ---
    ASSIGN = auto()             # =
    PLUS_ASSIGN = auto()        # +=
    MINUS_ASSIGN = auto()       # -=
    STAR_ASSIGN = auto()        # *=
    SLASH_ASSIGN = auto()       # /=
    PERCENT_ASSIGN = auto()     # %=

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    SEMICOLON = auto()          # ;
    QUESTION = auto()           # ?
    COLON = auto()              # :

    # --- Structure ---
    NEWLINE = auto()            # statement separator
    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"

    @property
    def is_known(self) -> bool:
        return self.line > 0


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"

    @classmethod
    def at(cls, line: int, column: int, filename: Optional[str] = None) -> "SourceSpan":
        """Zero-width span at a line/column, for hand-built trees."""
        loc = SourceLocation(line, column, 0, filename)
        return cls(loc, loc)

    @classmethod
    def unknown(cls) -> "SourceSpan":
        """Span for nodes and conditions without a source position."""
        return cls.at(0, 0)


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # float for numbers, text for strings/dice/names
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER_LITERAL, TokenType.STRING_LITERAL,
                         TokenType.DICE_LITERAL, TokenType.IDENTIFIER,
                         TokenType.SPECIAL_VARIABLE):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


KEYWORDS: dict[str, TokenType] = {
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
}

# Prefix letters accepted after '$'
SPECIAL_PREFIXES = ("a", "r", "s", "d")

ASSIGNMENT_OPERATORS = frozenset({
    TokenType.ASSIGN,
    TokenType.PLUS_ASSIGN,
    TokenType.MINUS_ASSIGN,
    TokenType.STAR_ASSIGN,
    TokenType.SLASH_ASSIGN,
    TokenType.PERCENT_ASSIGN,
})

# Compound assignment -> the binary operator it applies
COMPOUND_OPERATORS: dict[TokenType, TokenType] = {
    TokenType.PLUS_ASSIGN: TokenType.PLUS,
    TokenType.MINUS_ASSIGN: TokenType.MINUS,
    TokenType.STAR_ASSIGN: TokenType.STAR,
    TokenType.SLASH_ASSIGN: TokenType.SLASH,
    TokenType.PERCENT_ASSIGN: TokenType.PERCENT,
}

OPERATOR_SYMBOLS: dict[TokenType, str] = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.AND: "&&",
    TokenType.OR: "||",
    TokenType.NOT: "!",
    TokenType.ASSIGN: "=",
    TokenType.PLUS_ASSIGN: "+=",
    TokenType.MINUS_ASSIGN: "-=",
    TokenType.STAR_ASSIGN: "*=",
    TokenType.SLASH_ASSIGN: "/=",
    TokenType.PERCENT_ASSIGN: "%=",
}


def operator_symbol(token_type: TokenType) -> str:
    """Source spelling of an operator token type."""
    return OPERATOR_SYMBOLS.get(token_type, token_type.name)
