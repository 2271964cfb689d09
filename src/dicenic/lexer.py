"""
Lexer for Dicenic scripts.

Converts source text into a stream of tokens for the parser.
Supports:
- Significant newlines (NEWLINE tokens) as statement separators
- Implicit line continuation inside parentheses
- Single-line comments (//) and block comments (/* */)
- String literals in single or double quotes (escapes kept raw)
- Number literals (integer and decimal)
- Dice literals (3d6, 1D20) as single tokens
- Special variables ($a, $r, $s, $d followed by a name)
- Unicode identifiers (e.g. 回合数)
"""

from typing import List, Optional, Iterator
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, KEYWORDS, SPECIAL_PREFIXES,
)
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_comment,
    error_invalid_special_prefix,
)


def is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def is_name_start(ch: str) -> bool:
    return ch.isalpha() or ch == '_'


def is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch == '_'


class Lexer:
    """
    Tokenizer for Dicenic scripts.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

        # Parenthesis nesting for implicit line continuation
        self.paren_depth = 0

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_line_comment(self) -> None:
        """Skip a single-line comment (// to end of line)."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_block_comment(self) -> None:
        """Skip /* ... */ comment."""
        start = self._location()
        self._advance()  # consume '/'
        self._advance()  # consume '*'

        while not self._is_at_end():
            if self._peek() == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                return
            self._advance()

        raise error_unterminated_comment(
            self._span(start),
            self.get_source_line(start.line)
        )

    def _skip_whitespace_and_comments(self) -> None:
        """Skip spaces, tabs, carriage returns and comments (not newlines)."""
        while True:
            ch = self._peek()
            if ch in ' \t\r' and not self._is_at_end():
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                self._skip_line_comment()
            elif ch == '/' and self._peek(1) == '*':
                self._skip_block_comment()
            else:
                return

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_string(self) -> Token:
        """Scan a string literal. Escape sequences are kept undecoded."""
        start = self._location()
        quote = self._advance()  # consume opening quote

        chars = []
        while not self._is_at_end() and self._peek() != quote:
            ch = self._peek()
            if ch == '\n':
                raise error_unterminated_string(
                    self._span(start),
                    self.get_source_line(start.line)
                )
            if ch == '\\' and self._peek(1) not in ('\n', '\0'):
                chars.append(self._advance())  # backslash
            chars.append(self._advance())

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start),
                self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        return self._make_token(TokenType.STRING_LITERAL, ''.join(chars), start)

    def _scan_number(self) -> Token:
        """Scan a number, or a dice literal when digits are followed by d<digits>."""
        start = self._location()

        while is_digit(self._peek()):
            self._advance()

        if self._peek() == '.' and is_digit(self._peek(1)):
            self._advance()  # consume '.'
            while is_digit(self._peek()):
                self._advance()

        # Dice: 3d6, 1D20 (a decimal count is kept and rejected when rolled)
        if self._peek() in 'dD' and is_digit(self._peek(1)):
            self._advance()  # consume 'd'
            while is_digit(self._peek()):
                self._advance()
            lexeme = self.source[start.offset:self.pos]
            return self._make_token(TokenType.DICE_LITERAL, lexeme, start, lexeme)

        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.NUMBER_LITERAL, float(lexeme), start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while is_name_char(self._peek()):
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        if lexeme in KEYWORDS:
            return self._make_token(KEYWORDS[lexeme], lexeme, start, lexeme)
        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_special_variable(self) -> Token:
        """Scan $<prefix><name>. The value is a (prefix, name) tuple."""
        start = self._location()
        self._advance()  # consume '$'

        prefix = self._peek()
        if prefix not in SPECIAL_PREFIXES:
            if is_name_char(prefix):
                self._advance()
            found = prefix if is_name_char(prefix) else ""
            raise error_invalid_special_prefix(
                found, self._span(start), self.get_source_line(start.line)
            )
        self._advance()

        name_start = self.pos
        while is_name_char(self._peek()):
            self._advance()
        name = self.source[name_start:self.pos]

        return self._make_token(TokenType.SPECIAL_VARIABLE, (prefix, name), start)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        if self._peek() == '\n':
            start = self._location()
            self._advance()
            if self.paren_depth == 0:
                return self._make_token(TokenType.NEWLINE, None, start, "\\n")
            return self._scan_token()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        if ch in '"\'':
            return self._scan_string()

        if is_digit(ch):
            return self._scan_number()

        if is_name_start(ch):
            return self._scan_identifier_or_keyword()

        if ch == '$':
            return self._scan_special_variable()

        self._advance()

        # Two-character operators
        if ch == '=' and self._match('='):
            return self._make_token(TokenType.EQ, "==", start)
        if ch == '!' and self._match('='):
            return self._make_token(TokenType.NE, "!=", start)
        if ch == '<' and self._match('='):
            return self._make_token(TokenType.LE, "<=", start)
        if ch == '>' and self._match('='):
            return self._make_token(TokenType.GE, ">=", start)
        if ch == '&' and self._match('&'):
            return self._make_token(TokenType.AND, "&&", start)
        if ch == '|' and self._match('|'):
            return self._make_token(TokenType.OR, "||", start)
        if ch == '+' and self._match('='):
            return self._make_token(TokenType.PLUS_ASSIGN, "+=", start)
        if ch == '-' and self._match('='):
            return self._make_token(TokenType.MINUS_ASSIGN, "-=", start)
        if ch == '*' and self._match('='):
            return self._make_token(TokenType.STAR_ASSIGN, "*=", start)
        if ch == '/' and self._match('='):
            return self._make_token(TokenType.SLASH_ASSIGN, "/=", start)
        if ch == '%' and self._match('='):
            return self._make_token(TokenType.PERCENT_ASSIGN, "%=", start)

        # Track paren depth for implicit line continuation
        if ch == '(':
            self.paren_depth += 1
            return self._make_token(TokenType.LPAREN, ch, start)
        if ch == ')':
            self.paren_depth = max(0, self.paren_depth - 1)
            return self._make_token(TokenType.RPAREN, ch, start)

        single_char_tokens = {
            '+': TokenType.PLUS,
            '-': TokenType.MINUS,
            '*': TokenType.STAR,
            '/': TokenType.SLASH,
            '%': TokenType.PERCENT,
            '<': TokenType.LT,
            '>': TokenType.GT,
            '=': TokenType.ASSIGN,
            '!': TokenType.NOT,
            '{': TokenType.LBRACE,
            '}': TokenType.RBRACE,
            ';': TokenType.SEMICOLON,
            '?': TokenType.QUESTION,
            ':': TokenType.COLON,
        }

        if ch in single_char_tokens:
            return self._make_token(single_char_tokens[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens = []
        while True:
            token = self._scan_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens

    Raises:
        LexerError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
