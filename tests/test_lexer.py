"""
Unit tests for the Dicenic lexer.
"""

import pytest
from dicenic import tokenize, Lexer, TokenType, LexerError


def types_of(source):
    return [t.type for t in tokenize(source)]


class TestLexerBasics:
    """Test basic lexer functionality."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_only(self):
        """Spaces and tabs produce no tokens."""
        assert types_of("   \t  ") == [TokenType.EOF]

    def test_simple_assignment(self):
        """Basic assignment tokenization."""
        assert types_of("hp = 42;") == [
            TokenType.IDENTIFIER,
            TokenType.ASSIGN,
            TokenType.NUMBER_LITERAL,
            TokenType.SEMICOLON,
            TokenType.EOF,
        ]

    def test_position_tracking(self):
        """Token positions are 1-indexed line/column."""
        tokens = tokenize("x = 5")
        assert tokens[0].span.start.line == 1
        assert tokens[0].span.start.column == 1
        assert tokens[2].span.start.column == 5

    def test_multiline_position_tracking(self):
        """Position tracking across multiple lines."""
        tokens = tokenize("x = 5\ny = 10")
        names = [t for t in tokens if t.type == TokenType.IDENTIFIER]
        assert names[0].span.start.line == 1
        assert names[1].span.start.line == 2

    def test_filename_in_location(self):
        """The filename is carried on every location."""
        tokens = tokenize("x", filename="a.dice")
        assert str(tokens[0].span.start) == "a.dice:1:1"

    def test_streaming_iteration(self):
        """Iterating a Lexer yields the same tokens as tokenize()."""
        source = "x = 1d6 + 2"
        assert [t.type for t in Lexer(source)] == types_of(source)


class TestComments:
    """Test comment handling."""

    def test_line_comment(self):
        """// comments run to end of line."""
        assert types_of("// note\nx") == [TokenType.NEWLINE, TokenType.IDENTIFIER, TokenType.EOF]

    def test_block_comment(self):
        """Block comments can sit inside an expression."""
        assert types_of("1 /* two */ + 2") == [
            TokenType.NUMBER_LITERAL, TokenType.PLUS, TokenType.NUMBER_LITERAL, TokenType.EOF,
        ]

    def test_unterminated_block_comment(self):
        """An unclosed block comment is a lexer error."""
        with pytest.raises(LexerError) as exc:
            tokenize("x /* never closed")
        assert exc.value.code == "E003"


class TestLiterals:
    """Test number, dice and string literals."""

    def test_integer_value(self):
        """Integers are read as floats."""
        token = tokenize("42")[0]
        assert token.type == TokenType.NUMBER_LITERAL
        assert token.value == 42.0
        assert token.lexeme == "42"

    def test_decimal_value(self):
        """Decimals keep their fraction."""
        assert tokenize("3.25")[0].value == 3.25

    def test_trailing_dot_is_not_part_of_number(self):
        """A dot must be followed by a digit to belong to the number."""
        with pytest.raises(LexerError):
            tokenize("3.")

    def test_dice_literal(self):
        """NdM is a single dice token."""
        token = tokenize("3d6")[0]
        assert token.type == TokenType.DICE_LITERAL
        assert token.value == "3d6"

    def test_dice_literal_uppercase(self):
        """The d may be uppercase."""
        assert tokenize("1D20")[0].value == "1D20"

    def test_number_followed_by_name(self):
        """A d not followed by a digit ends the number."""
        assert types_of("2 dx") == [TokenType.NUMBER_LITERAL, TokenType.IDENTIFIER, TokenType.EOF]
        assert types_of("2dx") == [TokenType.NUMBER_LITERAL, TokenType.IDENTIFIER, TokenType.EOF]

    def test_double_quoted_string(self):
        """String value excludes the quotes."""
        token = tokenize('"hello"')[0]
        assert token.type == TokenType.STRING_LITERAL
        assert token.value == "hello"

    def test_single_quoted_string(self):
        """Single quotes work as well."""
        assert tokenize("'hi there'")[0].value == "hi there"

    def test_escapes_kept_raw(self):
        """Escape sequences are left for the interpreter to decode."""
        assert tokenize(r'"a\"b\n"')[0].value == r'a\"b\n'

    def test_unterminated_string(self):
        """A string that reaches end of file is an error."""
        with pytest.raises(LexerError) as exc:
            tokenize('"open')
        assert exc.value.code == "E002"

    def test_string_cannot_span_lines(self):
        """A newline inside a string is an error."""
        with pytest.raises(LexerError) as exc:
            tokenize('"one\ntwo"')
        assert exc.value.code == "E002"


class TestNames:
    """Test identifiers, keywords and special variables."""

    def test_keywords(self):
        """if/else/while are keywords."""
        assert types_of("if else while") == [
            TokenType.IF, TokenType.ELSE, TokenType.WHILE, TokenType.EOF,
        ]

    def test_unicode_identifier(self):
        """Identifiers may use any script."""
        token = tokenize("回合数")[0]
        assert token.type == TokenType.IDENTIFIER
        assert token.value == "回合数"

    def test_special_variable(self):
        """$ + prefix + name becomes a (prefix, name) pair."""
        token = tokenize("$a力量")[0]
        assert token.type == TokenType.SPECIAL_VARIABLE
        assert token.value == ("a", "力量")

    @pytest.mark.parametrize("prefix", ["a", "r", "s", "d"])
    def test_all_prefixes(self, prefix):
        """Each pool prefix is accepted."""
        assert tokenize(f"${prefix}name")[0].value == (prefix, "name")

    def test_special_variable_without_name(self):
        """The name may be empty; the interpreter reports it."""
        assert tokenize("$a")[0].value == ("a", "")

    def test_invalid_prefix(self):
        """Unknown prefixes are lexer errors."""
        with pytest.raises(LexerError) as exc:
            tokenize("$xname")
        assert exc.value.code == "E004"
        assert "'x'" in exc.value.message

    def test_bare_dollar(self):
        """A lone $ is an invalid prefix."""
        with pytest.raises(LexerError) as exc:
            tokenize("$ ")
        assert exc.value.code == "E004"


class TestOperators:
    """Test operator tokenization."""

    def test_two_char_operators(self):
        """Two-character operators are single tokens."""
        assert types_of("== != <= >= && || += -= *= /= %=")[:-1] == [
            TokenType.EQ, TokenType.NE, TokenType.LE, TokenType.GE,
            TokenType.AND, TokenType.OR,
            TokenType.PLUS_ASSIGN, TokenType.MINUS_ASSIGN, TokenType.STAR_ASSIGN,
            TokenType.SLASH_ASSIGN, TokenType.PERCENT_ASSIGN,
        ]

    def test_single_char_operators(self):
        """Single-character operators and punctuation."""
        assert types_of("+ - * / % < > = ! ? : ; { } ( )")[:-1] == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
            TokenType.PERCENT, TokenType.LT, TokenType.GT, TokenType.ASSIGN,
            TokenType.NOT, TokenType.QUESTION, TokenType.COLON, TokenType.SEMICOLON,
            TokenType.LBRACE, TokenType.RBRACE, TokenType.LPAREN, TokenType.RPAREN,
        ]

    def test_single_ampersand_rejected(self):
        """& alone is not an operator."""
        with pytest.raises(LexerError) as exc:
            tokenize("a & b")
        assert exc.value.code == "E001"

    def test_unexpected_character_has_caret(self):
        """Lexer errors render the source line with a caret."""
        with pytest.raises(LexerError) as exc:
            tokenize("x = 1 @ 2")
        rendered = str(exc.value)
        assert "error[E001]" in rendered
        assert "x = 1 @ 2" in rendered
        assert "^" in rendered


class TestNewlines:
    """Test statement-separating newlines."""

    def test_newline_tokens(self):
        """Newlines at top level are tokens."""
        assert types_of("a\nb").count(TokenType.NEWLINE) == 1

    def test_newlines_inside_parentheses_skipped(self):
        """Newlines inside parentheses are ignored."""
        assert TokenType.NEWLINE not in types_of("(1 +\n 2)")
