# =============================================================================
# test_lexer.py - Operand Lexer Unit Tests
# =============================================================================
# Tests for the tokenizer shared by the expression evaluator and the
# variable substitution pass.
#
# Test coverage includes:
#   - Numbers in all radixes
#   - Identifiers with dotted suffixes and local labels
#   - Operators and delimiters
#   - Token spans (needed to rebuild operand text exactly)
#   - Unknown characters
# =============================================================================

from cyclespitter.pipeline.lexer import Lexer, TokenType, tokenize


def types(text: str) -> list[TokenType]:
    return [t.type for t in tokenize(text)]


# =============================================================================
# Numbers
# =============================================================================

class TestNumbers:
    """Test number literals."""

    def test_decimal(self):
        tokens = tokenize("224")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == 224

    def test_hex(self):
        assert tokenize("$4e71")[0].value == 0x4E71

    def test_binary(self):
        assert tokenize("%1010")[0].value == 10

    def test_octal(self):
        assert tokenize("@17")[0].value == 15

    def test_dollar_without_digits_is_other(self):
        """A lone '$' is not a number."""
        assert tokenize("$")[0].type == TokenType.OTHER

    def test_number_followed_by_size_suffix(self):
        """'$ffff8260.w' is a number and a '.w' identifier."""
        tokens = tokenize("$ffff8260.w")
        assert tokens[0].value == 0xFFFF8260
        assert tokens[1].type == TokenType.IDENTIFIER
        assert tokens[1].value == ".w"


# =============================================================================
# Identifiers
# =============================================================================

class TestIdentifiers:
    """Test identifier scanning."""

    def test_simple(self):
        tokens = tokenize("SCREEN_WIDTH")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "SCREEN_WIDTH"

    def test_dotted_suffix_is_part_of_identifier(self):
        assert tokenize("ofs.w")[0].value == "ofs.w"

    def test_local_label(self):
        assert tokenize(".loop")[0].value == ".loop"

    def test_identifier_stops_at_parenthesis(self):
        tokens = tokenize("add(a1)")
        assert [t.text for t in tokens] == ["add", "(", "a1", ")", ""]


# =============================================================================
# Operators and Delimiters
# =============================================================================

class TestOperators:
    """Test operator and delimiter tokens."""

    def test_arithmetic(self):
        assert types("+-*/") == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH, TokenType.EOF,
        ]

    def test_bitwise(self):
        assert types("& | ^ ~") == [
            TokenType.AMPERSAND, TokenType.PIPE, TokenType.CARET, TokenType.TILDE, TokenType.EOF,
        ]

    def test_exclamation_is_or(self):
        assert tokenize("!")[0].type == TokenType.PIPE

    def test_shifts(self):
        assert types("1<<2>>3") == [
            TokenType.NUMBER, TokenType.LSHIFT, TokenType.NUMBER,
            TokenType.RSHIFT, TokenType.NUMBER, TokenType.EOF,
        ]

    def test_single_angle_is_other(self):
        assert tokenize("<")[0].type == TokenType.OTHER

    def test_delimiters(self):
        assert types("#,()") == [
            TokenType.HASH, TokenType.COMMA, TokenType.LPAREN, TokenType.RPAREN, TokenType.EOF,
        ]


# =============================================================================
# Strings, Spans and Robustness
# =============================================================================

class TestSpansAndStrings:
    """Test token spans, strings and characters the lexer does not know."""

    def test_spans_cover_source_text(self):
        text = "add-8(a1)"
        for token in tokenize(text):
            assert text[token.start:token.end] == token.text

    def test_spans_skip_whitespace(self):
        tokens = tokenize("  x + 1")
        assert tokens[0].start == 2
        assert tokens[0].column == 3

    def test_quoted_string(self):
        token = tokenize("'AB'")[0]
        assert token.type == TokenType.STRING
        assert token.value == "AB"
        assert token.text == "'AB'"

    def test_unterminated_string_runs_to_end(self):
        token = tokenize("'AB")[0]
        assert token.value == "AB"

    def test_unknown_character_never_fails(self):
        tokens = tokenize("a?b")
        assert tokens[1].type == TokenType.OTHER
        assert tokens[1].value == "?"

    def test_always_ends_with_eof(self):
        assert tokenize("")[-1].type == TokenType.EOF
        assert list(Lexer("x").tokenize())[-1].type == TokenType.EOF
