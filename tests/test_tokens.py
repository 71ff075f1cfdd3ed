"""Tests for the Lox tokenizer."""

from lox.tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_OP, TK_STRING, tokenize


def _types(source: str) -> list[str]:
    tokens, errors = tokenize(source)
    assert errors == [], [str(e) for e in errors]
    return [t.type for t in tokens]


def test_var_declaration():
    assert _types("var x = 1.5;") == ["var", TK_IDENT, TK_OP, TK_NUMBER, TK_OP, TK_EOF]


def test_number_literal_is_parsed():
    tokens, _ = tokenize("12 3.25")
    assert tokens[0].literal == 12.0
    assert tokens[1].literal == 3.25
    assert tokens[1].lexeme == "3.25"


def test_trailing_dot_is_not_part_of_number():
    tokens, _ = tokenize("1.")
    assert [(t.type, t.lexeme) for t in tokens] == [
        (TK_NUMBER, "1"),
        (TK_OP, "."),
        (TK_EOF, ""),
    ]


def test_string_literal_drops_quotes():
    tokens, _ = tokenize('"hi there"')
    assert tokens[0].type == TK_STRING
    assert tokens[0].lexeme == '"hi there"'
    assert tokens[0].literal == "hi there"


def test_multiline_string_advances_line():
    tokens, _ = tokenize('"a\nb" x')
    assert tokens[0].line == 1
    assert tokens[0].literal == "a\nb"
    assert tokens[1].line == 2


def test_two_character_operators():
    tokens, _ = tokenize("!= == <= >= ! = < >")
    assert [t.lexeme for t in tokens[:-1]] == ["!=", "==", "<=", ">=", "!", "=", "<", ">"]


def test_keywords_use_own_type():
    tokens, _ = tokenize("class fun this super orchid")
    assert [t.type for t in tokens] == ["class", "fun", "this", "super", TK_IDENT, TK_EOF]


def test_comments_and_lines():
    tokens, _ = tokenize("// comment\nprint 1; // more\n")
    assert tokens[0].type == "print"
    assert tokens[0].line == 2
    assert tokens[-1].type == TK_EOF
    assert tokens[-1].line == 3


def test_unexpected_character_keeps_scanning():
    tokens, errors = tokenize("1 @ 2 #")
    assert [e.msg for e in errors] == ["Unexpected character.", "Unexpected character."]
    assert [t.lexeme for t in tokens] == ["1", "2", ""]
    assert str(errors[0]) == "[line 1] Error: Unexpected character."


def test_unterminated_string():
    tokens, errors = tokenize('print "open\n')
    assert len(errors) == 1
    assert errors[0].msg == "Unterminated string."
    assert errors[0].line == 2
    assert [t.type for t in tokens] == ["print", TK_EOF]
