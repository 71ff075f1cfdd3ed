"""Lox tokenizer — lexes source into a flat token list."""

from __future__ import annotations


# Token type constants. Keywords use their own text as the type.
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "and",
    "class",
    "else",
    "false",
    "for",
    "fun",
    "if",
    "nil",
    "or",
    "print",
    "return",
    "super",
    "this",
    "true",
    "var",
    "while",
}

# Multi-character operators, matched before single characters
MULTI_OPS: list[str] = [
    "!=",
    "==",
    "<=",
    ">=",
]

SINGLE_OPS: set[str] = {
    "(",
    ")",
    "{",
    "}",
    ",",
    ".",
    "-",
    "+",
    ";",
    "/",
    "*",
    "!",
    "=",
    "<",
    ">",
}


class ScanError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int):
        self.msg: str = msg
        self.line: int = line
        super().__init__("[line " + str(line) + "] Error: " + msg)


class Token:
    """A token with type, lexeme, parsed literal, and line."""

    def __init__(
        self, type_: str, lexeme: str, literal: float | str | None, line: int
    ):
        self.type: str = type_
        self.lexeme: str = lexeme
        self.literal: float | str | None = literal
        self.line: int = line

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.lexeme)
            + ", "
            + repr(self.literal)
            + ", "
            + str(self.line)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def tokenize(source: str) -> tuple[list[Token], list[ScanError]]:
    """Tokenize Lox source into a flat list ending with TK_EOF.

    Scanning never stops at a bad character: every problem is collected and
    returned alongside the tokens so a single run can report all of them.
    """
    tokens: list[Token] = []
    errors: list[ScanError] = []
    pos = 0
    line = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        if c == "\n":
            pos += 1
            line += 1
            continue

        if c == " " or c == "\t" or c == "\r":
            pos += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_pos = pos
        start_line = line

        # Number: digits with an optional fractional part
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
            if (
                pos + 1 < length
                and source[pos] == "."
                and _is_digit(source[pos + 1])
            ):
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            raw = source[start_pos:pos]
            tokens.append(Token(TK_NUMBER, raw, float(raw), start_line))
            continue

        # String literal: "..." (may span lines, no escapes)
        if c == '"':
            pos += 1
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    line += 1
                pos += 1
            if pos >= length:
                errors.append(ScanError("Unterminated string.", line))
                continue
            pos += 1  # skip closing "
            raw = source[start_pos:pos]
            tokens.append(Token(TK_STRING, raw, raw[1:-1], start_line))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, None, start_line))
            else:
                tokens.append(Token(TK_IDENT, word, None, start_line))
            continue

        matched = False
        for op in MULTI_OPS:
            op_len = len(op)
            if pos + op_len <= length and source[pos : pos + op_len] == op:
                tokens.append(Token(TK_OP, op, None, start_line))
                pos += op_len
                matched = True
                break
        if matched:
            continue

        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, None, start_line))
            pos += 1
            continue

        errors.append(ScanError("Unexpected character.", line))
        pos += 1

    tokens.append(Token(TK_EOF, "", None, line))
    return tokens, errors
