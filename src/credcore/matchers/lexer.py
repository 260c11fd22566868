"""Tokenizer for the credentials query language.

Splits query text into a flat list of tokens. Whitespace (including
newlines) only separates tokens; it never terminates an expression.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum, auto

from credcore.matchers.exceptions import CQLLexError, annotate_query


class TokenType(Enum):
    """Token types produced by the lexer."""

    IDENTIFIER = auto()  # username, instanceof, a.b.C
    STRING = auto()  # "quoted"
    NUMBER = auto()  # 57, -1.5e3
    BOOLEAN = auto()  # true, false
    OPERATOR = auto()  # ==, &&, ||, !
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    COMMA = auto()  # ,
    EOF = auto()  # End of input


@dataclass(frozen=True, slots=True)
class Token:
    """A token from the query text.

    Attributes:
        type: Kind of token
        text: Raw source text of the token
        offset: Offset of the first character in the query
        value: Decoded literal value for STRING, NUMBER and BOOLEAN tokens
    """

    type: TokenType
    text: str
    offset: int
    value: str | float | bool | None = None

    def describe(self) -> str:
        """Short human readable form used in error messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        return repr(self.text)


# Longest operators first so "==" is not read as "=" "="
OPERATORS = ("==", "&&", "||", "!")

PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}

ESCAPES = {
    '"': '"',
    "\\": "\\",
    "'": "'",
    "t": "\t",
    "n": "\n",
    "r": "\r",
    "b": "\b",
    "f": "\f",
}

_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*(?:\.[A-Za-z_$][A-Za-z0-9_$]*)*")
_NUMBER = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_IDENTIFIER_CHAR = re.compile(r"[A-Za-z0-9_$.]")
_HEX4 = re.compile(r"[0-9A-Fa-f]{4}")


class _Lexer:
    """Single-pass scanner over the query text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.length = len(text)

    def _error(self, offset: int, reason: str) -> CQLLexError:
        return CQLLexError(
            f"{reason}\n{annotate_query(self.text, offset, reason)}",
            offset=offset,
            reason=reason,
        )

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.text[self.pos].isspace():
            self.pos += 1

    def _read_string(self) -> Token:
        """Read a double-quoted string literal, resolving escapes."""
        start = self.pos
        self.pos += 1  # opening quote
        chars: list[str] = []

        while self.pos < self.length:
            ch = self.text[self.pos]
            if ch == '"':
                self.pos += 1
                return Token(
                    TokenType.STRING,
                    self.text[start : self.pos],
                    start,
                    "".join(chars),
                )
            if ch == "\\":
                chars.append(self._read_escape())
                continue
            chars.append(ch)
            self.pos += 1

        raise self._error(start, "Unterminated string literal")

    def _read_escape(self) -> str:
        escape_start = self.pos
        self.pos += 1  # backslash
        if self.pos >= self.length:
            raise self._error(escape_start, "Unterminated escape sequence")

        code = self.text[self.pos]
        if code in ESCAPES:
            self.pos += 1
            return ESCAPES[code]
        if code == "u":
            digits = self.text[self.pos + 1 : self.pos + 5]
            if not _HEX4.fullmatch(digits):
                raise self._error(escape_start, "Invalid unicode escape")
            self.pos += 5
            return chr(int(digits, 16))
        raise self._error(escape_start, f"Invalid escape sequence '\\{code}'")

    def _read_number(self, match: re.Match[str]) -> Token:
        start = self.pos
        end = match.end()
        if end < self.length and _IDENTIFIER_CHAR.match(self.text[end]):
            raise self._error(start, "Malformed number literal")
        text = match.group()
        value = float(text)
        if not math.isfinite(value):
            raise self._error(start, "Number literal out of range")
        self.pos = end
        return Token(TokenType.NUMBER, text, start, value)

    def _read_identifier(self, match: re.Match[str]) -> Token:
        start = self.pos
        self.pos = match.end()
        text = match.group()
        if text in ("true", "false"):
            return Token(TokenType.BOOLEAN, text, start, text == "true")
        return Token(TokenType.IDENTIFIER, text, start)

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []

        while True:
            self._skip_whitespace()
            if self.pos >= self.length:
                tokens.append(Token(TokenType.EOF, "", self.length))
                return tokens

            ch = self.text[self.pos]

            if ch == '"':
                tokens.append(self._read_string())
                continue

            if ch in PUNCTUATION:
                tokens.append(Token(PUNCTUATION[ch], ch, self.pos))
                self.pos += 1
                continue

            number = _NUMBER.match(self.text, self.pos)
            if number:
                tokens.append(self._read_number(number))
                continue

            operator = next((op for op in OPERATORS if self.text.startswith(op, self.pos)), None)
            if operator:
                tokens.append(Token(TokenType.OPERATOR, operator, self.pos))
                self.pos += len(operator)
                continue

            identifier = _IDENTIFIER.match(self.text, self.pos)
            if identifier:
                tokens.append(self._read_identifier(identifier))
                continue

            raise self._error(self.pos, f"Unexpected character {ch!r}")


def tokenize(text: str) -> list[Token]:
    """Split query text into tokens.

    Args:
        text: The query text

    Returns:
        Tokens in source order, always terminated by an EOF token

    Raises:
        CQLLexError: On unterminated strings, bad escapes, malformed numbers
            or characters that cannot start a token
    """
    return _Lexer(text).tokenize()
