"""Minimal, allocation-bounded JSON tokenizer.

The tokenizer does not build values; it only records where each JSON
element starts and ends in the input, what kind of element it is and how
many direct children it has. Parsing is non-strict: any unquoted run of
printable characters is accepted as a primitive, and primitives may be
used as object keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

__all__ = [
    "TokenType",
    "Token",
    "JsmnError",
    "NotEnoughTokensError",
    "InvalidJsonError",
    "PartialJsonError",
    "Parser",
    "tokenize",
    "count_tokens",
]

_WHITESPACE = frozenset(b"\t\r\n ")
_PRIMITIVE_DELIMITERS = frozenset(b":\t\r\n ,]}")
_SIMPLE_ESCAPES = frozenset(b'"/\\bfrnt')
_HEX_DIGITS = frozenset(b"0123456789ABCDEFabcdef")


class TokenType(IntEnum):
    """Kind of JSON element a token describes."""

    UNDEFINED = 0
    OBJECT = 1 << 0
    ARRAY = 1 << 1
    STRING = 1 << 2
    PRIMITIVE = 1 << 3


@dataclass(slots=True)
class Token:
    """Location of one JSON element within the parsed input.

    ``start`` and ``end`` are byte offsets; for strings they exclude the
    quotes. ``size`` is the number of direct children (for an object key,
    1 when it has a value).
    """

    type: TokenType = TokenType.UNDEFINED
    start: int = -1
    end: int = -1
    size: int = 0


class JsmnError(ValueError):
    """Raised when the input cannot be tokenized."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at offset {position}")
        self.position = position


class NotEnoughTokensError(JsmnError):
    """The input holds more elements than the parser may allocate."""


class InvalidJsonError(JsmnError):
    """The input contains a character that is not allowed where it stands."""


class PartialJsonError(JsmnError):
    """The input ends before the JSON document is complete."""


def _as_bytes(js: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(js, str):
        return js.encode("utf-8")
    return bytes(js)


class Parser:
    """Tokenizer that allocates at most ``max_tokens`` tokens per parse."""

    def __init__(self, max_tokens: int) -> None:
        if max_tokens < 0:
            raise ValueError("max_tokens must not be negative")
        self.max_tokens = max_tokens
        self._reset(b"", counting=False)

    def _reset(self, data: bytes, counting: bool) -> None:
        self._data = data
        self._counting = counting
        self._pos = 0
        self._toksuper = -1
        self._tokens: list[Token] = []

    def parse(self, js: bytes | bytearray | memoryview | str) -> list[Token]:
        """Tokenize ``js`` and return its tokens in document order."""
        self._reset(_as_bytes(js), counting=False)
        self._run()
        return self._tokens

    def _count(self, js: bytes | bytearray | memoryview | str) -> int:
        self._reset(_as_bytes(js), counting=True)
        return self._run()

    # -- internals -------------------------------------------------------

    def _more(self) -> bool:
        return self._pos < len(self._data) and self._data[self._pos] != 0

    def _alloc(self, start: int) -> Token:
        if len(self._tokens) >= self.max_tokens:
            raise NotEnoughTokensError("not enough tokens", start)
        token = Token()
        self._tokens.append(token)
        return token

    def _grow_parent(self) -> None:
        if not self._counting and self._toksuper != -1:
            self._tokens[self._toksuper].size += 1

    def _run(self) -> int:
        count = 0
        data = self._data
        while self._more():
            c = data[self._pos]
            if c in b"{[":
                count += 1
                if not self._counting:
                    token = self._alloc(self._pos)
                    self._grow_parent()
                    token.type = TokenType.OBJECT if c == ord("{") else TokenType.ARRAY
                    token.start = self._pos
                    self._toksuper = len(self._tokens) - 1
            elif c in b"}]":
                if not self._counting:
                    self._close(TokenType.OBJECT if c == ord("}") else TokenType.ARRAY)
            elif c == ord('"'):
                self._parse_string()
                count += 1
                self._grow_parent()
            elif c in _WHITESPACE:
                pass
            elif c == ord(":"):
                self._toksuper = len(self._tokens) - 1
            elif c == ord(","):
                self._after_comma()
            else:
                self._parse_primitive()
                count += 1
                self._grow_parent()
            self._pos += 1

        if not self._counting:
            for token in self._tokens:
                if token.start != -1 and token.end == -1:
                    raise PartialJsonError("unclosed object or array", token.start)
        return count

    def _close(self, kind: TokenType) -> None:
        tokens = self._tokens
        for index in range(len(tokens) - 1, -1, -1):
            token = tokens[index]
            if token.start != -1 and token.end == -1:
                if token.type != kind:
                    raise InvalidJsonError("mismatched closing bracket", self._pos)
                self._toksuper = -1
                token.end = self._pos + 1
                break
        else:
            raise InvalidJsonError("unmatched closing bracket", self._pos)
        for outer in range(index, -1, -1):
            token = tokens[outer]
            if token.start != -1 and token.end == -1:
                self._toksuper = outer
                break

    def _after_comma(self) -> None:
        if self._counting or self._toksuper == -1:
            return
        containers = (TokenType.ARRAY, TokenType.OBJECT)
        if self._tokens[self._toksuper].type in containers:
            return
        for index in range(len(self._tokens) - 1, -1, -1):
            token = self._tokens[index]
            if token.type in containers and token.start != -1 and token.end == -1:
                self._toksuper = index
                break

    def _parse_primitive(self) -> None:
        data = self._data
        start = self._pos
        while self._more():
            c = data[self._pos]
            if c in _PRIMITIVE_DELIMITERS:
                break
            if c < 32 or c >= 127:
                raise InvalidJsonError("invalid character in primitive", self._pos)
            self._pos += 1
        if not self._counting:
            token = self._alloc(start)
            token.type = TokenType.PRIMITIVE
            token.start = start
            token.end = self._pos
        self._pos -= 1

    def _parse_string(self) -> None:
        data = self._data
        start = self._pos
        self._pos += 1
        while self._more():
            c = data[self._pos]
            if c == ord('"'):
                if not self._counting:
                    token = self._alloc(start)
                    token.type = TokenType.STRING
                    token.start = start + 1
                    token.end = self._pos
                return
            if c == ord("\\") and self._pos + 1 < len(data):
                self._pos += 1
                escaped = data[self._pos]
                if escaped == ord("u"):
                    self._pos += 1
                    for _ in range(4):
                        if not self._more():
                            break
                        if data[self._pos] not in _HEX_DIGITS:
                            raise InvalidJsonError("invalid unicode escape", start)
                        self._pos += 1
                    self._pos -= 1
                elif escaped not in _SIMPLE_ESCAPES:
                    raise InvalidJsonError("invalid escape sequence", start)
            self._pos += 1
        raise PartialJsonError("unterminated string", start)


def tokenize(js: bytes | bytearray | memoryview | str, max_tokens: int) -> list[Token]:
    """Tokenize ``js`` with room for at most ``max_tokens`` tokens."""
    return Parser(max_tokens).parse(js)


def count_tokens(js: bytes | bytearray | memoryview | str) -> int:
    """Return how many tokens ``js`` would need, without checking nesting."""
    return Parser(0)._count(js)