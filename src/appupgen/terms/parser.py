"""Parser for Erlang term files (the file:consult/1 format).

Used for release descriptors (.rel), rebar.config and existing .appup
files. Only literal terms are accepted: no variables, no expressions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from appupgen.terms.types import Atom, map_key

_TOKEN = re.compile(
    r"""
    (?P<skip>\s+|%[^\n]*)
  | (?P<float>-?\d+\.\d+(?:[eE][+-]?\d+)?)
  | (?P<int>-?\d+(?:\#[0-9A-Za-z]+)?)
  | (?P<char>\$(?:\\(?:x\{[0-9A-Fa-f]+\}|x[0-9A-Fa-f]{2}|[0-7]{1,3}|\^.|.)|.))
  | (?P<string>"(?:\\.|[^"\\])*")
  | (?P<qatom>'(?:\\.|[^'\\])*')
  | (?P<atom>[a-z][A-Za-z0-9_@]*)
  | (?P<var>[A-Z_][A-Za-z0-9_@]*)
  | (?P<punct><<|>>|=>|\#\{|[{}\[\],|.])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "b": "\b",
    "f": "\f",
    "e": "\x1b",
    "s": " ",
    "d": "\x7f",
}

_ESCAPE_SEQ = re.compile(
    r"\\(x\{[0-9A-Fa-f]+\}|x[0-9A-Fa-f]{2}|[0-7]{1,3}|\^.|.)",
    re.DOTALL,
)


class TermParseError(ValueError):
    """Input is not a sequence of valid Erlang terms."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    line: int


def _unescape_one(seq: str) -> str:
    if seq.startswith("x{"):
        return chr(int(seq[2:-1], 16))
    if seq.startswith("x") and len(seq) == 3:
        return chr(int(seq[1:], 16))
    if seq[0] in "01234567":
        return chr(int(seq, 8))
    if seq.startswith("^"):
        return chr(ord(seq[1]) % 32)
    return _ESCAPES.get(seq, seq)


def _unescape(body: str) -> str:
    return _ESCAPE_SEQ.sub(lambda m: _unescape_one(m.group(1)), body)


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    line = 1
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None:
            raise TermParseError(f"unexpected character {text[pos]!r}", line)
        kind = match.lastgroup or ""
        value = match.group()
        if kind == "var":
            raise TermParseError(f"variables are not allowed in term files: {value}", line)
        if kind != "skip":
            tokens.append(_Token(kind, value, line))
        line += value.count("\n")
        pos = match.end()
    return tokens


def _parse_int(text: str) -> int:
    if "#" in text:
        base, digits = text.split("#", 1)
        sign = -1 if base.startswith("-") else 1
        return sign * int(digits, abs(int(base)))
    return int(text)


class _Parser:
    def __init__(self, tokens: list[_Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def _peek(self) -> _Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> _Token:
        token = self._peek()
        if token is None:
            last_line = self._tokens[-1].line if self._tokens else 1
            raise TermParseError("unexpected end of input", last_line)
        self._pos += 1
        return token

    def _expect(self, text: str) -> None:
        token = self._next()
        if token.text != text:
            raise TermParseError(f"expected {text!r}, got {token.text!r}", token.line)

    def _accept(self, text: str) -> bool:
        token = self._peek()
        if token is not None and token.kind == "punct" and token.text == text:
            self._pos += 1
            return True
        return False

    def form(self) -> Any:
        value = self.term()
        self._expect(".")
        return value

    def term(self) -> Any:
        token = self._next()
        kind, text = token.kind, token.text
        if kind == "int":
            return _parse_int(text)
        if kind == "float":
            return float(text)
        if kind == "char":
            return ord(_unescape(text[1:]))
        if kind == "string":
            value = _unescape(text[1:-1])
            # Adjacent string literals concatenate
            while (nxt := self._peek()) is not None and nxt.kind == "string":
                self._pos += 1
                value += _unescape(nxt.text[1:-1])
            return value
        if kind == "qatom":
            return Atom(_unescape(text[1:-1]))
        if kind == "atom":
            return Atom(text)
        if text == "{":
            return tuple(self._sequence("}"))
        if text == "[":
            return self._list()
        if text == "<<":
            return self._binary()
        if text == "#{":
            return self._map()
        raise TermParseError(f"unexpected token {text!r}", token.line)

    def _sequence(self, close: str) -> list[Any]:
        items: list[Any] = []
        if self._accept(close):
            return items
        items.append(self.term())
        while self._accept(","):
            items.append(self.term())
        self._expect(close)
        return items

    def _list(self) -> list[Any]:
        items: list[Any] = []
        if self._accept("]"):
            return items
        items.append(self.term())
        while self._accept(","):
            items.append(self.term())
        if self._accept("|"):
            tail = self.term()
            if not isinstance(tail, list):
                line = self._tokens[self._pos - 1].line
                raise TermParseError("improper lists are not supported", line)
            items.extend(tail)
        self._expect("]")
        return items

    def _binary(self) -> bytes:
        chunks: list[bytes] = []
        if self._accept(">>"):
            return b""
        while True:
            token = self._next()
            if token.kind == "string":
                chunks.append(_unescape(token.text[1:-1]).encode())
            elif token.kind == "int":
                chunks.append(bytes([_parse_int(token.text) & 0xFF]))
            else:
                raise TermParseError(f"unsupported binary segment {token.text!r}", token.line)
            if not self._accept(","):
                break
        self._expect(">>")
        return b"".join(chunks)

    def _map(self) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        if self._accept("}"):
            return result
        while True:
            key = self.term()
            self._expect("=>")
            result[map_key(key)] = self.term()
            if not self._accept(","):
                break
        self._expect("}")
        return result


def parse_terms(text: str) -> list[Any]:
    """Parse every dot-terminated term in text."""
    parser = _Parser(_tokenize(text))
    forms: list[Any] = []
    while not parser.at_end():
        forms.append(parser.form())
    return forms


def parse_term(text: str) -> Any:
    """Parse text holding exactly one term (the trailing dot is optional)."""
    stripped = text.rstrip()
    if not stripped.endswith("."):
        stripped += "."
    forms = parse_terms(stripped)
    if len(forms) != 1:
        raise TermParseError(f"expected one term, found {len(forms)}", 1)
    return forms[0]


def consult(path: Path) -> list[Any]:
    """Read a term file like file:consult/1.

    Raises:
        OSError: If the file cannot be read.
        TermParseError: If the content is not a sequence of terms.
    """
    return parse_terms(path.read_text(encoding="utf-8"))
