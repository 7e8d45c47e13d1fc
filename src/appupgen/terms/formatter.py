"""Render Python values as Erlang term text.

Output is single-line and compact, the way io_lib's ~p prints short
terms: "{load_module,foo,[]}". Strings render as double-quoted strings.
"""

from __future__ import annotations

from typing import Any

from appupgen.terms.types import Atom

_STRING_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\b": "\\b",
    "\f": "\\f",
    "\x1b": "\\e",
    "\x7f": "\\d",
}


def _escape(text: str, quote: str) -> str:
    out: list[str] = []
    for ch in text:
        if ch == quote:
            out.append("\\" + ch)
        elif ch in _STRING_ESCAPES:
            out.append(_STRING_ESCAPES[ch])
        elif ord(ch) < 32:
            out.append(f"\\{ord(ch):03o}")
        else:
            out.append(ch)
    return "".join(out)


def format_atom(atom: str) -> str:
    atom = Atom(atom)
    if atom.needs_quotes:
        return f"'{_escape(atom, chr(39))}'"
    return str(atom)


def _format_binary(data: bytes) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    if text is not None and text.isprintable():
        return f'<<"{_escape(text, chr(34))}">>'
    return "<<" + ",".join(str(b) for b in data) + ">>"


def format_term(value: Any) -> str:
    """Render value as Erlang term text.

    Raises:
        TypeError: For values with no Erlang counterpart.
    """
    # bool before int: True is an int
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "undefined"
    if isinstance(value, Atom):
        return format_atom(value)
    if isinstance(value, str):
        return f'"{_escape(value, chr(34))}"'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, bytes):
        return _format_binary(value)
    if isinstance(value, tuple):
        return "{" + ",".join(format_term(v) for v in value) + "}"
    if isinstance(value, list):
        return "[" + ",".join(format_term(v) for v in value) + "]"
    if isinstance(value, dict):
        pairs = ",".join(f"{format_term(k)} => {format_term(v)}" for k, v in value.items())
        return "#{" + pairs + "}"
    raise TypeError(f"Cannot render {type(value).__name__} as an Erlang term")
