"""Python representations of Erlang terms.

Mapping used throughout appupgen:

- atom      -> Atom (a str subclass)
- string    -> str
- binary    -> bytes
- integer   -> int
- float     -> float
- tuple     -> tuple
- list      -> list
- map       -> dict
"""

from __future__ import annotations

import re
from typing import Any

_UNQUOTED_ATOM = re.compile(r"^[a-z][A-Za-z0-9_@]*$")

RESERVED_WORDS = frozenset(
    {
        "after", "and", "andalso", "band", "begin", "bnot", "bor", "bsl", "bsr",
        "bxor", "case", "catch", "cond", "div", "else", "end", "fun", "if", "let",
        "maybe", "not", "of", "or", "orelse", "receive", "rem", "try", "when", "xor",
    }
)  # fmt: skip


class Atom(str):
    """An Erlang atom. Compares equal to the plain string of the same text."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Atom({str.__repr__(self)})"

    @property
    def needs_quotes(self) -> bool:
        return not _UNQUOTED_ATOM.match(self) or self in RESERVED_WORDS


def is_atom(value: Any, name: str | None = None) -> bool:
    """True if value is an Atom, optionally with the given text."""
    return isinstance(value, Atom) and (name is None or value == name)


def is_tagged(value: Any, tag: str, arity: int | None = None) -> bool:
    """True for tuples like {tag, ...}, optionally of a fixed size."""
    return (
        isinstance(value, tuple)
        and len(value) > 0
        and is_atom(value[0], tag)
        and (arity is None or len(value) == arity)
    )


def proplist_get(proplist: Any, key: str, default: Any = None) -> Any:
    """First value stored under key in a list of {Key, Value} pairs.

    Bare atoms count as {Atom, true}, like proplists:get_value/3.
    """
    if not isinstance(proplist, list):
        return default
    for entry in proplist:
        if isinstance(entry, tuple) and len(entry) >= 2 and is_atom(entry[0], key):
            return entry[1]
        if is_atom(entry, key):
            return True
    return default


def map_key(value: Any) -> Any:
    """Hashable stand-in for a map key: lists become tuples, maps sorted pairs."""
    if isinstance(value, list | tuple):
        return tuple(map_key(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((repr(k), map_key(v)) for k, v in value.items()))
    return value
