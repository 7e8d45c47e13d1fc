"""Erlang term text codec."""

from appupgen.terms.formatter import format_atom, format_term
from appupgen.terms.parser import TermParseError, consult, parse_term, parse_terms
from appupgen.terms.types import Atom, is_atom, is_tagged, proplist_get

__all__ = [
    "Atom",
    "TermParseError",
    "consult",
    "format_atom",
    "format_term",
    "is_atom",
    "is_tagged",
    "parse_term",
    "parse_terms",
    "proplist_get",
]
