"""Canonical textual rendering of Crisp values and expressions."""
from typing import Any

from crisp.system.types import ListExpr, NilLiteral, Number, Quote, String, Symbol, Unquote

NIL_TOKEN = "nil"


def render(value: Any) -> str:
    """
    Renders a value the way `debug` prints it.

    Numbers as decimal digits, Nil as ``nil``, symbols verbatim, lists
    parenthesized with space-separated elements. Quote and unquote nodes
    keep their prefix characters and strings are double-quoted.
    """
    # Combiners and suspended forms define their own __str__
    if isinstance(value, Number):
        return str(value.value)
    if isinstance(value, NilLiteral):
        return NIL_TOKEN
    if isinstance(value, Symbol):
        return value.name
    if isinstance(value, ListExpr):
        return "(" + " ".join(render(item) for item in value.items) + ")"
    if isinstance(value, Quote):
        return "'" + render(value.expression)
    if isinstance(value, Unquote):
        return "," + render(value.expression)
    if isinstance(value, String):
        escaped = value.value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return str(value)
