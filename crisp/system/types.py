"""Expression node implementations for the Crisp language.

The reader produces trees of these nodes and the evaluator consumes them.
Nodes are immutable and compare by value. Because quoted code is returned
to the program as data, the same classes double as the datum
representation: a quoted list evaluates to the ``ListExpr`` node itself, a
number literal evaluates to its own ``Number`` node, and so on.
"""
from typing import Any, Iterator, Sequence, Tuple


class Expression:
    """Base class for all expression nodes."""

    __slots__ = ()

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} nodes are immutable")

    def _init_field(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)


class Symbol(Expression):
    """
    A named atom.

    Attributes:
        name: The symbol's name exactly as written in the source.
    """

    __slots__ = ("name",)

    def __init__(self, name: str):
        if not isinstance(name, str) or not name:
            raise ValueError(f"Symbol name must be a non-empty string, got {name!r}")
        self._init_field("name", name)

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Symbol) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("symbol", self.name))


class Number(Expression):
    """
    An integer literal and the Number value.

    Attributes:
        value: The Python integer held by the node.
    """

    __slots__ = ("value",)

    def __init__(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Number value must be an int, got {type(value).__name__}")
        self._init_field("value", value)

    def __repr__(self) -> str:
        return f"Number({self.value})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Number) and other.value == self.value

    def __hash__(self) -> int:
        return hash(("number", self.value))


class String(Expression):
    """A double-quoted string literal."""

    __slots__ = ("value",)

    def __init__(self, value: str):
        self._init_field("value", value)

    def __repr__(self) -> str:
        return f"String({self.value!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, String) and other.value == self.value

    def __hash__(self) -> int:
        return hash(("string", self.value))


class ListExpr(Expression):
    """
    An ordered sequence of expressions, written ``(a b c)`` or ``[a b c]``.

    As a datum this is the List value returned by quoting, ``list`` and ``cdr``.
    """

    __slots__ = ("items",)

    def __init__(self, items: Sequence[Expression] = ()):
        self._init_field("items", tuple(items))

    def __repr__(self) -> str:
        return f"ListExpr({list(self.items)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ListExpr) and other.items == self.items

    def __hash__(self) -> int:
        return hash(("list", self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Expression]:
        return iter(self.items)

    def __getitem__(self, index):
        return self.items[index]

    @property
    def head(self) -> Expression:
        return self.items[0]

    @property
    def operands(self) -> Tuple[Expression, ...]:
        return self.items[1:]


class Quote(Expression):
    """``'expr``: evaluates to ``expr`` itself, unevaluated."""

    __slots__ = ("expression",)

    def __init__(self, expression: Expression):
        self._init_field("expression", expression)

    def __repr__(self) -> str:
        return f"Quote({self.expression!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Quote) and other.expression == self.expression

    def __hash__(self) -> int:
        return hash(("quote", self.expression))


class Unquote(Expression):
    """``,expr``: forces a suspended parameter, or evaluates ``expr`` normally."""

    __slots__ = ("expression",)

    def __init__(self, expression: Expression):
        self._init_field("expression", expression)

    def __repr__(self) -> str:
        return f"Unquote({self.expression!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Unquote) and other.expression == self.expression

    def __hash__(self) -> int:
        return hash(("unquote", self.expression))


class NilLiteral(Expression):
    """The unique falsy value. Use the ``NIL`` singleton, never instantiate directly."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NIL"

    def __eq__(self, other: object) -> bool:
        return other is self

    def __hash__(self) -> int:
        return hash("nil")

    def __bool__(self) -> bool:
        return False


NIL = NilLiteral()

# Bound to itself in every global environment; the canonical truthy answer
# returned by predicates such as `=`.
T = Symbol("t")


def make_list(values: Sequence[Expression]) -> Expression:
    """Builds a List datum, collapsing the empty list to NIL."""
    if not values:
        return NIL
    return ListExpr(values)


def is_nil(value: Any) -> bool:
    """Nil is the only falsy value; zero, empty strings and combiners are truthy."""
    return value is NIL
