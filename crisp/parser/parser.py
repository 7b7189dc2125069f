"""
Reader for Crisp source text.
Tokenizes source strings and parses them into expression trees
(see crisp.system.types).
"""

import logging
import re
from typing import Iterator, List, Optional

from crisp.system.errors import CrispSyntaxError
from crisp.system.types import NIL, Expression, Number, Quote, String, Symbol, Unquote, make_list

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"""
    (?P<ws>\s+)|
    (?P<comment>;[^\n]*)|
    (?P<open>[(\[])|
    (?P<close>[)\]])|
    (?P<quote>')|
    (?P<unquote>,)|
    "(?P<string>(?:\\.|[^\\"])*)"|
    (?P<badstring>")|
    (?P<atom>[^\s()\[\]'",;]+)|
    (?P<error>.)
""", re.X | re.S)

INTEGER_RE = re.compile(r"[+-]?\d+\Z")

CLOSERS = {"(": ")", "[": "]"}

ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}


class Token:
    def __init__(self, type: str, text: str, line: int, column: int):
        self.type = type
        self.text = text
        self.line = line
        self.column = column

    def __repr__(self) -> str:
        return f"Token({self.type!r}, {self.text!r}, {self.line}:{self.column})"


class Tokenizer:
    """Splits source text into tokens, tracking line and column for error messages."""

    def __init__(self, source: str):
        self.source = source

    def _position(self, offset: int):
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1) + 1
        return line, column

    def run(self) -> Iterator[Token]:
        for match in TOKEN_RE.finditer(self.source):
            kind = match.lastgroup
            if kind in ("ws", "comment"):
                continue
            line, column = self._position(match.start())
            if kind == "error":
                raise CrispSyntaxError(f"Unexpected character: {match.group()!r}", self.source, line=line, column=column)
            if kind == "badstring":
                raise CrispSyntaxError("Unterminated string literal", self.source, line=line, column=column)
            text = match.group(kind) if kind == "string" else match.group()
            yield Token(kind, text, line, column)


class CrispParser:
    """
    Parses Crisp source strings into expression trees.

    Syntax: integer and symbol atoms, `nil`, double-quoted strings,
    `( ... )` and `[ ... ]` lists, `'expr` (Quote) and `,expr` (Unquote),
    and `;` line comments.
    """

    def parse_string(self, source: str) -> Expression:
        """
        Parses a single expression from a string.

        Args:
            source: The string containing exactly one expression.

        Returns:
            The parsed expression tree.

        Raises:
            CrispSyntaxError: If the input has syntax errors, is empty,
                              or contains more than one top-level expression.
            TypeError: If the input is not a string.
        """
        expressions = self.parse_program(source)
        if not expressions:
            logger.error("Parsing failed: input is empty or contains only whitespace/comments.")
            raise CrispSyntaxError("Input string is empty or contains only whitespace.", source)
        if len(expressions) > 1:
            logger.error(f"Parsing failed: {len(expressions)} top-level expressions found.")
            raise CrispSyntaxError(
                "Multiple top-level expressions found. Use (progn ...) or parse_program.",
                source,
                error_details=f"Found {len(expressions)} expressions",
            )
        return expressions[0]

    def parse_program(self, source: str) -> List[Expression]:
        """
        Parses every top-level expression in `source`, in order.

        An empty program (only whitespace or comments) yields an empty list.
        """
        if not isinstance(source, str):
            raise TypeError("Input must be a string.")

        logger.debug(f"Parsing program of {len(source)} characters")
        tokens = list(Tokenizer(source).run())
        reader = _TokenReader(tokens, source)
        expressions = []
        while not reader.at_end():
            expressions.append(reader.read())
        logger.debug(f"Parsed {len(expressions)} top-level expressions")
        return expressions


class _TokenReader:
    """Recursive-descent reader over a fully tokenized source."""

    def __init__(self, tokens: List[Token], source: str):
        self.tokens = tokens
        self.source = source
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def _next(self, context: str) -> Token:
        if self.at_end():
            last = self.tokens[-1] if self.tokens else None
            raise CrispSyntaxError(
                f"Unexpected end of input {context}",
                self.source,
                line=last.line if last else 0,
                column=last.column if last else 0,
            )
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def read(self, context: str = "") -> Expression:
        token = self._next(context or "while reading an expression")
        if token.type == "open":
            return self._read_list(token)
        if token.type == "close":
            raise CrispSyntaxError(
                f"Unexpected '{token.text}'", self.source,
                error_details="Unbalanced parentheses or brackets.",
                line=token.line, column=token.column,
            )
        if token.type == "quote":
            return Quote(self.read("after quote (')"))
        if token.type == "unquote":
            return Unquote(self.read("after unquote (,)"))
        if token.type == "string":
            return String(_unescape(token.text))
        return _atom(token.text)

    def _read_list(self, opener: Token) -> Expression:
        """Reads list items up to the matching closer. An empty list reads as nil."""
        closer = CLOSERS[opener.text]
        items = []
        while True:
            if self.at_end():
                raise CrispSyntaxError(
                    f"Unbalanced parentheses: missing '{closer}'", self.source,
                    error_details="List opened here was never closed",
                    line=opener.line, column=opener.column,
                )
            token = self.tokens[self.pos]
            if token.type == "close":
                self.pos += 1
                if token.text != closer:
                    raise CrispSyntaxError(
                        f"Mismatched '{token.text}', expected '{closer}'", self.source,
                        line=token.line, column=token.column,
                    )
                return make_list(items)
            items.append(self.read(f"inside list opened at line {opener.line}"))


def _atom(text: str) -> Expression:
    if INTEGER_RE.match(text):
        return Number(int(text))
    if text == "nil":
        return NIL
    return Symbol(text)


def _unescape(body: str) -> str:
    out = []
    chars = iter(body)
    for ch in chars:
        if ch == "\\":
            escaped: Optional[str] = next(chars, "")
            out.append(ESCAPES.get(escaped, escaped))
        else:
            out.append(ch)
    return "".join(out)
