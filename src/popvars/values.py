"""Typed literals and comparison of field text against them."""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

UINT64_MAX = 2**64 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_UNSIGNED_RE = re.compile(r"\+?\d+")
_SIGNED_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


class LiteralKind(Enum):
    """The declared type of a comparison literal."""

    UNSIGNED = "unsigned integer"
    SIGNED = "signed integer"
    FLOAT = "float"
    TEXT = "text"


class Comparator(Enum):
    """Comparison operators, keyed by their template spelling."""

    EQ = "="
    NEQ = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="

    @property
    def function(self) -> Callable[[Any, Any], bool]:
        return _OPERATORS[self]

    def compare(self, left: Any, right: Any) -> bool:
        """Return ``left <op> right``."""
        return self.function(left, right)


_OPERATORS: dict[Comparator, Callable[[Any, Any], bool]] = {
    Comparator.EQ: operator.eq,
    Comparator.NEQ: operator.ne,
    Comparator.GT: operator.gt,
    Comparator.LT: operator.lt,
    Comparator.GTE: operator.ge,
    Comparator.LTE: operator.le,
}


@dataclass(frozen=True)
class Literal:
    """A literal on the right-hand side of a comparison."""

    kind: LiteralKind
    value: int | float | str

    @classmethod
    def text(cls, value: str) -> Literal:
        return cls(LiteralKind.TEXT, value)

    def __str__(self) -> str:
        if self.kind is LiteralKind.TEXT:
            return f'"{self.value}"'
        return str(self.value)


def parse_unsigned(text: str) -> int | None:
    """Parse *text* as a 64-bit unsigned integer, or return None."""
    if not _UNSIGNED_RE.fullmatch(text):
        return None
    value = int(text)
    return value if value <= UINT64_MAX else None


def parse_signed(text: str) -> int | None:
    """Parse *text* as a 64-bit signed integer, or return None."""
    if not _SIGNED_RE.fullmatch(text):
        return None
    value = int(text)
    return value if INT64_MIN <= value <= INT64_MAX else None


def parse_float(text: str) -> float | None:
    """Parse *text* as a float, or return None."""
    if not _FLOAT_RE.fullmatch(text):
        return None
    return float(text)


def parse_number_literal(text: str) -> Literal | None:
    """Classify a numeric literal.

    The first form that parses wins: unsigned integer, then signed integer,
    then float. A leading ``+`` is treated as part of a signed literal so
    that the spelling in the template decides the type.
    """
    if not text.startswith("+"):
        unsigned = parse_unsigned(text)
        if unsigned is not None:
            return Literal(LiteralKind.UNSIGNED, unsigned)
    signed = parse_signed(text)
    if signed is not None:
        return Literal(LiteralKind.SIGNED, signed)
    number = parse_float(text)
    if number is not None:
        return Literal(LiteralKind.FLOAT, number)
    return None


_PARSERS: dict[LiteralKind, Callable[[str], Any]] = {
    LiteralKind.UNSIGNED: parse_unsigned,
    LiteralKind.SIGNED: parse_signed,
    LiteralKind.FLOAT: parse_float,
}


def coerce(text: str, kind: LiteralKind) -> int | float | str:
    """Interpret a field's text as *kind*.

    Raises ValueError when the text is not a valid value of that kind.
    """
    if kind is LiteralKind.TEXT:
        return text
    value = _PARSERS[kind](text)
    if value is None:
        raise ValueError(f"{text!r} is not a valid {kind.value}")
    return value


def matches(text: str, comparator: Comparator, literal: Literal) -> bool:
    """Compare a field's text against *literal* using the literal's type."""
    return comparator.compare(coerce(text, literal.kind), literal.value)
