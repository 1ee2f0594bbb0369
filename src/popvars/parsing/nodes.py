"""Template AST produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from popvars.values import Comparator, Literal


@dataclass(frozen=True)
class Lookup:
    """One join step: switch the context to a record of another table.

    The record is found by reading ``key_field`` from the current context and
    matching it against the ``$id`` of records in ``table``.
    """

    table: str
    index: str | None = None

    @property
    def key_field(self) -> str:
        """The field read from the current context: the explicit index, else the table name."""
        return self.index if self.index is not None else self.table

    def __str__(self) -> str:
        return self.table if self.index is None else f"{self.table}@{self.index}"


@dataclass(frozen=True)
class Expand:
    """An interpolation: follow ``path`` then read ``field``."""

    field: str
    path: tuple[Lookup, ...] = ()

    def __str__(self) -> str:
        return ".".join([*(str(lookup) for lookup in self.path), self.field])


@dataclass(frozen=True)
class Comparison:
    """A typed predicate: ``expand <comparator> literal``."""

    expand: Expand
    comparator: Comparator
    literal: Literal

    def __str__(self) -> str:
        return f"{self.expand} {self.comparator.value} {self.literal}"


@dataclass(frozen=True)
class Text:
    """Literal text, already unescaped."""

    value: str


@dataclass(frozen=True)
class ForTag:
    """``for [other] name in lookup [where comparison]``."""

    name: str
    lookup: Lookup
    where: Comparison | None = None
    other: bool = False

    keyword = "for"


@dataclass(frozen=True)
class IfTag:
    """``if comparison``."""

    comparison: Comparison

    keyword = "if"


BlockTag = Union[ForTag, IfTag]


@dataclass(frozen=True)
class Block:
    """A block tag paired with the nodes of its body."""

    tag: BlockTag
    body: tuple[Node, ...] = ()


Node = Union[Text, Expand, Block]
