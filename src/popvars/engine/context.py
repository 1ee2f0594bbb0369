"""Scoped loop bindings and resolution of lookup steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from popvars.definition import Definition
from popvars.errors import ResolutionError
from popvars.parsing.nodes import Lookup
from popvars.table import Record, Table


@dataclass(frozen=True, eq=False)
class _Frame:
    name: str
    record: Record
    parent: _Frame | None


class InheritedContext:
    """The records bound by enclosing ``for`` loops, by loop name.

    Contexts are immutable. ``bind`` returns a new context that shares its
    parent's frames, so sibling iterations of a loop never see each other's
    bindings. An inner binding shadows an outer one with the same name.
    """

    __slots__ = ("_frame",)

    def __init__(self, frame: _Frame | None = None) -> None:
        self._frame = frame

    def bind(self, name: str, record: Record) -> InheritedContext:
        return InheritedContext(_Frame(name, record, self._frame))

    def get(self, name: str) -> Record | None:
        frame = self._frame
        while frame is not None:
            if frame.name == name:
                return frame.record
            frame = frame.parent
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[str]:
        """Yield bound names, innermost first, without repeats."""
        seen: set[str] = set()
        frame = self._frame
        while frame is not None:
            if frame.name not in seen:
                seen.add(frame.name)
                yield frame.name
            frame = frame.parent

    def __repr__(self) -> str:
        return f"InheritedContext({list(self)!r})"


EMPTY_CONTEXT = InheritedContext()


# ---- Lookup resolution ----


@dataclass(frozen=True, eq=False)
class BoundAlias:
    """The lookup's key field names a loop binding; use that record."""

    name: str
    record: Record

    def resolve(self, current: Record, definition: Definition) -> Record:
        return self.record


@dataclass(frozen=True)
class TableJoin:
    """Read the key field from the current context and find that ``$id``."""

    lookup: Lookup

    def resolve(self, current: Record, definition: Definition) -> Record:
        key = read_key(current, self.lookup.key_field)
        return lookup_table(definition, self.lookup.table).require(key)


Resolution = Union[BoundAlias, TableJoin]


def resolution_for(lookup: Lookup, scope: InheritedContext) -> Resolution:
    """Choose how one lookup step resolves under *scope*."""
    bound = scope.get(lookup.key_field)
    if bound is not None:
        return BoundAlias(lookup.key_field, bound)
    return TableJoin(lookup)


def resolve_path(
    path: Iterable[Lookup],
    start: Record,
    scope: InheritedContext,
    definition: Definition,
) -> Record:
    """Follow each lookup in *path*, starting at *start*, and return the final context."""
    current = start
    for lookup in path:
        current = resolution_for(lookup, scope).resolve(current, definition)
    return current


def read_key(context: Record, field: str) -> str:
    """Return the join key stored at *field*."""
    try:
        return context[field]
    except KeyError:
        raise ResolutionError(f"Failed lookup: field `{field}` did not exist in context") from None


def lookup_table(definition: Definition, name: str) -> Table:
    table = definition.get(name)
    if table is None:
        raise ResolutionError(f"Failed lookup: no table named `{name}`")
    return table
