"""Render compiled templates against records."""

from __future__ import annotations

from typing import Iterable, Iterator

from popvars._logging import get_logger
from popvars.definition import Definition
from popvars.engine.compiler import (
    Binding,
    CompiledFor,
    CompiledIf,
    CompiledNode,
    CompiledTemplate,
    FilteredBinding,
    OtherBinding,
    OtherFilteredBinding,
)
from popvars.engine.context import (
    EMPTY_CONTEXT,
    InheritedContext,
    lookup_table,
    read_key,
    resolve_path,
)
from popvars.errors import RenderError, ResolutionError
from popvars.parsing.nodes import Comparison, Expand, Text
from popvars.table import ID_FIELD, Record
from popvars.values import matches


def render(compiled: CompiledTemplate, record: Record, definition: Definition) -> str:
    """Render *compiled* for one driving record.

    Raises ResolutionError if a field, table or ``$id`` cannot be found, or
    a compared field does not parse as the literal's type.
    """
    parts: list[str] = []
    _render_nodes(compiled.nodes, record, EMPTY_CONTEXT, definition, parts)
    return "".join(parts)


def render_all(compiled: CompiledTemplate, definition: Definition) -> list[str]:
    """Render *compiled* once per record of the vars table, in order.

    The first failing record aborts the batch with a RenderError carrying
    its 1-based row number.
    """
    log = get_logger()
    outputs: list[str] = []
    for row, record in enumerate(definition.vars, start=1):
        try:
            outputs.append(render(compiled, record, definition))
        except ResolutionError as e:
            log.error("render failed", row=row, error=str(e))
            raise RenderError(row, e) from e
        log.debug("rendered record", row=row, length=len(outputs[-1]))
    return outputs


def _render_nodes(
    nodes: Iterable[CompiledNode],
    record: Record,
    scope: InheritedContext,
    definition: Definition,
    parts: list[str],
) -> None:
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, Expand):
            parts.append(expand(node, record, scope, definition))
        elif isinstance(node, CompiledIf):
            if compare(node.comparison, record, scope, definition):
                _render_nodes(node.body, record, scope, definition, parts)
        elif isinstance(node, CompiledFor):
            for candidate in candidates(node.name, node.binding, record, scope, definition):
                _render_nodes(node.body, record, scope.bind(node.name, candidate), definition, parts)
        else:
            raise TypeError(f"Unknown node: {node!r}")


def expand(node: Expand, record: Record, scope: InheritedContext, definition: Definition) -> str:
    """Follow the lookups of *node* from *record* and read its final field."""
    context = resolve_path(node.path, record, scope, definition)
    try:
        return context[node.field]
    except KeyError:
        raise ResolutionError(
            f"Failed expansion: context is missing field `{node.field}`"
        ) from None


def compare(
    comparison: Comparison, record: Record, scope: InheritedContext, definition: Definition
) -> bool:
    """Evaluate ``field <op> literal``, reading the field as the literal's type."""
    text = expand(comparison.expand, record, scope, definition)
    try:
        return matches(text, comparison.comparator, comparison.literal)
    except ValueError as e:
        raise ResolutionError(
            f"Failed comparison `{comparison}`: {e}"
        ) from e


# ---- Loop candidates ----


def candidates(
    name: str,
    binding: Binding,
    record: Record,
    scope: InheritedContext,
    definition: Definition,
) -> Iterator[Record]:
    """Yield the records a ``for`` loop iterates, in table order."""
    table = lookup_table(definition, binding.table)
    excluded = None
    if isinstance(binding, (OtherBinding, OtherFilteredBinding)):
        excluded = _exclusion_key(binding, record, scope)
        # A table used by `other` must be indexable even if nothing is excluded
        table.index(excluded)
    where = binding.where if isinstance(binding, (FilteredBinding, OtherFilteredBinding)) else None

    for candidate in table:
        if excluded is not None and candidate.get(ID_FIELD) == excluded:
            continue
        if where is not None and not compare(where, candidate, scope.bind(name, candidate), definition):
            continue
        yield candidate


def _exclusion_key(
    binding: OtherBinding | OtherFilteredBinding, record: Record, scope: InheritedContext
) -> str:
    key_field = binding.lookup.key_field
    bound = scope.get(key_field)
    if bound is not None:
        return read_key(bound, ID_FIELD)
    return read_key(record, key_field)

