"""Compile parsed templates into a form that renders against many records."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, Union

from popvars._logging import get_logger
from popvars.parsing.nodes import Block, Comparison, Expand, ForTag, IfTag, Lookup, Node, Text
from popvars.parsing.template_parser import TemplateParser


# ---- Context-binding descriptors ----
#
# One per ``for`` block. They say how to find the records a loop iterates
# without touching any table.


@dataclass(frozen=True)
class TableBinding:
    """Every record of ``table``."""

    table: str


@dataclass(frozen=True)
class FilteredBinding:
    """Records of ``table`` for which ``where`` holds."""

    table: str
    where: Comparison


@dataclass(frozen=True)
class OtherBinding:
    """Records of ``table`` except the one ``lookup`` points at."""

    table: str
    lookup: Lookup


@dataclass(frozen=True)
class OtherFilteredBinding:
    """``OtherBinding`` and ``FilteredBinding`` combined."""

    table: str
    lookup: Lookup
    where: Comparison


Binding = Union[TableBinding, FilteredBinding, OtherBinding, OtherFilteredBinding]


def binding_for(tag: ForTag) -> Binding:
    """Build the descriptor for a ``for`` tag."""
    table = tag.lookup.table
    if tag.other and tag.where is not None:
        return OtherFilteredBinding(table, tag.lookup, tag.where)
    if tag.other:
        return OtherBinding(table, tag.lookup)
    if tag.where is not None:
        return FilteredBinding(table, tag.where)
    return TableBinding(table)


# ---- Compiled nodes ----


@dataclass(frozen=True)
class CompiledFor:
    name: str
    binding: Binding
    body: tuple[CompiledNode, ...] = ()


@dataclass(frozen=True)
class CompiledIf:
    comparison: Comparison
    body: tuple[CompiledNode, ...] = ()


CompiledNode = Union[Text, Expand, CompiledFor, CompiledIf]


@dataclass(frozen=True)
class CompiledTemplate:
    """A parsed and compiled template, reusable for any number of records."""

    nodes: tuple[CompiledNode, ...]
    source: str = ""


def compile_nodes(nodes: Iterable[Node]) -> tuple[CompiledNode, ...]:
    """Compile parsed nodes. Text and interpolations pass through unchanged."""
    compiled: list[CompiledNode] = []
    for node in nodes:
        if isinstance(node, Block):
            body = compile_nodes(node.body)
            tag = node.tag
            if isinstance(tag, ForTag):
                compiled.append(CompiledFor(tag.name, binding_for(tag), body))
            elif isinstance(tag, IfTag):
                compiled.append(CompiledIf(tag.comparison, body))
            else:
                raise TypeError(f"Unknown block tag: {tag!r}")
        else:
            compiled.append(node)
    return tuple(compiled)


# PLY parsers keep lexer and block state while parsing; one per thread
_local = threading.local()


def _default_parser() -> TemplateParser:
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = TemplateParser()
        parser.build(debug=False, write_tables=False)
        _local.parser = parser
    return parser


def compile_template(text: str, parser: TemplateParser | None = None) -> CompiledTemplate:
    """Parse and compile *text*.

    Raises TemplateSyntaxError if the template is malformed.
    """
    nodes = (parser or _default_parser()).parse(text)
    compiled = CompiledTemplate(compile_nodes(nodes), source=text)
    get_logger().debug(
        "compiled template",
        nodes=len(compiled.nodes),
        loops=_count(compiled.nodes, CompiledFor),
        conditionals=_count(compiled.nodes, CompiledIf),
    )
    return compiled


def _count(nodes: Iterable[CompiledNode], kind: type) -> int:
    total = 0
    for node in nodes:
        if isinstance(node, kind):
            total += 1
        if isinstance(node, (CompiledFor, CompiledIf)):
            total += _count(node.body, kind)
    return total
