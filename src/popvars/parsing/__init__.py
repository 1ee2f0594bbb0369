"""Parsing module for the template DSL."""

from popvars.parsing.nodes import (
    Block,
    BlockTag,
    Comparison,
    Expand,
    ForTag,
    IfTag,
    Lookup,
    Node,
    Text,
)
from popvars.parsing.template_lexer import TemplateLexer
from popvars.parsing.template_parser import TemplateParser

__all__ = [
    "Block",
    "BlockTag",
    "Comparison",
    "Expand",
    "ForTag",
    "IfTag",
    "Lookup",
    "Node",
    "TemplateLexer",
    "TemplateParser",
    "Text",
]
