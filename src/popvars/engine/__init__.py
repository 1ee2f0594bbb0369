"""Template compilation and rendering."""

from popvars.engine.compiler import CompiledTemplate, compile_nodes, compile_template
from popvars.engine.context import InheritedContext
from popvars.engine.evaluator import render, render_all

__all__ = [
    "CompiledTemplate",
    "InheritedContext",
    "compile_nodes",
    "compile_template",
    "render",
    "render_all",
]
