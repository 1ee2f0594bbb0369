"""popvars - render one text file per row of a table, with cross-table lookups."""

from popvars.definition import Definition
from popvars.engine import CompiledTemplate, compile_template, render, render_all
from popvars.errors import RenderError, ResolutionError, TemplateSyntaxError
from popvars.parsing import TemplateParser
from popvars.table import Record, Table

__all__ = [
    # Main API
    "compile_template",
    "render",
    "render_all",
    "CompiledTemplate",
    "TemplateParser",
    # Data
    "Definition",
    "Record",
    "Table",
    # Errors
    "TemplateSyntaxError",
    "ResolutionError",
    "RenderError",
]

__version__ = "0.1.0"
