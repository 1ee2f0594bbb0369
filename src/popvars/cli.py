"""Command-line entry point: render a template once per vars row.

Usage:
    popvars TEMPLATE -v VARS.csv [-t TABLE.csv ...] [-o OUT_DIR]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from popvars import __version__
from popvars._logging import DEFAULT_LOG_LEVEL, configure_logging
from popvars.definition import Definition
from popvars.engine import CompiledTemplate, compile_template, render_all
from popvars.errors import RenderError, TemplateSyntaxError
from popvars.table import OUTFILE_FIELD

EXIT_OK = 0
EXIT_LOAD_ERROR = 1
EXIT_SYNTAX_ERROR = 2
EXIT_RENDER_ERROR = 3


def output_paths(template_path: Path, definition: Definition, out_dir: Path) -> list[Path]:
    """Pick one output file per vars record.

    A record's ``$outfile`` names its file inside *out_dir*; records without
    one get ``<template stem>-<row><template suffix>``.
    """
    paths = []
    for row, record in enumerate(definition.vars, start=1):
        outfile = record.get(OUTFILE_FIELD, "")
        if outfile:
            paths.append(out_dir / outfile)
        else:
            paths.append(out_dir / f"{template_path.stem}-{row}{template_path.suffix}")
    return paths


def write_outputs(outputs: list[str], paths: list[Path]) -> None:
    for output, path in zip(outputs, paths):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output, encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="popvars",
        description="Populate a template once for every row of a vars table",
    )
    parser.add_argument(
        "template",
        type=Path,
        help="Path to the template text file",
    )
    parser.add_argument(
        "-v", "--vars",
        type=Path,
        required=True,
        help="Path to a CSV file of vars; one output is rendered per row",
    )
    parser.add_argument(
        "-t", "--table", "--types",
        dest="tables",
        type=Path,
        action="append",
        default=[],
        help="Path to a CSV lookup table, named after its file stem (repeatable)",
    )
    parser.add_argument(
        "-o", "--out",
        type=Path,
        default=None,
        help="Directory to write outputs to (default: print to stdout)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help=f"Log level for stderr diagnostics (default: {DEFAULT_LOG_LEVEL})",
    )
    parser.add_argument(
        "--log-format",
        default="text",
        choices=["text", "json"],
        help="Format of stderr diagnostics (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args(argv)
    log = configure_logging(args.log_level, log_format=args.log_format)

    try:
        source = args.template.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: Could not read template: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    try:
        definition = Definition.from_csv_files(args.vars, args.tables)
    except (OSError, ValueError) as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR
    log.debug(
        "loaded definition",
        vars=len(definition.vars),
        vars_fields=definition.vars.fields,
        tables={name: table.fields for name, table in definition.tables.items()},
    )

    try:
        compiled: CompiledTemplate = compile_template(source)
    except TemplateSyntaxError as e:
        print(f"Error: {args.template}: {e}", file=sys.stderr)
        return EXIT_SYNTAX_ERROR

    try:
        outputs = render_all(compiled, definition)
    except RenderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RENDER_ERROR

    if args.out is None:
        print("\n".join(outputs))
        return EXIT_OK

    try:
        write_outputs(outputs, output_paths(args.template, definition, args.out))
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR
    log.info("wrote outputs", count=len(outputs), out_dir=str(args.out))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
