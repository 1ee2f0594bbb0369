"""The data a template is rendered against: the vars table plus lookup tables."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from popvars.table import Record, Table

VARS_TABLE_NAME = "vars"


@dataclass
class Definition:
    """The driving ``vars`` table and every other table available to lookups.

    One output is rendered per record of ``vars``, in order.
    """

    vars: Table
    tables: dict[str, Table] = field(default_factory=dict)

    def get(self, name: str) -> Table | None:
        """Return the lookup table called *name*, or None."""
        return self.tables.get(name)

    @classmethod
    def from_records(
        cls, vars: list[Record], tables: Mapping[str, list[Record]] | None = None
    ) -> Definition:
        """Build a definition from in-memory records."""
        return cls(
            vars=Table(VARS_TABLE_NAME, vars),
            tables={name: Table(name, records) for name, records in (tables or {}).items()},
        )

    @classmethod
    def from_csv_strings(cls, vars_csv: str, tables: Mapping[str, str] | None = None) -> Definition:
        """Build a definition from CSV text keyed by table name."""
        return cls(
            vars=read_csv(VARS_TABLE_NAME, io.StringIO(vars_csv)),
            tables={name: read_csv(name, io.StringIO(text)) for name, text in (tables or {}).items()},
        )

    @classmethod
    def from_csv_files(cls, vars_path: Path, table_paths: Iterable[Path] = ()) -> Definition:
        """Load the vars table and lookup tables from CSV files.

        Each lookup table is named after its file's stem, e.g. ``country.csv``
        becomes the ``country`` table.
        """
        tables: dict[str, Table] = {}
        for path in table_paths:
            path = Path(path)
            name = path.stem
            if not name:
                raise ValueError(f"path `{path}` is missing a filename, which is needed to name the table")
            if name in tables:
                raise ValueError(f"Duplicate table name `{name}` (from {path})")
            tables[name] = load_csv(name, path)
        return cls(vars=load_csv(VARS_TABLE_NAME, Path(vars_path)), tables=tables)


def load_csv(name: str, path: Path) -> Table:
    """Read a CSV file with a header row into a table."""
    with open(path, newline="", encoding="utf-8") as f:
        return read_csv(name, f)


def read_csv(name: str, stream: io.TextIOBase) -> Table:
    """Read CSV text with a header row into a table.

    Every row must have exactly as many cells as the header.
    """
    reader = csv.reader(stream)
    try:
        header = next(reader)
    except StopIteration:
        return Table(name)

    records: list[Record] = []
    for row in reader:
        if not row:
            continue
        if len(row) != len(header):
            raise ValueError(
                f"Table `{name}` line {reader.line_num}: expected {len(header)} fields, found {len(row)}"
            )
        records.append(dict(zip(header, row)))
    return Table(name, records)
