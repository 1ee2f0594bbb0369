"""Tables of string-keyed records."""

from __future__ import annotations

from enum import Enum
from functools import cached_property
from typing import Iterator

from popvars.errors import ResolutionError

# Field name -> text value. Every cell is text; typed interpretation happens
# where a value is compared.
Record = dict[str, str]


class SpecialField(Enum):
    """Field names with engine-defined meaning."""

    ID = "$id"
    OUTFILE = "$outfile"


ID_FIELD = SpecialField.ID.value
OUTFILE_FIELD = SpecialField.OUTFILE.value


class Table:
    """A named, ordered sequence of records.

    Tables may be indexed by the value of their ``$id`` field. The index is
    built the first time it is needed; every record must then carry ``$id``.
    """

    def __init__(self, name: str, records: list[Record] | None = None) -> None:
        self.name = name
        self.records: list[Record] = list(records) if records else []

    def __repr__(self) -> str:
        return f"Table({self.name!r}, {len(self.records)} records)"

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def fields(self) -> list[str]:
        """Field names in first-seen order across all records."""
        seen: dict[str, None] = {}
        for record in self.records:
            for name in record:
                seen.setdefault(name, None)
        return list(seen)

    @cached_property
    def _id_index(self) -> dict[str, Record]:
        index: dict[str, Record] = {}
        for position, record in enumerate(self.records, start=1):
            key = record.get(ID_FIELD)
            if key is None:
                raise ResolutionError(
                    f"Invalid table `{self.name}`: record {position} has no {ID_FIELD} field"
                )
            # Duplicate ids resolve to the first record in table order
            index.setdefault(key, record)
        return index

    def index(self, key: str) -> Record | None:
        """Return the record whose ``$id`` equals *key*, or None.

        Raises ResolutionError if the table is not empty and any record lacks
        an ``$id`` field.
        """
        if not self.records:
            return None
        return self._id_index.get(key)

    def require(self, key: str) -> Record:
        """Return the record whose ``$id`` equals *key*, raising if absent."""
        record = self.index(key)
        if record is None:
            raise ResolutionError(
                f"Failed lookup: expected to find a `{self.name}` with {ID_FIELD}={key}"
            )
        return record
