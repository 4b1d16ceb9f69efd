"""MetadataIndex: accession → metadata record lookup."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

import pandas as pd

from .validation import ACCESSION_FIELD, validate_metadata_frame, validate_records


MetadataRecord = Mapping[str, str]


class MetadataIndex:
    """Immutable lookup from accessionVersion to its metadata record.

    Built in a single pass. Records without an accession are dropped, and
    when the same accession appears twice the later record wins. Records
    are stored read-only; reloading metadata means building a new index.
    """

    __slots__ = ("_records", "_fields")

    def __init__(self, records: Mapping[str, MetadataRecord] | None = None) -> None:
        self._records: dict[str, MetadataRecord] = dict(records or {})
        fields: dict[str, None] = {}
        for rec in self._records.values():
            fields.update(dict.fromkeys(rec))
        self._fields = tuple(fields)

    @classmethod
    def build(cls, records: Iterable[Mapping]) -> MetadataIndex:
        """Index records by their accessionVersion value."""
        indexed: dict[str, MetadataRecord] = {}
        for rec in validate_records(records):
            key = rec.get(ACCESSION_FIELD)
            if key is None or key == "":
                continue
            indexed[str(key)] = MappingProxyType(dict(rec))
        return cls(indexed)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> MetadataIndex:
        """Build an index from a DataFrame with an accessionVersion column.

        Missing values are left out of the record; everything else is
        stored as its string form.
        """
        df = validate_metadata_frame(df)
        records = []
        for row in df.to_dict("records"):
            records.append({
                str(k): str(v) for k, v in row.items() if not pd.isna(v)
            })
        return cls.build(records)

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names across all records, in first-seen order."""
        return self._fields

    @property
    def records(self) -> list[MetadataRecord]:
        return list(self._records.values())

    def lookup(self, accession: str) -> MetadataRecord | None:
        """Return the record for an accession, or None on a lookup miss."""
        return self._records.get(accession)

    def get(self, accession: str, default=None):
        return self._records.get(accession, default)

    def __contains__(self, accession: object) -> bool:
        return accession in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __repr__(self) -> str:
        return f"MetadataIndex(records={len(self._records)}, fields={len(self._fields)})"


def read_metadata_tsv(path_or_buffer) -> list[dict[str, str]]:
    """Read tab-separated metadata with a header row.

    All values are read as strings. Rows whose field count differs from
    the header are skipped rather than padded.
    """
    df = pd.read_csv(
        path_or_buffer,
        sep="\t",
        dtype=str,
        keep_default_na=False,
        on_bad_lines="skip",
        quoting=csv.QUOTE_NONE,
        engine="python",
    )
    # Short rows come back with NaN in the trailing columns
    df = df.dropna(how="any")
    return df.to_dict("records")
