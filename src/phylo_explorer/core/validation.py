"""Input validation with clear error messages for tree annotation inputs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pandas as pd


ACCESSION_FIELD = "accessionVersion"


def validate_records(records: Any) -> list:
    """Validate that records is an iterable of mappings.

    Returns the records as a list (a single pass over generators is kept).
    """
    if isinstance(records, (str, bytes)) or isinstance(records, Mapping):
        raise TypeError(
            f"Expected a sequence of metadata records, got {type(records).__name__}. "
            "Pass a list of dicts, one per accession."
        )
    try:
        records = list(records)
    except TypeError:
        raise TypeError(
            f"Expected a sequence of metadata records, got {type(records).__name__}."
        ) from None
    bad = [i for i, rec in enumerate(records) if not isinstance(rec, Mapping)]
    if bad:
        raise TypeError(
            f"Metadata records must be mappings of field name to value. "
            f"Non-mapping entries at positions: {bad[:5]}"
            + (f" (and {len(bad) - 5} more)" if len(bad) > 5 else "")
        )
    return records


def validate_metadata_frame(df: Any) -> pd.DataFrame:
    """Validate that metadata is a DataFrame with an accession column."""
    if not isinstance(df, pd.DataFrame):
        raise TypeError(
            f"Metadata must be a pandas DataFrame, got {type(df).__name__}."
        )
    if ACCESSION_FIELD not in df.columns:
        raise ValueError(
            f"Metadata has no '{ACCESSION_FIELD}' column. "
            f"Available: {list(df.columns)[:10]}"
        )
    return df


def validate_label_fields(label_fields: Any) -> tuple[str, ...]:
    """Validate label fields: an ordered sequence of field names."""
    if isinstance(label_fields, str):
        raise TypeError(
            "label_fields must be a sequence of field names, not a single string. "
            f"Did you mean [{label_fields!r}]?"
        )
    fields = tuple(label_fields)
    bad = [f for f in fields if not isinstance(f, str)]
    if bad:
        raise TypeError(f"Label field names must be strings, got: {bad[:5]}")
    return fields
