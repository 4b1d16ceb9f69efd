"""LabelBuilder: leaf display labels from accession + metadata fields."""

from __future__ import annotations

from collections.abc import Sequence

from ..core.metadata import MetadataIndex
from ..core.tree import ID_DELIMITER, extract_accession_version


def build_label(
    node_id: str,
    index: MetadataIndex,
    label_fields: Sequence[str] = (),
) -> str:
    """Compose a leaf label: accession, then each non-empty label field.

    Fields are appended in the order given. Without a matching record the
    label is the accession alone.

    Usage::

        build_label("A1|S1", index, ["SampleID", "Country"])  # "A1|S1|USA"
    """
    accession = extract_accession_version(node_id)
    record = index.lookup(accession)
    if record is None:
        return accession

    parts = [accession]
    for name in label_fields:
        value = record.get(name)
        if value is not None and value != "":
            parts.append(str(value))
    return ID_DELIMITER.join(parts)
