"""SearchMatcher: case-insensitive free-text match against leaf metadata."""

from __future__ import annotations

from ..core.metadata import MetadataIndex
from ..core.tree import extract_accession_version


def matches(node_id: str, index: MetadataIndex, query: str) -> bool:
    """True if any metadata value of the leaf contains ``query``.

    Matching is a case-folded substring test. An empty query or a leaf
    without metadata never matches.
    """
    if not query or not index:
        return False
    record = index.lookup(extract_accession_version(node_id))
    if record is None:
        return False
    needle = query.casefold()
    return any(
        needle in str(value).casefold()
        for value in record.values()
        if value is not None
    )
