"""Serializers: convert engine outputs to JS-transferable formats."""

from __future__ import annotations

from collections.abc import Mapping

from ..annotation.style import StyleDirective
from ..core.metadata import MetadataIndex


def styles_to_dict(styles: Mapping[str, StyleDirective]) -> dict[str, dict]:
    """nodeId → {label, fill, stroke, strokeWidth} with unset keys dropped."""
    return {node_id: d.to_dict() for node_id, d in styles.items()}


def pie_payload(
    index: MetadataIndex,
    field: str | None,
    color_map: Mapping[str, str],
) -> dict | None:
    """Charting data for the renderer's collapsed-node pies.

    Returns None when there is no field to chart.
    """
    if not field:
        return None
    values = {}
    for accession in index:
        value = index.lookup(accession).get(field)
        if value is not None and value != "":
            values[accession] = str(value)
    return {
        "field": field,
        "colors": dict(color_map),
        "values": values,
    }
