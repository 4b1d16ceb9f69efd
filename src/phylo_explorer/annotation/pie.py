"""PieAggregator: metadata distribution of an internal node's leaves."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import numpy as np

from ..core.colors import NEUTRAL_COLOR
from ..core.metadata import MetadataIndex
from ..core.tree import TreeNodeRef, descendant_leaves, extract_accession_version


@dataclass(frozen=True)
class PieSegment:
    """One slice of a node's pie chart. Angles are radians in [0, 2π]."""

    start_angle: float
    end_angle: float
    color: str
    value: str
    count: int
    proportion: float

    def to_dict(self) -> dict:
        return {
            "startAngle": self.start_angle,
            "endAngle": self.end_angle,
            "color": self.color,
            "value": self.value,
            "count": self.count,
            "proportion": self.proportion,
        }


def count_values(
    leaves: Iterable[TreeNodeRef],
    index: MetadataIndex,
    field: str,
) -> dict[str, int]:
    """Count ``field`` values over leaves, keyed in first-encountered order."""
    counts: dict[str, int] = {}
    for leaf in leaves:
        if not leaf.id:
            continue
        record = index.lookup(extract_accession_version(leaf.id))
        if record is None:
            continue
        value = record.get(field)
        if value is None or value == "":
            continue
        value = str(value)
        counts[value] = counts.get(value, 0) + 1
    return counts


def pie_segments(
    descendants: Iterable[TreeNodeRef],
    index: MetadataIndex,
    field: str,
    color_map: Mapping[str, str] | None = None,
) -> list[PieSegment]:
    """Summarize the ``field`` distribution over descendant leaves.

    Segments follow first-encountered value order and tile [0, 2π)
    without gaps. Returns an empty list when no leaf carries the field,
    which callers must treat as "no chart" rather than an empty pie.
    """
    counts = count_values(descendants, index, field)
    if not counts:
        return []

    color_map = color_map or {}
    values = list(counts)
    n = np.array([counts[v] for v in values], dtype=np.int64)
    total = int(n.sum())
    proportions = n / total
    ends = np.cumsum(proportions) * (2 * math.pi)
    starts = np.concatenate(([0.0], ends[:-1]))

    return [
        PieSegment(
            start_angle=float(starts[i]),
            end_angle=float(ends[i]),
            color=color_map.get(value, NEUTRAL_COLOR),
            value=value,
            count=int(n[i]),
            proportion=float(proportions[i]),
        )
        for i, value in enumerate(values)
    ]


class PieAggregator:
    """Pie summaries for internal nodes under one coloring field.

    Usage::

        agg = PieAggregator(index, "Country", color_map)
        segments = agg.for_node(clicked_node)
    """

    def __init__(
        self,
        index: MetadataIndex,
        field: str,
        color_map: Mapping[str, str] | None = None,
    ) -> None:
        self._index = index
        self._field = field
        self._color_map = dict(color_map or {})

    @property
    def field(self) -> str:
        return self._field

    def for_node(self, node: TreeNodeRef) -> list[PieSegment]:
        return pie_segments(
            descendant_leaves(node), self._index, self._field, self._color_map,
        )
