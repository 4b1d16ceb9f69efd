"""StyleCompiler: per-leaf label and color directives for the renderer."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from ..core.metadata import MetadataIndex
from ..core.tree import TreeNodeRef, extract_accession_version
from ..core.validation import validate_label_fields
from .label import build_label
from .search import matches


@dataclass(frozen=True)
class StyleDirective:
    """Style override for one node. ``None`` means "leave as is"."""

    label: str | None = None
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None

    @property
    def has_style(self) -> bool:
        return any(v is not None for v in (self.fill, self.stroke, self.stroke_width))

    def to_dict(self) -> dict:
        out = {
            "label": self.label,
            "fill": self.fill,
            "stroke": self.stroke,
            "strokeWidth": self.stroke_width,
        }
        return {k: v for k, v in out.items() if v is not None}


# Search hits override any color mapping
HIGHLIGHT_STYLE = StyleDirective(fill="#ff4136", stroke="#85144b", stroke_width=2.0)


@dataclass(frozen=True)
class StyleOptions:
    """User-selected inputs to a style compilation."""

    selected_field: str | None = None
    color_map: Mapping[str, str] = field(default_factory=dict)
    search_term: str = ""
    label_fields: Sequence[str] = ()


def compile_styles(
    leaves: Iterable[TreeNodeRef],
    index: MetadataIndex,
    options: StyleOptions,
) -> dict[str, StyleDirective]:
    """Compile the sparse nodeId → StyleDirective map for all leaves.

    Every leaf gets its built label. A search hit gets HIGHLIGHT_STYLE;
    otherwise a leaf whose ``selected_field`` value is in the color map
    gets that fill. Leaves where nothing would change are left out.
    """
    label_fields = validate_label_fields(options.label_fields)
    styles: dict[str, StyleDirective] = {}

    for leaf in leaves:
        node_id = leaf.id
        if not node_id:
            continue
        label = build_label(node_id, index, label_fields)

        if options.search_term and matches(node_id, index, options.search_term):
            styles[node_id] = StyleDirective(
                label=label,
                fill=HIGHLIGHT_STYLE.fill,
                stroke=HIGHLIGHT_STYLE.stroke,
                stroke_width=HIGHLIGHT_STYLE.stroke_width,
            )
            continue

        directive = StyleDirective(label=label, fill=_mapped_fill(node_id, index, options))
        if directive.has_style or label != node_id:
            styles[node_id] = directive

    return styles


def _mapped_fill(
    node_id: str,
    index: MetadataIndex,
    options: StyleOptions,
) -> str | None:
    if not options.selected_field or not options.color_map:
        return None
    record = index.lookup(extract_accession_version(node_id))
    if record is None:
        return None
    value = record.get(options.selected_field)
    if value is None:
        return None
    return options.color_map.get(str(value))
