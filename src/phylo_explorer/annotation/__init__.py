"""Leaf annotation: labels, search highlighting, pie summaries, styles."""

from .label import build_label
from .search import matches
from .pie import PieAggregator, PieSegment, pie_segments
from .style import HIGHLIGHT_STYLE, StyleDirective, StyleOptions, compile_styles

__all__ = [
    "build_label",
    "matches",
    "PieAggregator",
    "PieSegment",
    "pie_segments",
    "HIGHLIGHT_STYLE",
    "StyleDirective",
    "StyleOptions",
    "compile_styles",
]
