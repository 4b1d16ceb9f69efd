"""phylo-explorer: metadata-driven annotation and inspection of phylogenetic trees."""

from ._version import __version__
from .core.metadata import MetadataIndex, read_metadata_tsv
from .core.colors import build_color_map, color_for
from .core.tree import TreeNode, descendant_leaves, extract_accession_version
from .annotation import (
    PieAggregator,
    PieSegment,
    StyleDirective,
    StyleOptions,
    build_label,
    compile_styles,
    matches,
    pie_segments,
)
from .layout.scale_bar import ScaleBarCalculator, ScaleBarState, compute_scale_bar
from .interaction.tooltip import TooltipSession


def explore(newick="", metadata=None, port=0, show=True):
    """Launch the interactive tree explorer in the browser.

    Parameters
    ----------
    newick : str
        Tree in Newick format. Leaf ids are matched to metadata by the
        part before the first '|'.
    metadata : list of dict or pd.DataFrame, optional
        One record per accession, each with an ``accessionVersion`` field.
    port : int
        Port number. 0 = auto-assign.
    show : bool
        Whether to open the browser automatically.
    """
    import pandas as pd

    from .dashboard.app import ExplorerApp

    if isinstance(metadata, pd.DataFrame):
        metadata = MetadataIndex.from_dataframe(metadata).records
    records = [dict(rec) for rec in metadata or []]
    app = ExplorerApp(newick=newick, metadata=records)
    app.serve(port=port, show=show)


__all__ = [
    "__version__",
    "explore",
    "MetadataIndex",
    "read_metadata_tsv",
    "build_color_map",
    "color_for",
    "TreeNode",
    "descendant_leaves",
    "extract_accession_version",
    "PieAggregator",
    "PieSegment",
    "StyleDirective",
    "StyleOptions",
    "build_label",
    "compile_styles",
    "matches",
    "pie_segments",
    "ScaleBarCalculator",
    "ScaleBarState",
    "compute_scale_bar",
    "TooltipSession",
]
