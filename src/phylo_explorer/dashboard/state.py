"""ExplorerState: centralized state for the tree explorer."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

import param

from ..annotation.style import StyleDirective, StyleOptions, compile_styles
from ..core.colors import build_color_map
from ..core.metadata import MetadataIndex
from ..core.tree import TreeNode, TreeNodeRef
from ..core.validation import ACCESSION_FIELD
from ..interaction.tooltip import Scheduler, TooltipSession, call_later
from ..layout.scale_bar import FALLBACK_SCALE_BAR, ScaleBarCalculator, ScaleBarState
from ..renderer.base import TreeRenderer
from ..renderer.serializers import pie_payload, styles_to_dict
from ..services.loader import ResourceLoader
from ..services.tree_builder import TreeBuildError


logger = logging.getLogger(__name__)

TREE_BUILDER = "tree_builder"


class ExplorerState(param.Parameterized):
    """Holds user options and recomputes renderer directives on change.

    Every change to metadata, the coloring field, the search term or the
    label fields recompiles the full style map and pushes it to the
    renderer. A new tree clears a tooltip whose node is gone.

    ``scheduler`` defers the tooltip hide after a collapse. The default
    uses the running asyncio loop, which is the Panel server loop when
    served. With no running loop, as in a plain script, the hide happens
    immediately.
    """

    # --- Data ---
    metadata = param.List(default=[], doc="Metadata records, one per accession")
    newick = param.String(default="", doc="Current tree in Newick format")

    # --- User options ---
    selected_field = param.String(default=None, allow_None=True)
    search_term = param.String(default="")
    label_fields = param.List(default=[], item_type=str)
    show_pie_charts = param.Boolean(default=True)

    # --- Viewport (for tooltip clamping) ---
    viewport_width = param.Number(default=1000.0, bounds=(1, None))
    viewport_height = param.Number(default=800.0, bounds=(1, None))

    # --- Derived, read by the UI ---
    scale_bar = param.ClassSelector(class_=ScaleBarState, default=FALLBACK_SCALE_BAR)
    tooltip_content = param.Dict(default={"visible": False})
    status_text = param.String(default="")

    def __init__(
        self,
        renderer: TreeRenderer | None = None,
        loader: ResourceLoader | None = None,
        scheduler: Scheduler | None = None,
        **params,
    ):
        super().__init__(**params)
        self._renderer = renderer
        self._loader = loader
        self._leaves: list[TreeNodeRef] = []
        self.index = MetadataIndex()
        self.color_map: dict[str, str] = {}
        self.styles: dict[str, StyleDirective] = {}
        base_scheduler = scheduler or call_later
        self.tooltip = TooltipSession(
            scheduler=lambda delay, cb: base_scheduler(
                delay, lambda: self._after(cb),
            ),
        )

        self._on_metadata()
        if renderer is not None:
            renderer.on("click", self.handle_node_click)
            renderer.on("zoom", self.update_scale_bar)
            renderer.on("layout", self.set_leaves)
            if self.newick:
                renderer.set_tree(self.newick)

    # --- Introspection for the UI ---

    @property
    def renderer(self) -> TreeRenderer | None:
        return self._renderer

    @property
    def leaves(self) -> list[TreeNodeRef]:
        return list(self._leaves)

    def get_metadata_fields(self) -> list[str]:
        """Fields available for coloring and labels (accession excluded)."""
        return [f for f in self.index.fields if f != ACCESSION_FIELD]

    # --- Recomputation ---

    @param.depends("metadata", watch=True)
    def _on_metadata(self) -> None:
        self.index = MetadataIndex.build(self.metadata)
        logger.debug("Indexed %d metadata records", len(self.index))
        self._refresh_color_map()
        self.recompute_styles()

    @param.depends("selected_field", watch=True)
    def _on_selected_field(self) -> None:
        self._refresh_color_map()
        self.recompute_styles()

    @param.depends("search_term", "label_fields", watch=True)
    def _on_style_options(self) -> None:
        self.recompute_styles()

    @param.depends("show_pie_charts", watch=True)
    def _on_show_pie_charts(self) -> None:
        self._push_pie_charts()

    @param.depends("newick", watch=True)
    def _on_newick(self) -> None:
        self.tooltip.close()
        self._refresh_tooltip()
        if self._renderer is not None:
            self._renderer.set_tree(self.newick)

    def _refresh_color_map(self) -> None:
        if self.selected_field:
            self.color_map = build_color_map(self.index.records, self.selected_field)
        else:
            self.color_map = {}

    def style_options(self) -> StyleOptions:
        return StyleOptions(
            selected_field=self.selected_field,
            color_map=self.color_map,
            search_term=self.search_term,
            label_fields=tuple(self.label_fields),
        )

    def recompute_styles(self) -> dict[str, StyleDirective]:
        """Compile styles for the current leaves and push them to the renderer."""
        self.styles = compile_styles(self._leaves, self.index, self.style_options())
        logger.debug("Compiled %d style directives", len(self.styles))
        if self._renderer is not None:
            self._renderer.set_styles(styles_to_dict(self.styles))
            self._push_pie_charts()
        return self.styles

    def _push_pie_charts(self) -> None:
        if self._renderer is None:
            return
        payload = pie_payload(self.index, self.selected_field, self.color_map)
        self._renderer.set_pie_charts(self.show_pie_charts and payload is not None, payload)

    # --- Renderer events ---

    def set_leaves(
        self,
        leaves: Iterable[TreeNodeRef],
        nodes: Iterable[TreeNodeRef] | None = None,
    ) -> None:
        """Adopt the leaves of a newly laid-out tree.

        ``nodes`` is every node of the new tree when the renderer has
        them; otherwise the leaves are used to check the tooltip target.
        """
        self._leaves = list(leaves)
        live = self._leaves if nodes is None else list(nodes)
        if self.tooltip.invalidate_if_stale(live):
            self._refresh_tooltip()
        self.recompute_styles()
        self.update_scale_bar()

    def update_scale_bar(self) -> ScaleBarState:
        self.scale_bar = ScaleBarCalculator.from_renderer(self._renderer)
        return self.scale_bar

    def handle_node_click(
        self,
        node: TreeNodeRef | Mapping | None,
        x: float = 0.0,
        y: float = 0.0,
    ) -> None:
        """Open the tooltip for a clicked node; None is a background click."""
        if node is None:
            self.tooltip.background_click()
        else:
            if isinstance(node, Mapping):
                node = TreeNode.from_dict(node)
            self.tooltip.open(
                node, x, y, self.index,
                selected_field=self.selected_field,
                color_map=self.color_map,
            )
        self._refresh_tooltip()

    # --- Tooltip actions ---

    def tooltip_pointer_down(self, x: float, y: float) -> None:
        self.tooltip.pointer_down(x, y)
        self._refresh_tooltip()

    def tooltip_pointer_move(self, x: float, y: float) -> None:
        self.tooltip.pointer_move(x, y)
        self._refresh_tooltip()

    def tooltip_pointer_up(self, x: float | None = None, y: float | None = None) -> None:
        self.tooltip.pointer_up(x, y)
        self._refresh_tooltip()

    def close_tooltip(self) -> None:
        self.tooltip.close()
        self._refresh_tooltip()

    def toggle_collapse(self) -> bool:
        if self._renderer is None:
            return False
        toggled = self.tooltip.toggle_collapse(self._renderer)
        self._refresh_tooltip()
        return toggled

    @param.depends("viewport_width", "viewport_height", watch=True)
    def _refresh_tooltip(self) -> None:
        self.tooltip_content = self.tooltip.to_dict(self.viewport_width, self.viewport_height)

    def _after(self, callback) -> None:
        callback()
        self._refresh_tooltip()

    # --- Tree building ---

    async def build_tree(self, alignment: str) -> str:
        """Build a tree for an alignment with the loader's tree builder.

        Sets ``newick`` on success. TreeBuildError is reported in
        ``status_text`` and re-raised.
        """
        if self._loader is None:
            raise RuntimeError("No resource loader configured for tree building.")
        self.status_text = "Building tree..."
        try:
            builder = await self._loader.get(TREE_BUILDER)
            newick = await builder.build(alignment)
        except TreeBuildError as exc:
            logger.error("Tree build failed: %s", exc)
            self.status_text = f"Tree build failed: {exc}"
            raise
        self.status_text = ""
        self.newick = newick
        return newick
