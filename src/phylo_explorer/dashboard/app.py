"""ExplorerApp: assembles the Panel template and serves the tree explorer."""

from __future__ import annotations

import io
import json
import logging

import panel as pn

from ..core.metadata import read_metadata_tsv
from ..display_utils import prettify_name
from ..services.loader import ResourceLoader
from ..services.tree_builder import FastTreeBuilder, TreeBuildError
from .state import TREE_BUILDER, ExplorerState
from .tree_pane import PhylocanvasRenderer


logger = logging.getLogger(__name__)

NO_FIELD = "(none)"


class ExplorerApp:
    """Sidebar controls + phylocanvas tree wired to an ExplorerState.

    Usage::

        app = ExplorerApp(newick=tree_text, metadata=records)
        app.serve()
    """

    def __init__(
        self,
        newick: str = "",
        metadata: list[dict] | None = None,
        loader: ResourceLoader | None = None,
    ) -> None:
        pn.extension(sizing_mode="stretch_width")

        if loader is None:
            loader = ResourceLoader()
            loader.register(TREE_BUILDER, FastTreeBuilder.locate)
        self.loader = loader

        self.renderer = PhylocanvasRenderer()
        self.state = ExplorerState(
            renderer=self.renderer,
            loader=loader,
            metadata=list(metadata or []),
        )
        if newick:
            self.state.newick = newick

        # Tooltip bridge: state -> JS, JS pointer input -> state
        self.state.param.watch(
            lambda event: self.renderer.show_tooltip(event.new), "tooltip_content",
        )
        self.renderer.pane.param.watch(self._on_tooltip_event, "tooltip_event_json")
        self.renderer.pane.param.watch(self._on_view, "view_json")

        self._build_widgets()

    # --- Widgets ---

    def _build_widgets(self) -> None:
        self.metadata_input = pn.widgets.FileInput(accept=".tsv,.txt")
        self.alignment_input = pn.widgets.FileInput(accept=".fasta,.fa,.fas,.aln")
        self.field_select = pn.widgets.Select(name="Color by", options=[])
        self.search_input = pn.widgets.TextInput(
            name="Search", placeholder="Search metadata...",
        )
        self.label_fields_select = pn.widgets.CheckBoxGroup(name="Label fields", options=[])
        self.pie_toggle = pn.widgets.Checkbox(
            name="Pie charts on collapsed nodes", value=self.state.show_pie_charts,
        )
        self.scale_bar_pane = pn.pane.Markdown(self._scale_bar_text())
        self.status_pane = pn.pane.Alert("", alert_type="danger", visible=False)
        self.loader_status_pane = pn.pane.Markdown(self._loader_status_text())

        self._refresh_field_options()

        self.metadata_input.param.watch(self._on_metadata_upload, "value")
        self.alignment_input.param.watch(self._on_alignment_upload, "value")
        self.field_select.param.watch(self._on_field, "value")
        self.search_input.param.watch(
            lambda event: setattr(self.state, "search_term", event.new), "value_input",
        )
        self.label_fields_select.param.watch(
            lambda event: setattr(self.state, "label_fields", list(event.new)), "value",
        )
        self.pie_toggle.param.watch(
            lambda event: setattr(self.state, "show_pie_charts", event.new), "value",
        )
        self.state.param.watch(
            lambda event: setattr(self.scale_bar_pane, "object", self._scale_bar_text()),
            "scale_bar",
        )
        self.state.param.watch(self._on_status, "status_text")
        self.state.param.watch(lambda event: self._refresh_field_options(), "metadata")

    def _refresh_field_options(self) -> None:
        fields = self.state.get_metadata_fields()
        options = {NO_FIELD: NO_FIELD}
        options.update({prettify_name(f): f for f in fields})
        self.field_select.options = options
        self.label_fields_select.options = {prettify_name(f): f for f in fields}

    def _scale_bar_text(self) -> str:
        return f"**Scale:** {self.state.scale_bar.label}"

    def _loader_status_text(self) -> str:
        status = self.loader.loading_status()
        lines = [
            f"{prettify_name(name)}: {'ready' if loaded else 'loads on demand'}"
            for name, loaded in status.items()
            if name != "all"
        ]
        return "\n\n".join(lines)

    def refresh_loader_status(self) -> None:
        self.loader_status_pane.object = self._loader_status_text()

    async def preload(self) -> dict[str, bool]:
        """Load registered resources and show which are ready."""
        status = await self.loader.preload_all()
        self.refresh_loader_status()
        return status

    # --- Callbacks ---

    def _on_metadata_upload(self, event) -> None:
        if not event.new:
            return
        records = read_metadata_tsv(io.BytesIO(event.new))
        logger.info("Loaded %d metadata records", len(records))
        self.state.metadata = records

    async def _on_alignment_upload(self, event) -> None:
        if not event.new:
            return
        alignment = event.new.decode("utf-8", errors="replace")
        try:
            await self.state.build_tree(alignment)
        except TreeBuildError:
            # Reported through status_text
            pass
        self.refresh_loader_status()

    def _on_field(self, event) -> None:
        self.state.selected_field = None if event.new == NO_FIELD else event.new

    def _on_status(self, event) -> None:
        self.status_pane.object = event.new
        self.status_pane.visible = event.new.startswith("Tree build failed")

    def _on_view(self, event) -> None:
        viewport = self.renderer.viewport
        if viewport is not None and min(viewport) > 0:
            self.state.param.update(
                viewport_width=viewport[0], viewport_height=viewport[1],
            )

    def _on_tooltip_event(self, event) -> None:
        data = json.loads(event.new)
        if not data:
            return
        kind = data.get("type")
        if kind == "down":
            self.state.tooltip_pointer_down(data["x"], data["y"])
        elif kind == "move":
            self.state.tooltip_pointer_move(data["x"], data["y"])
        elif kind == "up":
            self.state.tooltip_pointer_up(data.get("x"), data.get("y"))
        elif kind == "close":
            self.state.close_tooltip()
        elif kind == "collapse":
            self.state.toggle_collapse()

    # --- Layout ---

    def _build_template(self) -> pn.template.MaterialTemplate:
        sidebar = pn.Column(
            pn.pane.Markdown("#### Data"),
            pn.pane.Markdown("Metadata (TSV)"),
            self.metadata_input,
            pn.pane.Markdown("Alignment (FASTA)"),
            self.alignment_input,
            pn.pane.Markdown("#### Display"),
            self.field_select,
            self.search_input,
            pn.pane.Markdown("Label fields"),
            self.label_fields_select,
            self.pie_toggle,
            self.scale_bar_pane,
            self.loader_status_pane,
            sizing_mode="stretch_width",
        )
        template = pn.template.MaterialTemplate(
            title="phylo explorer",
            sidebar=[sidebar],
            sidebar_width=260,
            header_background="#fafafa",
            header_color="#202124",
        )
        template.main.append(
            pn.Column(self.status_pane, self.renderer.pane, sizing_mode="stretch_both"),
        )
        return template

    def serve(self, port: int = 0, show: bool = True, **kwargs) -> None:
        """Start the Panel server and optionally open the browser.

        The tree builder is preloaded in the background once the server
        runs, so the first alignment upload does not wait for it.
        """
        def _session():
            pn.state.onload(self.preload)
            return self._build_template()

        pn.serve(
            _session,
            port=port or 0,
            show=show,
            title="phylo explorer",
            **kwargs,
        )
