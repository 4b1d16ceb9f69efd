"""Tests for ExplorerApp widget wiring (no server is started)."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from phylo_explorer.dashboard.app import NO_FIELD, ExplorerApp
from phylo_explorer.services.loader import ResourceLoader


@pytest.fixture
def app(country_records):
    return ExplorerApp(newick="(A1|x,A2|y);", metadata=country_records, loader=ResourceLoader())


def test_newick_reaches_pane(app):
    assert app.renderer.pane.newick == "(A1|x,A2|y);"


def test_field_options_are_prettified(app):
    assert app.field_select.options == {
        NO_FIELD: NO_FIELD, "Country": "Country", "Sample ID": "SampleID",
    }


def test_field_selection(app):
    app.field_select.value = "Country"
    assert app.state.selected_field == "Country"
    app.field_select.value = NO_FIELD
    assert app.state.selected_field is None


def test_metadata_upload(app):
    tsv = b"accessionVersion\tlineage\nB1.1\tB.1\nB2.1\tA\n"
    app._on_metadata_upload(SimpleNamespace(new=tsv))
    assert len(app.state.index) == 2
    assert app.label_fields_select.options == {"Lineage": "lineage"}


def test_tooltip_events(app):
    app.state.handle_node_click({"id": "A1|x", "isLeaf": True}, 10, 10)
    assert json.loads(app.renderer.pane.tooltip_json)["visible"]
    app._on_tooltip_event(SimpleNamespace(new=json.dumps({"type": "close", "seq": 1})))
    assert json.loads(app.renderer.pane.tooltip_json) == {"visible": False}


def test_view_updates_viewport(app):
    app.renderer.pane.view_json = json.dumps(
        {"branchScale": 1.0, "zoom": 0.0, "width": 640, "height": 480, "seq": 1}
    )
    assert (app.state.viewport_width, app.state.viewport_height) == (640.0, 480.0)
    assert app.scale_bar_pane.object == "**Scale:** 100.000"


def test_status_alert(app):
    app.state.status_text = "Tree build failed: FastTree not found"
    assert app.status_pane.visible
    app.state.status_text = ""
    assert not app.status_pane.visible


def test_loader_status_shown_after_preload(country_records):
    loader = ResourceLoader()
    loader.register("tree_builder", lambda: object())
    app = ExplorerApp(metadata=country_records, loader=loader)
    assert app.loader_status_pane.object == "Tree Builder: loads on demand"
    assert asyncio.run(app.preload()) == {"tree_builder": True}
    assert app.loader_status_pane.object == "Tree Builder: ready"
