"""Tests for renderer payload serializers."""

from phylo_explorer.annotation.style import HIGHLIGHT_STYLE, StyleDirective
from phylo_explorer.renderer.serializers import pie_payload, styles_to_dict


def test_styles_to_dict_drops_unset_keys():
    styles = {
        "A1|x": StyleDirective(label="A1", fill="hsl(10, 100%, 75%)"),
        "A2|y": HIGHLIGHT_STYLE,
    }
    assert styles_to_dict(styles) == {
        "A1|x": {"label": "A1", "fill": "hsl(10, 100%, 75%)"},
        "A2|y": {"fill": "#ff4136", "stroke": "#85144b", "strokeWidth": 2.0},
    }


def test_pie_payload_without_field(country_index):
    assert pie_payload(country_index, None, {}) is None


def test_pie_payload_skips_empty_values(country_index):
    payload = pie_payload(country_index, "SampleID", {"S1": "red"})
    assert payload == {
        "field": "SampleID",
        "colors": {"S1": "red"},
        "values": {"A1": "S1", "A2": "S2"},
    }
