"""Tests for the StyleCompiler."""

import pytest

from phylo_explorer.annotation.style import (
    HIGHLIGHT_STYLE,
    StyleDirective,
    StyleOptions,
    compile_styles,
)
from phylo_explorer.core.colors import build_color_map
from phylo_explorer.core.tree import TreeNode
from phylo_explorer.renderer.serializers import styles_to_dict


class TestCompileStyles:
    def test_labels_only(self, small_leaves, country_index):
        styles = compile_styles(small_leaves, country_index, StyleOptions())
        # B9 has no metadata and its label equals its id: nothing changes
        assert set(styles) == {"A1|x", "A2|y", "A3|z"}
        assert styles["A1|x"] == StyleDirective(label="A1")

    def test_label_fields(self, small_leaves, country_index):
        styles = compile_styles(
            small_leaves, country_index, StyleOptions(label_fields=["Country"]),
        )
        assert styles["A1|x"].label == "A1|USA"
        assert styles["A3|z"].label == "A3|Canada"

    def test_color_by_field(self, small_leaves, country_index, country_records):
        cmap = build_color_map(country_records, "Country")
        styles = compile_styles(
            small_leaves, country_index,
            StyleOptions(selected_field="Country", color_map=cmap),
        )
        assert styles["A1|x"].fill == cmap["USA"]
        assert styles["A3|z"].fill == cmap["Canada"]
        assert "B9" not in styles

    def test_search_overrides_color(self, small_leaves, country_index, country_records):
        cmap = build_color_map(country_records, "Country")
        styles = compile_styles(
            small_leaves, country_index,
            StyleOptions(selected_field="Country", color_map=cmap, search_term="usa"),
        )
        assert styles["A1|x"].fill == HIGHLIGHT_STYLE.fill
        assert styles["A1|x"].stroke == HIGHLIGHT_STYLE.stroke
        assert styles["A1|x"].label == "A1"
        assert styles["A3|z"].fill == cmap["Canada"]

    def test_skips_leaves_without_id(self, country_index):
        leaves = [TreeNode(id=""), TreeNode(id=None), TreeNode(id="A1|x")]
        styles = compile_styles(leaves, country_index, StyleOptions())
        assert list(styles) == ["A1|x"]

    def test_leaf_with_metadata_but_same_label_is_omitted(self, country_index):
        styles = compile_styles([TreeNode(id="A1")], country_index, StyleOptions())
        assert styles == {}

    def test_same_label_with_fill_is_kept(self, country_index):
        options = StyleOptions(selected_field="Country", color_map={"USA": "red"})
        styles = compile_styles([TreeNode(id="A1")], country_index, options)
        assert styles == {"A1": StyleDirective(label="A1", fill="red")}

    def test_rejects_string_label_fields(self, small_leaves, country_index):
        with pytest.raises(TypeError, match="single string"):
            compile_styles(small_leaves, country_index, StyleOptions(label_fields="Country"))


class TestStyleSerialization:
    def test_has_style(self):
        assert not StyleDirective(label="A1").has_style
        assert StyleDirective(fill="red").has_style
        assert HIGHLIGHT_STYLE.has_style

    def test_drops_unset_keys(self):
        assert StyleDirective(label="A1").to_dict() == {"label": "A1"}

    def test_renderer_keys(self):
        d = StyleDirective(label="A1", fill="#fff", stroke="#000", stroke_width=2.0)
        assert d.to_dict() == {
            "label": "A1", "fill": "#fff", "stroke": "#000", "strokeWidth": 2.0,
        }

    def test_styles_to_dict(self, small_leaves, country_index):
        styles = compile_styles(small_leaves, country_index, StyleOptions(search_term="canada"))
        payload = styles_to_dict(styles)
        assert payload["A3|z"]["strokeWidth"] == HIGHLIGHT_STYLE.stroke_width
        assert payload["A1|x"] == {"label": "A1"}
