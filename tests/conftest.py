"""Shared test fixtures for phylo-explorer."""

import pytest

from phylo_explorer.core.metadata import MetadataIndex
from phylo_explorer.core.tree import TreeNode
from phylo_explorer.renderer.base import TreeRenderer


@pytest.fixture
def country_records():
    """Three accessions, two countries."""
    return [
        {"accessionVersion": "A1", "Country": "USA", "SampleID": "S1"},
        {"accessionVersion": "A2", "Country": "USA", "SampleID": "S2"},
        {"accessionVersion": "A3", "Country": "Canada", "SampleID": ""},
    ]


@pytest.fixture
def country_index(country_records):
    return MetadataIndex.build(country_records)


@pytest.fixture
def small_tree():
    """((A1|x, A2|y)n1, (A3|z, B9)n2)root; B9 has no metadata."""
    a1 = TreeNode(id="A1|x", x=10.0, y=10.0)
    a2 = TreeNode(id="A2|y", x=10.0, y=20.0)
    a3 = TreeNode(id="A3|z", x=10.0, y=30.0)
    b9 = TreeNode(id="B9", x=10.0, y=40.0)
    n1 = TreeNode(id="n1", children=(a1, a2), x=5.0, y=15.0)
    n2 = TreeNode(id="n2", children=(a3, b9), x=5.0, y=35.0, collapsed=True)
    return TreeNode(id="root", children=(n1, n2), x=0.0, y=25.0)


@pytest.fixture
def small_leaves(small_tree):
    return [leaf for child in small_tree.children for leaf in child.children]


class RecordingRenderer(TreeRenderer):
    """In-memory TreeRenderer that records every call."""

    def __init__(self, branch_scale=1.0, zoom=0.0, leaves=()):
        super().__init__()
        self.branch_scale = branch_scale
        self.zoom = zoom
        self.leaves = list(leaves)
        self.trees = []
        self.styles = []
        self.pies = []
        self.collapsed = []

    def set_tree(self, newick):
        self.trees.append(newick)

    def set_styles(self, styles):
        self.styles.append(dict(styles))

    def set_pie_charts(self, show, payload):
        self.pies.append((show, payload))

    def collapse_node(self, node_id):
        self.collapsed.append(node_id)

    def get_branch_scale(self):
        return self.branch_scale

    def get_zoom(self):
        return self.zoom

    def get_leaves(self):
        return list(self.leaves)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def scheduled():
    """Scheduler that records (delay, callback) instead of running them."""
    calls = []

    def scheduler(delay, callback):
        calls.append((delay, callback))

    scheduler.calls = calls
    return scheduler


@pytest.fixture
def make_renderer():
    return RecordingRenderer
