"""PhylocanvasPane: Panel JSComponent wrapping the phylocanvas.gl renderer."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

import param
import panel as pn

from ..core.tree import TreeNode, TreeNodeRef
from ..renderer.base import TreeRenderer


PHYLOCANVAS_URL = "https://unpkg.com/@phylocanvas/phylocanvas.gl@1.59.0/dist/bundle.min.js"

_TREE_CSS = """
.pe-container {
  position: relative;
  width: 100%;
  height: 100%;
  min-height: 400px;
  font-family: "Open Sans", verdana, arial, sans-serif;
}
.pe-tooltip {
  position: absolute;
  display: none;
  width: 300px;
  max-height: 200px;
  overflow: auto;
  background: #fff;
  color: #333;
  border-radius: 4px;
  font-size: 11px;
  z-index: 100;
  box-shadow: 0 2px 8px rgba(0,0,0,0.18);
  border: 1px solid #e0e0e0;
  line-height: 1.6;
}
.pe-tooltip-header {
  display: flex;
  justify-content: space-between;
  align-items: center;
  padding: 4px 8px;
  background: #f5f5f5;
  cursor: move;
  user-select: none;
  font-weight: 600;
}
.pe-tooltip-body {
  padding: 6px 10px;
}
.pe-tooltip-body .pe-tip-label {
  color: #888;
  font-size: 10px;
}
.pe-tooltip button {
  background: none;
  border: none;
  cursor: pointer;
  color: #666;
}
.pe-swatch {
  display: inline-block;
  width: 10px;
  height: 10px;
  border-radius: 2px;
  border: 1px solid #ccc;
  vertical-align: middle;
  margin-right: 4px;
}
"""

_PANE_ESM = """
const PHYLOCANVAS_URL = "%(url)s";

let phylocanvasLoading = null;

function loadPhylocanvas() {
  if (window.phylocanvas && window.phylocanvas.PhylocanvasGL) {
    return Promise.resolve(window.phylocanvas);
  }
  if (phylocanvasLoading) return phylocanvasLoading;
  phylocanvasLoading = new Promise((resolve, reject) => {
    const script = document.createElement("script");
    script.src = PHYLOCANVAS_URL;
    script.onload = () => {
      if (window.phylocanvas && window.phylocanvas.PhylocanvasGL) {
        resolve(window.phylocanvas);
      } else {
        reject(new Error("PhylocanvasGL not available after load"));
      }
    };
    script.onerror = () => {
      phylocanvasLoading = null;
      reject(new Error("Failed to load PhylocanvasGL script"));
    };
    document.head.appendChild(script);
  });
  return phylocanvasLoading;
}

function toStyles(styles) {
  const out = {};
  for (const [id, s] of Object.entries(styles || {})) {
    const d = {};
    if (s.label !== undefined) d.label = s.label;
    if (s.fill !== undefined) d.fillColour = s.fill;
    if (s.stroke !== undefined) d.strokeColour = s.stroke;
    if (s.strokeWidth !== undefined) d.lineWidth = s.strokeWidth;
    out[id] = d;
  }
  return out;
}

function leafPayload(node) {
  return { id: node.id, isLeaf: true, x: node.x || 0, y: node.y || 0 };
}

// Flat, iterative walks: trees can be deeper than any recursion limit
function collectLeaves(node) {
  const leaves = [];
  const stack = [node];
  while (stack.length) {
    const current = stack.pop();
    if (current.isLeaf) {
      leaves.push(leafPayload(current));
      continue;
    }
    const children = current.children || [];
    for (let i = children.length - 1; i >= 0; i -= 1) stack.push(children[i]);
  }
  return leaves;
}

function collectNodes(root) {
  const nodes = [];
  const stack = root ? [root] : [];
  while (stack.length) {
    const current = stack.pop();
    nodes.push({ id: current.id, isLeaf: !!current.isLeaf });
    const children = current.isLeaf ? [] : current.children || [];
    for (let i = children.length - 1; i >= 0; i -= 1) stack.push(children[i]);
  }
  return nodes;
}

function nodePayload(node) {
  if (!node) return null;
  if (node.isLeaf) return leafPayload(node);
  return {
    id: node.id,
    isLeaf: false,
    x: node.x || 0,
    y: node.y || 0,
    collapsed: !!node.isCollapsed,
    leaves: collectLeaves(node),
  };
}

function escapeHtml(text) {
  const div = document.createElement("div");
  div.textContent = String(text);
  return div.innerHTML;
}

export function render({ model, el }) {
  const container = document.createElement("div");
  container.className = "pe-container";
  el.appendChild(container);

  const tooltip = document.createElement("div");
  tooltip.className = "pe-tooltip";
  container.appendChild(tooltip);

  let tree = null;
  let seq = 0;
  const send = (name, payload) => {
    seq += 1;
    model[name] = JSON.stringify({ ...payload, seq });
  };

  function reportView() {
    if (!tree) return;
    const scale = typeof tree.getBranchScale === "function" ? tree.getBranchScale() : null;
    const zoom = typeof tree.getZoom === "function" ? tree.getZoom() : null;
    send("view_json", {
      branchScale: Number.isFinite(scale) ? scale : null,
      zoom: Number.isFinite(zoom) ? zoom : null,
      width: container.clientWidth,
      height: container.clientHeight,
    });
  }

  function reportLeaves() {
    if (!tree || typeof tree.getGraphAfterLayout !== "function") return;
    const graph = tree.getGraphAfterLayout();
    const leaves = (graph && graph.leaves) || [];
    send("layout_json", {
      leaves: leaves.map(leafPayload),
      nodes: collectNodes(graph && graph.root),
    });
  }

  function pieProps() {
    const pies = JSON.parse(model.pies_json || "null");
    if (!model.show_pies || !pies) return { showPiecharts: false };
    const metadata = {};
    for (const [id, value] of Object.entries(pies.values)) {
      metadata[id] = { [pies.field]: { colour: pies.colors[value] || "#cccccc", label: value } };
    }
    return { showPiecharts: true, metadata, blocks: [pies.field] };
  }

  function treeProps() {
    return {
      source: model.newick,
      size: { width: container.clientWidth, height: container.clientHeight },
      styles: toStyles(JSON.parse(model.styles_json || "{}")),
      ...pieProps(),
    };
  }

  async function ensureTree() {
    if (!model.newick) return;
    const lib = await loadPhylocanvas();
    if (tree) {
      tree.setProps(treeProps());
    } else {
      tree = new lib.PhylocanvasGL(container, treeProps());
      const defaultClick = typeof tree.handleClick === "function" ? tree.handleClick.bind(tree) : null;
      tree.handleClick = (info, event) => {
        const node = info && info.object ? info.object : null;
        const rect = container.getBoundingClientRect();
        const x = event && event.srcEvent ? event.srcEvent.clientX - rect.left : 0;
        const y = event && event.srcEvent ? event.srcEvent.clientY - rect.top : 0;
        send("click_json", { node: nodePayload(node), x, y });
        if (defaultClick && !node) defaultClick(info, event);
      };
    }
    reportLeaves();
    reportView();
  }

  model.on("newick", ensureTree);
  model.on("styles_json", () => tree && tree.setProps({ styles: toStyles(JSON.parse(model.styles_json)) }));
  model.on("pies_json", () => tree && tree.setProps(pieProps()));
  model.on("show_pies", () => tree && tree.setProps(pieProps()));
  model.on("collapse_json", () => {
    const req = JSON.parse(model.collapse_json || "null");
    if (!tree || !req) return;
    if (typeof tree.collapseNode === "function") {
      const node = typeof tree.findNodeById === "function" ? tree.findNodeById(req.id) : req.id;
      tree.collapseNode(node);
    }
  });

  container.addEventListener("wheel", () => requestAnimationFrame(reportView), { passive: true });
  container.addEventListener("pointerup", () => requestAnimationFrame(reportView));
  new ResizeObserver(() => {
    if (tree) tree.setProps({ size: { width: container.clientWidth, height: container.clientHeight } });
    reportView();
  }).observe(container);

  // Tooltip: position and content come from Python, pointer input goes back
  function renderTooltip() {
    const tip = JSON.parse(model.tooltip_json || "{}");
    if (!tip.visible) {
      tooltip.style.display = "none";
      return;
    }
    tooltip.style.display = "block";
    tooltip.style.left = tip.x + "px";
    tooltip.style.top = tip.y + "px";
    let body = "";
    if (tip.isLeaf) {
      if (tip.metadata) {
        for (const [k, v] of Object.entries(tip.metadata)) {
          body += `<div><span class="pe-tip-label">${escapeHtml(k)}</span> ${escapeHtml(v)}</div>`;
        }
      } else {
        body = "<div>No metadata</div>";
      }
    } else {
      body += `<div><button class="pe-collapse">${tip.collapsed ? "Expand" : "Collapse"}</button></div>`;
      for (const s of tip.segments || []) {
        const pct = (s.proportion * 100).toFixed(1);
        body += `<div><span class="pe-swatch" style="background:${s.color}"></span>${escapeHtml(s.value)}: ${s.count} (${pct}%%)</div>`;
      }
    }
    tooltip.innerHTML =
      `<div class="pe-tooltip-header"><span>${escapeHtml(tip.nodeId || "Node")}</span>` +
      `<button class="pe-close">&times;</button></div><div class="pe-tooltip-body">${body}</div>`;
    tooltip.querySelector(".pe-close").onclick = () => send("tooltip_event_json", { type: "close" });
    const collapse = tooltip.querySelector(".pe-collapse");
    if (collapse) collapse.onclick = () => send("tooltip_event_json", { type: "collapse" });
    tooltip.querySelector(".pe-tooltip-header").onpointerdown = (e) => {
      if (e.target.tagName === "BUTTON") return;
      send("tooltip_event_json", { type: "down", x: e.clientX, y: e.clientY });
      const move = (ev) => send("tooltip_event_json", { type: "move", x: ev.clientX, y: ev.clientY });
      const up = (ev) => {
        window.removeEventListener("pointermove", move);
        window.removeEventListener("pointerup", up);
        send("tooltip_event_json", { type: "up", x: ev.clientX, y: ev.clientY });
      };
      window.addEventListener("pointermove", move);
      window.addEventListener("pointerup", up);
    };
  }

  model.on("tooltip_json", renderTooltip);
  renderTooltip();
  ensureTree();
}
""" % {"url": PHYLOCANVAS_URL}


class PhylocanvasPane(pn.custom.JSComponent):
    """Panel JSComponent hosting a phylocanvas.gl tree.

    Python → JS: tree source, style overrides, pie data, collapse
    requests and tooltip content, all as JSON strings. JS → Python:
    clicks, layout results, view state and tooltip pointer input.
    """

    # Python -> JS
    newick = param.String(default="")
    styles_json = param.String(default="{}")
    pies_json = param.String(default="null")
    show_pies = param.Boolean(default=False)
    collapse_json = param.String(default="null")
    tooltip_json = param.String(default='{"visible": false}')

    # JS -> Python
    click_json = param.String(default="null")
    layout_json = param.String(default="null")
    view_json = param.String(default="null")
    tooltip_event_json = param.String(default="null")

    _esm = _PANE_ESM
    _stylesheets = [_TREE_CSS]


class PhylocanvasRenderer(TreeRenderer):
    """TreeRenderer adapter over a PhylocanvasPane.

    Translates pane JSON traffic into renderer events and keeps the last
    reported view state for scale bar queries.
    """

    def __init__(self, pane: PhylocanvasPane | None = None) -> None:
        super().__init__()
        self.pane = pane if pane is not None else PhylocanvasPane(
            sizing_mode="stretch_both", min_height=400,
        )
        self._leaves: list[TreeNodeRef] = []
        self._view: dict[str, Any] = {}
        self._collapse_seq = 0
        self.pane.param.watch(self._on_click, "click_json")
        self.pane.param.watch(self._on_layout, "layout_json")
        self.pane.param.watch(self._on_view, "view_json")

    # --- TreeRenderer ---

    def set_tree(self, newick: str) -> None:
        self._leaves = []
        self.pane.newick = newick

    def set_styles(self, styles: Mapping[str, Mapping[str, Any]]) -> None:
        self.pane.styles_json = json.dumps(dict(styles))

    def set_pie_charts(self, show: bool, payload: Mapping[str, Any] | None) -> None:
        self.pane.param.update(
            pies_json=json.dumps(None if payload is None else dict(payload)),
            show_pies=bool(show),
        )

    def collapse_node(self, node_id: str) -> None:
        self._collapse_seq += 1
        self.pane.collapse_json = json.dumps({"id": node_id, "seq": self._collapse_seq})

    def get_branch_scale(self) -> float | None:
        return self._view.get("branchScale")

    def get_zoom(self) -> float | None:
        return self._view.get("zoom")

    def get_leaves(self) -> Sequence[TreeNodeRef]:
        return list(self._leaves)

    # --- Tooltip bridge ---

    def show_tooltip(self, content: Mapping[str, Any]) -> None:
        self.pane.tooltip_json = json.dumps(dict(content))

    @property
    def viewport(self) -> tuple[float, float] | None:
        if "width" not in self._view:
            return None
        return float(self._view["width"]), float(self._view["height"])

    # --- JS -> Python ---

    def _on_click(self, event) -> None:
        data = json.loads(event.new)
        if not data:
            return
        node = data.get("node")
        self.emit(
            "click",
            TreeNode.from_dict(node) if node else None,
            float(data.get("x", 0.0)),
            float(data.get("y", 0.0)),
        )

    def _on_layout(self, event) -> None:
        data = json.loads(event.new)
        if not data:
            return
        self._leaves = [TreeNode.from_dict(leaf) for leaf in data.get("leaves") or ()]
        nodes = data.get("nodes")
        self.emit(
            "layout",
            self.get_leaves(),
            None if nodes is None else [TreeNode.from_dict(n) for n in nodes],
        )

    def _on_view(self, event) -> None:
        data = json.loads(event.new)
        if not data:
            return
        self._view = data
        self.emit("zoom")
