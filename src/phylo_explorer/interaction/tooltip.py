"""TooltipSession: state machine for the node inspection tooltip.

States::

    hidden --open--> static --pointer_down--> dragging --pointer_up--> static
    static/dragging --close/background_click/stale--> hidden

The session is driven by explicit pointer inputs so it does not depend
on any UI toolkit's event system.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..annotation.pie import PieSegment, pie_segments
from ..core.metadata import MetadataIndex, MetadataRecord
from ..core.tree import TreeNodeRef, descendant_leaves, extract_accession_version
from ..layout.geometry import ORIGIN, Point, Rect
from ..renderer.base import TreeRenderer


logger = logging.getLogger(__name__)

HIDDEN = "hidden"
STATIC = "static"
DRAGGING = "dragging"

TOOLTIP_OFFSET = Point(10.0, 10.0)  # from the click to the tooltip corner
TOOLTIP_SIZE = (300.0, 200.0)       # estimated box used for clamping
VIEWPORT_MARGIN = 10.0
COLLAPSE_HIDE_DELAY = 0.1           # seconds, lets the collapse animation start

Scheduler = Callable[[float, Callable[[], Any]], Any]


def call_later(delay: float, callback: Callable[[], Any]) -> None:
    """Run ``callback`` after ``delay`` on the running event loop.

    Without a running loop there is nothing to defer on, so it runs now.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return
    loop.call_later(delay, callback)


class TooltipSession:
    """Tracks the inspected node, its anchored position and drag offset."""

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self._scheduler = scheduler or call_later
        self._generation = 0
        self._reset()

    def _reset(self) -> None:
        self.target_node: TreeNodeRef | None = None
        self.is_leaf = False
        self.record: MetadataRecord | None = None
        self.is_collapsed = False
        self.field: str | None = None
        self.segments: list[PieSegment] | None = None
        self.base_position = ORIGIN
        self._drag_start: Point | None = None
        self._drag_current: Point | None = None

    # -- state ---------------------------------------------------------

    @property
    def visible(self) -> bool:
        return self.target_node is not None

    @property
    def is_dragging(self) -> bool:
        return self._drag_start is not None

    @property
    def state(self) -> str:
        if not self.visible:
            return HIDDEN
        return DRAGGING if self.is_dragging else STATIC

    @property
    def has_metadata(self) -> bool:
        return self.record is not None

    @property
    def drag_offset(self) -> Point:
        if self._drag_start is None or self._drag_current is None:
            return ORIGIN
        return self._drag_current - self._drag_start

    # -- transitions ---------------------------------------------------

    def open(
        self,
        node: TreeNodeRef,
        click_x: float,
        click_y: float,
        index: MetadataIndex,
        selected_field: str | None = None,
        color_map: Mapping[str, str] | None = None,
    ) -> None:
        """Show the tooltip for ``node``, replacing any current content.

        Leaves resolve their metadata record. Internal nodes record their
        collapsed flag and, with a coloring field, their pie summary.
        """
        self._reset()
        self._generation += 1
        self.target_node = node
        self.is_leaf = bool(node.is_leaf)
        self.base_position = Point(float(click_x), float(click_y)) + TOOLTIP_OFFSET

        if self.is_leaf:
            if node.id:
                self.record = index.lookup(extract_accession_version(node.id))
        else:
            self.is_collapsed = bool(getattr(node, "collapsed", False))
            if selected_field:
                self.field = selected_field
                self.segments = pie_segments(
                    descendant_leaves(node), index, selected_field, color_map,
                )

    def pointer_down(self, x: float, y: float) -> None:
        """Start dragging from the tooltip header."""
        if not self.visible:
            return
        self._drag_start = Point(float(x), float(y))
        self._drag_current = self._drag_start

    def pointer_move(self, x: float, y: float) -> None:
        if self.is_dragging:
            self._drag_current = Point(float(x), float(y))

    def pointer_up(self, x: float | None = None, y: float | None = None) -> None:
        """Finish a drag, folding the offset into the base position."""
        if not self.is_dragging:
            return
        if x is not None and y is not None:
            self._drag_current = Point(float(x), float(y))
        self.base_position = self.base_position + self.drag_offset
        self._drag_start = None
        self._drag_current = None

    def close(self) -> None:
        self._generation += 1
        self._reset()

    def background_click(self) -> None:
        self.close()

    def toggle_collapse(self, renderer: TreeRenderer) -> bool:
        """Collapse or expand the inspected internal node.

        The local flag flips immediately and the tooltip hides after
        COLLAPSE_HIDE_DELAY. Returns False when there is nothing to toggle.
        """
        node = self.target_node
        if node is None or self.is_leaf or not node.id:
            return False
        renderer.collapse_node(node.id)
        self.is_collapsed = not self.is_collapsed

        generation = self._generation

        def _hide() -> None:
            # A newer session must survive an older delayed hide
            if self._generation == generation:
                self.close()

        self._scheduler(COLLAPSE_HIDE_DELAY, _hide)
        return True

    def invalidate_if_stale(self, nodes: Iterable[TreeNodeRef]) -> bool:
        """Hide the tooltip if its node is not part of the new tree.

        Nodes with ids are matched by id, others by identity. Returns True
        when the session was cleared.
        """
        target = self.target_node
        if target is None:
            return False
        for node in nodes:
            if node is target or (target.id and node.id == target.id):
                return False
        logger.debug("Tooltip target %r left the tree; hiding", target.id)
        self.close()
        return True

    # -- placement -----------------------------------------------------

    def position(
        self,
        viewport_width: float,
        viewport_height: float,
        size: tuple[float, float] = TOOLTIP_SIZE,
    ) -> Point:
        """Effective display position of the tooltip's top-left corner.

        While dragging the position follows the pointer unclamped. At rest
        the estimated box is kept VIEWPORT_MARGIN inside the viewport.
        """
        if viewport_width <= 0 or viewport_height <= 0:
            raise ValueError(
                f"Viewport must have a positive size, got {viewport_width}x{viewport_height}."
            )
        if self.is_dragging:
            return self.base_position + self.drag_offset
        width, height = size
        area = Rect(0.0, 0.0, float(viewport_width), float(viewport_height))
        return area.inset(VIEWPORT_MARGIN).clamp_box(self.base_position, width, height)

    def to_dict(self, viewport_width: float, viewport_height: float) -> dict:
        """Serializable tooltip content for the UI layer."""
        if not self.visible:
            return {"visible": False}
        pos = self.position(viewport_width, viewport_height)
        out: dict[str, Any] = {
            "visible": True,
            "nodeId": self.target_node.id,
            "isLeaf": self.is_leaf,
            "x": pos.x,
            "y": pos.y,
            "dragging": self.is_dragging,
        }
        if self.is_leaf:
            out["metadata"] = dict(self.record) if self.record is not None else None
        else:
            out["collapsed"] = self.is_collapsed
            out["field"] = self.field
            if self.segments is not None:
                out["segments"] = [s.to_dict() for s in self.segments]
        return out

    def __repr__(self) -> str:
        target = self.target_node.id if self.target_node is not None else None
        return f"TooltipSession(state={self.state!r}, target={target!r})"
