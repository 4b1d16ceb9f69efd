"""TreeRenderer: the capability interface the engine needs from a renderer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ..core.tree import TreeNodeRef


RENDERER_EVENTS = {"click", "zoom", "layout"}

EventCallback = Callable[..., Any]


class TreeRenderer(ABC):
    """Narrow view of the external tree renderer.

    Concrete adapters absorb all probing of the underlying library, so
    the engine only ever calls these methods. Events:

    - ``click``: fn(node: TreeNodeRef | None, x, y); None for background
    - ``zoom``: fn() after any zoom or pan
    - ``layout``: fn(leaves, nodes) after a new topology is laid out;
      ``nodes`` lists every node and is None when the renderer cannot
      report them
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventCallback]] = {
            name: [] for name in RENDERER_EVENTS
        }

    @abstractmethod
    def set_tree(self, newick: str) -> None:
        """Replace the displayed tree with a new Newick source."""
        ...

    @abstractmethod
    def set_styles(self, styles: Mapping[str, Mapping[str, Any]]) -> None:
        """Apply a nodeId → {label, fill, stroke, strokeWidth} override map."""
        ...

    @abstractmethod
    def set_pie_charts(self, show: bool, payload: Mapping[str, Any] | None) -> None:
        """Toggle pie charts on collapsed nodes with their charting data."""
        ...

    @abstractmethod
    def collapse_node(self, node_id: str) -> None:
        ...

    @abstractmethod
    def get_branch_scale(self) -> float | None:
        ...

    @abstractmethod
    def get_zoom(self) -> float | None:
        ...

    @abstractmethod
    def get_leaves(self) -> Sequence[TreeNodeRef]:
        """Leaves of the laid-out tree, in layout order."""
        ...

    def on(self, event: str, callback: EventCallback) -> None:
        """Register a callback for a renderer event."""
        if event not in RENDERER_EVENTS:
            raise ValueError(
                f"Unknown renderer event '{event}'. Valid: {sorted(RENDERER_EVENTS)}"
            )
        self._listeners[event].append(callback)

    def emit(self, event: str, *args: Any) -> None:
        """Notify registered callbacks. Called by concrete adapters."""
        for cb in list(self._listeners.get(event, ())):
            cb(*args)
