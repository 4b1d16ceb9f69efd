"""Read-only view of renderer-owned tree nodes and traversal helpers."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


ID_DELIMITER = "|"

# Recursion past this depth switches to the explicit-stack traversal
MAX_RECURSION_DEPTH = 500


@runtime_checkable
class TreeNodeRef(Protocol):
    """A node handle owned by the renderer. Never mutated here."""

    @property
    def id(self) -> str | None: ...

    @property
    def is_leaf(self) -> bool: ...

    @property
    def children(self) -> Sequence[TreeNodeRef]: ...

    @property
    def x(self) -> float: ...

    @property
    def y(self) -> float: ...


@dataclass(frozen=True)
class TreeNode:
    """Plain node implementation, built from renderer payloads."""

    id: str | None = None
    children: tuple[TreeNode, ...] = ()
    x: float = 0.0
    y: float = 0.0
    collapsed: bool = False
    is_leaf: bool = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.is_leaf is None:
            object.__setattr__(self, "is_leaf", not self.children)

    @classmethod
    def from_dict(cls, payload: Mapping) -> TreeNode:
        """Build a node (and its subtree) from a renderer click payload.

        Accepts the renderer's camelCase ``isLeaf`` key. An internal node
        may carry its descendant leaves as a flat ``leaves`` list in place
        of nested ``children``. Nested payloads are rebuilt children-first
        on an explicit stack, so depth is not limited by recursion.
        """
        built: dict[int, TreeNode] = {}
        stack: list[tuple[Mapping, bool]] = [(payload, False)]
        while stack:
            current, expanded = stack.pop()
            kids = _payload_children(current)
            if not expanded:
                stack.append((current, True))
                stack.extend((kid, False) for kid in kids if id(kid) not in built)
                continue
            is_leaf = current.get("isLeaf", current.get("is_leaf"))
            built[id(current)] = cls(
                id=current.get("id"),
                children=tuple(built[id(kid)] for kid in kids),
                x=float(current.get("x") or 0.0),
                y=float(current.get("y") or 0.0),
                collapsed=bool(current.get("collapsed", False)),
                is_leaf=None if is_leaf is None else bool(is_leaf),
            )
        return built[id(payload)]


def _payload_children(payload: Mapping) -> Sequence[Mapping]:
    return payload.get("children") or payload.get("leaves") or ()


def extract_accession_version(node_id: str) -> str:
    """Return the accession key: the part of a node id before the first '|'."""
    return node_id.split(ID_DELIMITER, 1)[0]


def iter_descendant_leaves(node: TreeNodeRef) -> Iterator[TreeNodeRef]:
    """Yield descendant leaves in child order using an explicit stack."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_leaf:
            yield current
        else:
            stack.extend(reversed(current.children))


def descendant_leaves(
    node: TreeNodeRef,
    max_depth: int = MAX_RECURSION_DEPTH,
) -> list[TreeNodeRef]:
    """Return all leaves under ``node`` in child order.

    A leaf returns itself. Recursion is bounded by ``max_depth``; deeper
    subtrees are finished with ``iter_descendant_leaves``.
    """
    leaves: list[TreeNodeRef] = []

    def _collect(current: TreeNodeRef, depth: int) -> None:
        if current.is_leaf:
            leaves.append(current)
            return
        if depth >= max_depth:
            leaves.extend(iter_descendant_leaves(current))
            return
        for child in current.children:
            _collect(child, depth + 1)

    _collect(node, 0)
    return leaves

