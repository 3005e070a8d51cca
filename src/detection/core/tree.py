"""Markup tree nodes plus the traversal helpers detectors rely on."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional, Tuple

from src.detection.core.models import Location


class NodeKind(Enum):
    ROOT = "root"
    ELEMENT = "element"
    INTERPOLATION = "interpolation"
    TEXT = "text"
    COMMENT = "comment"


@dataclass(frozen=True)
class Binding:
    """A static attribute or a directive attached to an element.

    Directives are normalized: ``:key`` and ``v-bind:key`` both become
    ``name="bind", arg="key"``; ``@click`` becomes ``name="on", arg="click"``;
    ``v-for`` becomes ``name="for"``. Static attributes keep their own name
    with ``is_static=True``.
    """

    name: str
    arg: Optional[str] = None
    expression: Optional[str] = None
    is_static: bool = False
    raw_name: str = ""
    location: Location = field(default_factory=Location)


@dataclass(frozen=True)
class TreeNode:
    kind: NodeKind
    tag: Optional[str] = None
    children: Tuple["TreeNode", ...] = ()
    bindings: Tuple[Binding, ...] = ()
    content: Optional[str] = None
    location: Location = field(default_factory=Location)


def _has_children(node: TreeNode) -> bool:
    if node.kind is NodeKind.ROOT or node.kind is NodeKind.ELEMENT:
        return True
    if node.kind in (NodeKind.INTERPOLATION, NodeKind.TEXT, NodeKind.COMMENT):
        return False
    raise ValueError(f"Unhandled node kind: {node.kind}")


def walk(root: Optional[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node pre-order, depth-first, in source order."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if _has_children(node):
            stack.extend(reversed(node.children))


def traverse(root: Optional[TreeNode], visit: Callable[[TreeNode], None]) -> None:
    for node in walk(root):
        visit(node)


def elements(root: Optional[TreeNode]) -> Iterator[TreeNode]:
    return (node for node in walk(root) if node.kind is NodeKind.ELEMENT)


def max_depth(node: Optional[TreeNode]) -> int:
    """Longest chain of nested elements below ``node``; a bare root is 0."""
    if node is None or not _has_children(node):
        return 0
    best = 0
    for child in node.children:
        if child.kind is NodeKind.ELEMENT:
            best = max(best, 1 + max_depth(child))
    return best


def get_binding(node: TreeNode, name: str) -> Optional[Binding]:
    """Return the first directive named exactly ``name`` (``for``, ``if``, ...)."""
    for binding in node.bindings:
        if not binding.is_static and binding.name == name:
            return binding
    return None


def has_binding(node: TreeNode, name: str) -> bool:
    return get_binding(node, name) is not None


def get_attribute(node: TreeNode, name: str) -> Optional[Binding]:
    for binding in node.bindings:
        if binding.is_static and binding.name == name:
            return binding
    return None


def has_attribute(node: TreeNode, name: str) -> bool:
    return get_attribute(node, name) is not None


def get_bound_attribute(node: TreeNode, arg: str) -> Optional[Binding]:
    """Return the ``v-bind`` directive targeting ``arg`` (``:key`` -> ``key``)."""
    for binding in node.bindings:
        if not binding.is_static and binding.name == "bind" and binding.arg == arg:
            return binding
    return None


def has_key(node: TreeNode) -> bool:
    return has_attribute(node, "key") or get_bound_attribute(node, "key") is not None


def node_location(node: TreeNode) -> Location:
    return node.location
