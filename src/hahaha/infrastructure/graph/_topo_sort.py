"""
Topological ordering of a computation graph.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from ._graph_node import GraphNode


def to_topo_list(root: "GraphNode") -> List["GraphNode"]:
    """
    Return every node reachable from `root`, parents before children.

    The traversal is an iterative post-order DFS over parent edges. Nodes are
    tracked by identity in a set local to this call, so a node reachable through
    several paths appears exactly once and no state survives between calls.

    Parameters
    ----------
    root : GraphNode
        Node whose ancestry is ordered.

    Returns
    -------
    list[GraphNode]
        The ordering; `root` is always last.
    """
    order: List["GraphNode"] = []
    visited: set[int] = set()
    stack: list[tuple["GraphNode", bool]] = [(root, False)]

    while stack:
        node, expanded = stack.pop()
        if expanded:
            order.append(node)
            continue
        if id(node) in visited:
            continue
        visited.add(id(node))

        stack.append((node, True))
        # reversed so the first parent is emitted first
        for parent in reversed(node.parents):
            if id(parent) not in visited:
                stack.append((parent, False))

    return order
