"""Caller-owned hierarchy structure consumed by the layout engine.

A graph is any mapping ``{id: LayoutNode}``. The engine only reads ``parent``
and ``children`` and only writes ``position`` and ``lorentz``.
"""

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field

from jaxtyping import Array, Float

Graph = Mapping[Hashable, "LayoutNode"]


@dataclass(eq=False)
class LayoutNode:
    """A node of the laid-out hierarchy.

    Attributes:
        id: Unique identifier
        parent: Parent id, ``None`` for a root
        children: Child ids
        depth: Depth in the hierarchy as known by the caller
        position: Poincaré disk position, shape (2,), assigned by the layout
        lorentz: Position lifted onto the hyperboloid, shape (9,)
    """

    id: Hashable
    parent: Hashable | None = None
    children: list = field(default_factory=list)
    depth: int = 0
    position: Float[Array, "2"] | None = None
    lorentz: Float[Array, "9"] | None = None


def from_parents(parents: Mapping[Hashable, Hashable | None]) -> dict[Hashable, LayoutNode]:
    """Build a graph from a ``{child: parent}`` mapping.

    Children are listed in the mapping's iteration order and depths are
    counted from the nearest node without a (known) parent. Parents missing
    from the mapping are treated as absent.
    """
    graph = {node_id: LayoutNode(id=node_id, parent=parent) for node_id, parent in parents.items()}
    for node in graph.values():
        if node.parent in graph:
            graph[node.parent].children.append(node.id)
    for node in graph.values():
        node.depth = len(ancestors(graph, node.id, max_depth=len(graph)))
    return graph


def find_root(graph: Graph) -> Hashable | None:
    """First node, in iteration order, whose parent is ``None`` or not in the graph."""
    for node_id, node in graph.items():
        if node.parent is None or node.parent not in graph:
            return node_id
    return None


def ancestors(graph: Graph, node_id: Hashable, max_depth: int) -> list:
    """Up to ``max_depth`` ancestors of ``node_id``, nearest first. Stops at cycles."""
    found = []
    seen = {node_id}
    current = graph[node_id].parent if node_id in graph else None
    while current is not None and current in graph and current not in seen and len(found) < max_depth:
        found.append(current)
        seen.add(current)
        current = graph[current].parent
    return found


def descendants(graph: Graph, node_id: Hashable, max_depth: int) -> list:
    """Descendants of ``node_id`` at most ``max_depth`` levels below it, in BFS order."""
    found = []
    seen = {node_id}
    frontier = [node_id]
    for _ in range(max_depth):
        next_frontier = []
        for current in frontier:
            for child in graph[current].children:
                if child in graph and child not in seen:
                    seen.add(child)
                    found.append(child)
                    next_frontier.append(child)
        frontier = next_frontier
    return found


def siblings(graph: Graph, node_id: Hashable) -> list:
    """Other children of ``node_id``'s parent."""
    parent = graph[node_id].parent
    if parent is None or parent not in graph:
        return []
    return [c for c in graph[parent].children if c != node_id and c in graph]


def related_ids(graph: Graph, node_id: Hashable, max_depth: int = 3) -> set:
    """Nodes structurally related to ``node_id``.

    Ancestors and descendants within ``max_depth`` levels, plus siblings. This
    is a bounded-depth heuristic for "close in the hierarchy", not full
    reachability.
    """
    if node_id not in graph:
        return set()
    related = set(ancestors(graph, node_id, max_depth))
    related.update(descendants(graph, node_id, max_depth))
    related.update(siblings(graph, node_id))
    related.discard(node_id)
    return related


def is_related(graph: Graph, a: Hashable, b: Hashable, max_depth: int = 3) -> bool:
    """True if ``b`` is an ancestor or descendant of ``a`` within ``max_depth`` levels, or a sibling."""
    if a == b or a not in graph or b not in graph:
        return False
    if b in ancestors(graph, a, max_depth) or a in ancestors(graph, b, max_depth):
        return True
    parent = graph[a].parent
    return parent is not None and parent == graph[b].parent


def subtree_weights(graph: Graph, root_id: Hashable) -> dict:
    """Size of every subtree below ``root_id``: the node itself plus all of its descendants.

    A node listed under several parents is counted only under the first one
    that reaches it depth-first, so cycles and shared children do not inflate
    the sizes. Empty if ``root_id`` is not in the graph.
    """
    if root_id not in graph:
        return {}
    weights = {}
    owned = {}
    seen = {root_id}
    stack = [(root_id, False)]
    while stack:
        node_id, expanded = stack.pop()
        if expanded:
            weights[node_id] = 1 + sum(weights[child] for child in owned[node_id])
            continue
        stack.append((node_id, True))
        owned[node_id] = []
        for child in graph[node_id].children:
            if child in graph and child not in seen:
                seen.add(child)
                owned[node_id].append(child)
                stack.append((child, False))
    return weights
