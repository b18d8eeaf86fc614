"""Process-flow graph values.

`Node`, `Edge` and `Graph` are immutable. Merging and layout return new `Graph`
values instead of editing the ones they were given; the only mutable state lives
in `procflow.builder.FlowGraphBuilder`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .roles import BranchSide, Category, Role, classify

EdgeKey = Tuple[str, str]


@dataclass(frozen=True)
class Node:
    id: str
    role: Role = Role.DEFAULT
    label: str = ""
    layer: Optional[int] = None
    order: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    source_position: Optional[str] = None
    target_position: Optional[str] = None

    @property
    def category(self) -> Category:
        return classify(self.role)

    @property
    def is_positioned(self) -> bool:
        return self.x is not None and self.y is not None

    def placed(self, **layout: Any) -> "Node":
        """Return a copy carrying new layout fields (`layer`, `order`, `x`, `y`, ...)."""
        return replace(self, **layout)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "category": self.category.value,
            "label": self.label,
            "layer": self.layer,
            "order": self.order,
            "x": self.x,
            "y": self.y,
            "sourcePosition": self.source_position,
            "targetPosition": self.target_position,
        }


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    branch_label: Optional[str] = None
    branch_side: Optional[BranchSide] = None

    @property
    def key(self) -> EdgeKey:
        return (self.source, self.target)

    @property
    def id(self) -> str:
        return f"{self.source}->{self.target}"

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "branchLabel": self.branch_label,
            "branchSide": self.branch_side.value if self.branch_side else None,
        }


@dataclass(frozen=True)
class Graph:
    """Accumulated nodes (id -> Node, arrival order) and edges (arrival order)."""

    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: Tuple[Edge, ...] = ()

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def node_ids(self) -> List[str]:
        return list(self.nodes)

    def edge_keys(self) -> Set[EdgeKey]:
        return {edge.key for edge in self.edges}

    def outgoing(self, node_id: str) -> List[Edge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def incoming(self, node_id: str) -> List[Edge]:
        return [edge for edge in self.edges if edge.target == node_id]

    def connected_node_ids(self) -> Set[str]:
        connected: Set[str] = set()
        for edge in self.edges:
            connected.add(edge.source)
            connected.add(edge.target)
        return connected

    def isolated_node_ids(self) -> List[str]:
        connected = self.connected_node_ids()
        return [node_id for node_id in self.nodes if node_id not in connected]

    def extended(self, nodes: Iterable[Node] = (), edges: Iterable[Edge] = ()) -> "Graph":
        """Return a new graph with `nodes` and `edges` appended."""
        merged = dict(self.nodes)
        for node in nodes:
            merged[node.id] = node
        return Graph(nodes=merged, edges=self.edges + tuple(edges))

    def with_nodes(self, nodes: Iterable[Node]) -> "Graph":
        """Return a new graph whose nodes are replaced by id, keeping arrival order."""
        updated = dict(self.nodes)
        for node in nodes:
            if node.id in updated:
                updated[node.id] = node
        return Graph(nodes=updated, edges=self.edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
        }
