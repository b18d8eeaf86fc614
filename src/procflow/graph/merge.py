"""Incremental, append-only merging of fragments into the accumulated graph."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..core.exceptions import FragmentRejectedError
from ..utils.logging import get_logger
from .dedup import dedupe_edges
from .fragment import Fragment
from .model import Edge, Graph

logger = get_logger(__name__)


@dataclass
class MergeDiagnostics:
    """Non-fatal problems recovered while sanitizing and merging one fragment."""

    malformed_nodes: int = 0
    malformed_edges: int = 0
    duplicate_nodes: int = 0
    duplicate_edges: int = 0
    dangling_edges: int = 0
    isolated_node_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isolatedNodeIds": list(self.isolated_node_ids),
            "malformedNodes": self.malformed_nodes,
            "malformedEdges": self.malformed_edges,
            "duplicateNodes": self.duplicate_nodes,
            "duplicateEdges": self.duplicate_edges,
            "danglingEdges": self.dangling_edges,
        }


@dataclass(frozen=True)
class MergeResult:
    graph: Graph
    added_node_ids: Tuple[str, ...]
    added_edges: Tuple[Edge, ...]
    diagnostics: MergeDiagnostics


def merge_fragment(graph: Graph, fragment: Fragment) -> MergeResult:
    """Merge a sanitized fragment into `graph`, returning a new graph.

    Nodes already present in `graph` win over resubmissions; edges already present
    (same ordered endpoints) are dropped, as are edges whose endpoints exist neither
    in the fragment nor in `graph`. Nodes left without any incident edge are reported
    as isolated but kept.

    Raises:
        FragmentRejectedError: two nodes of the fragment share an id. Nothing is merged.
    """
    collisions = sorted(
        node_id for node_id, count in Counter(node.id for node in fragment.nodes).items() if count > 1
    )
    if collisions:
        raise FragmentRejectedError(
            "Fragment contains duplicate node ids",
            context={"node_ids": collisions},
        )

    new_nodes = [node for node in fragment.nodes if node.id not in graph.nodes]
    known_ids = set(graph.nodes)
    known_ids.update(node.id for node in new_nodes)

    resolvable = [
        edge for edge in fragment.edges if edge.source in known_ids and edge.target in known_ids
    ]
    new_edges = dedupe_edges(resolvable, seen=graph.edge_keys())

    merged = graph.extended(new_nodes, new_edges)
    diagnostics = MergeDiagnostics(
        malformed_nodes=fragment.malformed_nodes,
        malformed_edges=fragment.malformed_edges,
        duplicate_nodes=len(fragment.nodes) - len(new_nodes),
        duplicate_edges=len(resolvable) - len(new_edges),
        dangling_edges=len(fragment.edges) - len(resolvable),
        isolated_node_ids=merged.isolated_node_ids(),
    )

    if diagnostics.isolated_node_ids:
        logger.warning(
            "Unconnected nodes after merge",
            extra={"isolated_node_ids": diagnostics.isolated_node_ids},
        )
    logger.info(
        "Merged fragment",
        extra={
            "added_nodes": len(new_nodes),
            "added_edges": len(new_edges),
            "total_nodes": len(merged.nodes),
            "total_edges": len(merged.edges),
            "diagnostics": diagnostics,
        },
    )

    return MergeResult(
        graph=merged,
        added_node_ids=tuple(node.id for node in new_nodes),
        added_edges=tuple(new_edges),
        diagnostics=diagnostics,
    )
