"""Edge crossing counts.

`count_layer_crossings` works on an ordering (used while reordering layers);
`count_edge_crossings` works on a positioned graph, treating every edge as a
straight segment between node coordinates.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from ..graph.model import EdgeKey, Graph

Point = Tuple[float, float]


def count_layer_crossings(
    layers: Sequence[Sequence[str]],
    ranks: Dict[str, int],
    edges: Sequence[EdgeKey],
) -> int:
    """Count crossings among edges joining adjacent layers.

    Two edges `(u1, v1)` and `(u2, v2)` between the same pair of layers cross when
    their endpoints appear in opposite order on the two layers.
    """
    position = {node_id: idx for layer in layers for idx, node_id in enumerate(layer)}
    by_layer: Dict[int, List[Tuple[int, int]]] = {}
    for source, target in edges:
        if ranks[target] - ranks[source] != 1:
            continue
        by_layer.setdefault(ranks[source], []).append((position[source], position[target]))

    crossings = 0
    for pairs in by_layer.values():
        for i in range(len(pairs)):
            u1, v1 = pairs[i]
            for j in range(i + 1, len(pairs)):
                u2, v2 = pairs[j]
                if (u1 - u2) * (v1 - v2) < 0:
                    crossings += 1
    return crossings


def count_edge_crossings(graph: Graph) -> int:
    segments = _edge_segments(graph)
    crossings = 0
    for i in range(len(segments)):
        a1, a2 = segments[i]
        for j in range(i + 1, len(segments)):
            b1, b2 = segments[j]
            if _segments_cross(a1, a2, b1, b2):
                crossings += 1
    return crossings


def _edge_segments(graph: Graph) -> List[Tuple[Point, Point]]:
    segments = []
    for edge in graph.edges:
        src = graph.nodes.get(edge.source)
        dst = graph.nodes.get(edge.target)
        if not src or not dst or edge.is_self_loop:
            continue
        if not src.is_positioned or not dst.is_positioned:
            continue
        segments.append(((src.x, src.y), (dst.x, dst.y)))
    return segments


def _segments_cross(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
    # Segments sharing an endpoint meet at a node, which is not a crossing.
    if a1 == b1 or a1 == b2 or a2 == b1 or a2 == b2:
        return False
    return _ccw(a1, b1, b2) != _ccw(a2, b1, b2) and _ccw(a1, a2, b1) != _ccw(a1, a2, b2)


def _ccw(a: Point, b: Point, c: Point) -> bool:
    return (c[1] - a[1]) * (b[0] - a[0]) > (b[1] - a[1]) * (c[0] - a[0])
