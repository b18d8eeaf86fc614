"""Layered (Sugiyama-style) layout.

Three phases run over the whole accumulated graph:

1. Ranking. Back-edges found by a depth-first traversal are reversed in an
   internal acyclic projection, then every node gets the length of the longest
   path reaching it from a node without predecessors.
2. Ordering. Nodes inside each layer are reordered by the median position of
   their neighbours in the adjacent layers, sweeping down then up for a fixed
   number of passes. The ordering with the fewest adjacent-layer crossings wins.
3. Coordinates. Fixed node footprint and gaps; every layer is centred against
   the widest one. `LR` swaps the axes.

There is no randomness anywhere: all ties fall back to branch side and then to
arrival order, so laying out an unchanged graph twice gives identical results.
Original edge direction is never changed; edges reversed for ranking are only
reported (`LayoutResult.reversed_edges`) so rendering can draw them as loop-backs.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple

from ..config.settings import LayoutSettings
from ..graph.model import EdgeKey, Graph, Node
from ..utils.logging import get_logger
from .crossings import count_layer_crossings

logger = get_logger(__name__)

_NEW, _ACTIVE, _DONE = 0, 1, 2

_HANDLES = {
    "TB": ("bottom", "top"),
    "LR": ("right", "left"),
}


@dataclass(frozen=True)
class Projection:
    """Acyclic view of a graph used for ranking and ordering only."""

    edges: Tuple[EdgeKey, ...]
    reversed_edges: FrozenSet[EdgeKey]


@dataclass(frozen=True)
class LayoutResult:
    graph: Graph
    reversed_edges: FrozenSet[EdgeKey]
    crossings: int


# -----------------------------------------------------------------------------
# Phase 1: acyclic projection and ranks
# -----------------------------------------------------------------------------


def _successors(graph: Graph) -> Dict[str, List[str]]:
    children: Dict[str, List[str]] = {node_id: [] for node_id in graph.nodes}
    for edge in graph.edges:
        if edge.is_self_loop or edge.source not in children or edge.target not in children:
            continue
        children[edge.source].append(edge.target)
    return children


def _traversal_roots(graph: Graph, children: Dict[str, List[str]]) -> List[str]:
    has_parent: Set[str] = {target for targets in children.values() for target in targets}
    sources = [node_id for node_id in graph.nodes if node_id not in has_parent]
    return sources + [node_id for node_id in graph.nodes if node_id in has_parent]


def project_acyclic(graph: Graph) -> Projection:
    """Reverse back-edges of a depth-first traversal.

    The traversal starts from nodes without predecessors (arrival order), then from
    any node still unvisited, so in a flow with a loop-back the edge returning to an
    earlier step is the one reversed. Self-loops are left out of the projection.
    """
    children = _successors(graph)
    state = {node_id: _NEW for node_id in graph.nodes}
    back_edges: Set[EdgeKey] = set()

    for root in _traversal_roots(graph, children):
        if state[root] != _NEW:
            continue
        state[root] = _ACTIVE
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(children[root]))]
        while stack:
            node_id, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                state[node_id] = _DONE
                stack.pop()
                continue
            if state[child] == _ACTIVE:
                back_edges.add((node_id, child))
            elif state[child] == _NEW:
                state[child] = _ACTIVE
                stack.append((child, iter(children[child])))

    projected: List[EdgeKey] = []
    seen: Set[EdgeKey] = set()
    for source, targets in children.items():
        for target in targets:
            key = (target, source) if (source, target) in back_edges else (source, target)
            if key not in seen:
                seen.add(key)
                projected.append(key)

    return Projection(edges=tuple(projected), reversed_edges=frozenset(back_edges))


def assign_ranks(node_ids: Sequence[str], edges: Sequence[EdgeKey]) -> Dict[str, int]:
    """Longest-path layering over an acyclic edge set.

    Nodes the topological walk never reaches (only possible when `edges` is not
    actually acyclic) keep rank 0 instead of failing the layout.
    """
    ranks = {node_id: 0 for node_id in node_ids}
    indegree = {node_id: 0 for node_id in node_ids}
    children: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}
    for source, target in edges:
        if source not in ranks or target not in ranks:
            continue
        children[source].append(target)
        indegree[target] += 1

    queue = deque(node_id for node_id in node_ids if indegree[node_id] == 0)
    visited: Set[str] = set()
    while queue:
        node_id = queue.popleft()
        visited.add(node_id)
        for child in children[node_id]:
            ranks[child] = max(ranks[child], ranks[node_id] + 1)
            indegree[child] -= 1
            if indegree[child] == 0:
                queue.append(child)

    stranded = [node_id for node_id in node_ids if node_id not in visited]
    if stranded:
        logger.warning("Nodes left unranked; placing them on layer 0", extra={"node_ids": stranded})
        for node_id in stranded:
            ranks[node_id] = 0
    return ranks


# -----------------------------------------------------------------------------
# Phase 2: ordering within layers
# -----------------------------------------------------------------------------


def _side_ranks(graph: Graph) -> Dict[str, int]:
    """Branch-side tie-break per node: -1 left target, 1 right target, 0 otherwise."""
    sides: Dict[str, int] = {}
    for edge in graph.edges:
        if edge.branch_side is not None and edge.target not in sides:
            sides[edge.target] = edge.branch_side.rank
    return sides


def _branch_groups(graph: Graph) -> List[List[Tuple[str, int]]]:
    """Sided targets per branching node, as `(target, side rank)` in edge arrival order."""
    groups: Dict[str, List[Tuple[str, int]]] = {}
    for edge in graph.edges:
        if edge.branch_side is None or edge.is_self_loop:
            continue
        groups.setdefault(edge.source, []).append((edge.target, edge.branch_side.rank))
    return [group for group in groups.values() if len(group) > 1]


def _enforce_branch_sides(
    layers: List[List[str]],
    groups: List[List[Tuple[str, int]]],
    position: Dict[str, int],
) -> None:
    """Put sibling branches of one node left-to-right by side within their slots."""
    layer_of = {node_id: rank for rank, layer in enumerate(layers) for node_id in layer}
    for group in groups:
        by_layer: Dict[int, List[Tuple[str, int]]] = {}
        for target, side in group:
            if target in layer_of:
                by_layer.setdefault(layer_of[target], []).append((target, side))
        for rank, members in by_layer.items():
            if len(members) < 2:
                continue
            layer = layers[rank]
            slots = sorted(position[target] for target, _ in members)
            members.sort(key=lambda member: (member[1], position[member[0]]))
            for slot, (target, _) in zip(slots, members):
                layer[slot] = target
            for idx, node_id in enumerate(layer):
                position[node_id] = idx


def _initial_layers(
    graph: Graph,
    ranks: Dict[str, int],
    children: Dict[str, List[str]],
    side_ranks: Dict[str, int],
    arrival: Dict[str, int],
) -> List[List[str]]:
    # Depth-first from the sources, visiting left branches before right ones.
    layers: List[List[str]] = [[] for _ in range(max(ranks.values()) + 1)]
    placed: Set[str] = set()

    def ordered(node_ids: List[str]) -> List[str]:
        return sorted(node_ids, key=lambda node_id: (side_ranks.get(node_id, 0), arrival[node_id]))

    roots = [node_id for node_id in graph.nodes if ranks[node_id] == 0]
    for root in roots + list(graph.nodes):
        if root in placed:
            continue
        stack = [root]
        while stack:
            node_id = stack.pop()
            if node_id in placed:
                continue
            placed.add(node_id)
            layers[ranks[node_id]].append(node_id)
            stack.extend(reversed(ordered(children.get(node_id, []))))
    return layers


def _median(values: List[int]) -> Optional[float]:
    if not values:
        return None
    values = sorted(values)
    mid = len(values) // 2
    if len(values) % 2:
        return float(values[mid])
    return (values[mid - 1] + values[mid]) / 2


def _reorder_layer(
    layer: List[str],
    neighbours: Dict[str, List[str]],
    position: Dict[str, int],
    side_ranks: Dict[str, int],
    arrival: Dict[str, int],
) -> None:
    medians = {
        node_id: _median([position[other] for other in neighbours.get(node_id, [])])
        for node_id in layer
    }
    movable = sorted(
        (node_id for node_id in layer if medians[node_id] is not None),
        key=lambda node_id: (medians[node_id], side_ranks.get(node_id, 0), arrival[node_id]),
    )
    # Nodes with no neighbours in the fixed adjacent layer keep their slot.
    moved = iter(movable)
    layer[:] = [node_id if medians[node_id] is None else next(moved) for node_id in layer]
    for idx, node_id in enumerate(layer):
        position[node_id] = idx


def order_layers(
    graph: Graph,
    ranks: Dict[str, int],
    projection: Projection,
    passes: int,
) -> List[List[str]]:
    """Order nodes within layers with the median heuristic.

    Each pass sweeps top-down (layer above fixed) then bottom-up (layer below fixed).
    Medians only look at neighbours in the adjacent layer; positions in other layers
    are not comparable. Ties fall back to branch side, then arrival order. After every
    reorder, sibling branches of one node are put back left-to-right by side. The best
    ordering seen, by adjacent-layer crossing count, is kept; on equal counts the
    earlier one wins.
    """
    if not graph.nodes:
        return []

    arrival = {node_id: idx for idx, node_id in enumerate(graph.nodes)}
    children: Dict[str, List[str]] = {node_id: [] for node_id in graph.nodes}
    upper: Dict[str, List[str]] = {node_id: [] for node_id in graph.nodes}
    lower: Dict[str, List[str]] = {node_id: [] for node_id in graph.nodes}
    for source, target in projection.edges:
        children[source].append(target)
        if ranks[target] - ranks[source] == 1:
            lower[source].append(target)
            upper[target].append(source)

    side_ranks = _side_ranks(graph)
    groups = _branch_groups(graph)
    layers = _initial_layers(graph, ranks, children, side_ranks, arrival)
    position = {node_id: idx for layer in layers for idx, node_id in enumerate(layer)}
    _enforce_branch_sides(layers, groups, position)

    best = [list(layer) for layer in layers]
    best_crossings = count_layer_crossings(layers, ranks, projection.edges)

    for _ in range(passes):
        if best_crossings == 0:
            break
        for layer in layers[1:]:
            _reorder_layer(layer, upper, position, side_ranks, arrival)
        _enforce_branch_sides(layers, groups, position)
        for layer in reversed(layers[:-1]):
            _reorder_layer(layer, lower, position, side_ranks, arrival)
        _enforce_branch_sides(layers, groups, position)
        crossings = count_layer_crossings(layers, ranks, projection.edges)
        if crossings < best_crossings:
            best = [list(layer) for layer in layers]
            best_crossings = crossings

    return best


# -----------------------------------------------------------------------------
# Phase 3: coordinates
# -----------------------------------------------------------------------------


def assign_coordinates(
    layers: Sequence[Sequence[str]],
    settings: LayoutSettings,
) -> Dict[str, Tuple[float, float]]:
    """Top-left coordinates for every node.

    Along a layer nodes sit `node_gap` apart, the layer centred against the widest
    one. Across layers the step is the node extent plus `layer_gap`.
    """
    if settings.direction == "LR":
        breadth, depth = settings.node_height, settings.node_width
    else:
        breadth, depth = settings.node_width, settings.node_height

    def extent(count: int) -> float:
        return count * breadth + max(count - 1, 0) * settings.node_gap

    widest = max((extent(len(layer)) for layer in layers), default=0.0)
    coords: Dict[str, Tuple[float, float]] = {}
    for rank, layer in enumerate(layers):
        offset = (widest - extent(len(layer))) / 2
        across = float(rank * (depth + settings.layer_gap))
        for idx, node_id in enumerate(layer):
            along = float(offset + idx * (breadth + settings.node_gap))
            coords[node_id] = (across, along) if settings.direction == "LR" else (along, across)
    return coords


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------


def compute_layout(graph: Graph, settings: Optional[LayoutSettings] = None) -> LayoutResult:
    """Lay out the whole graph, returning a new graph with every node placed."""
    settings = settings or LayoutSettings()
    if not graph.nodes:
        return LayoutResult(graph=graph, reversed_edges=frozenset(), crossings=0)

    projection = project_acyclic(graph)
    node_ids = list(graph.nodes)
    ranks = assign_ranks(node_ids, projection.edges)
    layers = order_layers(graph, ranks, projection, settings.ordering_passes)
    coords = assign_coordinates(layers, settings)
    source_handle, target_handle = _HANDLES[settings.direction]

    placed: List[Node] = []
    for layer in layers:
        for order, node_id in enumerate(layer):
            x, y = coords[node_id]
            placed.append(
                graph.nodes[node_id].placed(
                    layer=ranks[node_id],
                    order=order,
                    x=x,
                    y=y,
                    source_position=source_handle,
                    target_position=target_handle,
                )
            )

    crossings = count_layer_crossings(layers, ranks, projection.edges)
    if projection.reversed_edges:
        logger.debug(
            "Reversed back-edges for ranking",
            extra={"reversed_edges": sorted(projection.reversed_edges)},
        )
    logger.debug(
        "Layout computed",
        extra={"layers": len(layers), "nodes": len(node_ids), "crossings": crossings},
    )
    return LayoutResult(
        graph=graph.with_nodes(placed),
        reversed_edges=projection.reversed_edges,
        crossings=crossings,
    )


def layout_graph(graph: Graph, settings: Optional[LayoutSettings] = None) -> Graph:
    return compute_layout(graph, settings).graph
