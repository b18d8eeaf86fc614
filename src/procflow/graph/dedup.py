"""Edge deduplication keyed on the ordered (source, target) pair."""

from __future__ import annotations

from typing import Iterable, List, Set

from .model import Edge, EdgeKey


def dedupe_edges(edges: Iterable[Edge], seen: Iterable[EdgeKey] = ()) -> List[Edge]:
    """Keep the first edge per (source, target) pair, in order.

    `seen` holds keys that are already taken (e.g. edges of the accumulated graph);
    edges matching them are dropped as well. `(A, B)` and `(B, A)` are distinct keys.
    Later duplicates are dropped whole, even when their branch label differs.
    """
    taken: Set[EdgeKey] = set(seen)
    kept: List[Edge] = []
    for edge in edges:
        if edge.key in taken:
            continue
        taken.add(edge.key)
        kept.append(edge)
    return kept
