"""Accumulating flow-graph builder.

`FlowGraphBuilder` owns the accumulated graph. Each `extend` call runs the whole
pipeline (sanitize, merge, lay out) while holding a single-writer lock, so
concurrent callers are serialized and never observe a half-merged graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Optional

from .config.settings import LayoutSettings
from .core.exceptions import FragmentRejectedError
from .graph.fragment import validate_fragment
from .graph.merge import MergeDiagnostics, merge_fragment
from .graph.model import Graph
from .graph.parsing import parse_fragment_text
from .layout.layered import LayoutResult, compute_layout
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExtendResult:
    """Positioned accumulated graph after one extension, plus merge diagnostics."""

    layout: LayoutResult
    diagnostics: MergeDiagnostics

    @property
    def graph(self) -> Graph:
        return self.layout.graph

    def to_dict(self) -> Dict[str, Any]:
        edges = []
        for edge in self.graph.edges:
            payload = edge.to_dict()
            payload["loopBack"] = edge.is_self_loop or edge.key in self.layout.reversed_edges
            edges.append(payload)
        return {
            "nodes": [node.to_dict() for node in self.graph.nodes.values()],
            "edges": edges,
            "diagnostics": self.diagnostics.to_dict(),
        }


class FlowGraphBuilder:
    """Owned accumulator for a process-flow graph built from successive fragments."""

    def __init__(self, settings: Optional[LayoutSettings] = None) -> None:
        self.settings = settings or LayoutSettings()
        self._graph = Graph()
        self._lock = Lock()

    @property
    def graph(self) -> Graph:
        return self._graph

    def extend(self, raw_fragment: Any) -> ExtendResult:
        """Merge one raw fragment and lay out the whole accumulated graph.

        Raises:
            FragmentRejectedError: the fragment repeats a node id; the accumulated
                graph is left untouched.
        """
        fragment = validate_fragment(raw_fragment)
        with self._lock:
            try:
                merged = merge_fragment(self._graph, fragment)
            except FragmentRejectedError as exc:
                logger.warning("Fragment rejected", extra={"error": str(exc)})
                raise
            layout = compute_layout(merged.graph, self.settings)
            self._graph = layout.graph
        return ExtendResult(layout=layout, diagnostics=merged.diagnostics)

    def extend_from_text(self, text: str) -> ExtendResult:
        """Extend from the collaborator's raw text answer (JSON, possibly fenced)."""
        return self.extend(parse_fragment_text(text))

    def relayout(self, settings: Optional[LayoutSettings] = None) -> LayoutResult:
        """Recompute positions, optionally with new settings, without merging anything."""
        with self._lock:
            if settings is not None:
                self.settings = settings
            layout = compute_layout(self._graph, self.settings)
            self._graph = layout.graph
        return layout

    def reset(self) -> None:
        with self._lock:
            self._graph = Graph()
