"""Layered layout and crossing detection."""

from .crossings import count_edge_crossings
from .layered import LayoutResult, compute_layout, layout_graph

__all__ = ["LayoutResult", "compute_layout", "count_edge_crossings", "layout_graph"]
