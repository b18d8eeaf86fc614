"""Process-flow graph values, fragment sanitizing and incremental merging."""

from .dedup import dedupe_edges
from .fragment import EdgeDraft, Fragment, NodeDraft, validate_fragment
from .merge import MergeDiagnostics, MergeResult, merge_fragment
from .model import Edge, Graph, Node
from .parsing import parse_fragment_text
from .roles import BranchAnnotation, BranchSide, Category, Role, annotate_branches, classify

__all__ = [
    "BranchAnnotation",
    "BranchSide",
    "Category",
    "Edge",
    "EdgeDraft",
    "Fragment",
    "Graph",
    "MergeDiagnostics",
    "MergeResult",
    "Node",
    "NodeDraft",
    "Role",
    "annotate_branches",
    "classify",
    "dedupe_edges",
    "merge_fragment",
    "parse_fragment_text",
    "validate_fragment",
]
