"""Fragment sanitizing.

A fragment is one batch of candidate nodes and edges produced by the extraction
collaborator. Its shape is not trusted: every entry is validated on its own and
malformed entries are dropped (and counted) without failing the rest of the batch.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..utils.logging import get_logger
from .model import Edge, Node
from .roles import BranchSide, Role, infer_branch_side

logger = get_logger(__name__)


def _first(data: Mapping, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _coerce_id(value: Any) -> Any:
    # Extraction output sometimes numbers its nodes.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class NodeDraft(BaseModel):
    """Node as submitted by the extraction collaborator."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: str = Field(min_length=1)
    role: Role = Role.DEFAULT
    label: str = ""

    @model_validator(mode="before")
    @classmethod
    def _unwrap_aliases(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        label = data.get("label")
        if label is None and isinstance(data.get("data"), Mapping):
            label = data["data"].get("label")
        return {
            "id": _coerce_id(data.get("id")),
            "role": Role.parse(_first(data, "role", "type")),
            "label": "" if label is None else str(label),
        }

    def to_node(self) -> Node:
        return Node(id=self.id, role=self.role, label=self.label or self.id)


class EdgeDraft(BaseModel):
    """Edge as submitted by the extraction collaborator."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    branch_label: Optional[str] = None
    branch_side: Optional[BranchSide] = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap_aliases(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        label = _first(data, "branchLabel", "branch_label", "label")
        raw_side = _first(data, "branchSide", "branch_side", "sourceHandle")
        return {
            "source": _coerce_id(_first(data, "source", "from")),
            "target": _coerce_id(_first(data, "target", "to")),
            "branch_label": None if label is None else str(label),
            "branch_side": BranchSide.parse(raw_side),
        }

    @field_validator("branch_label")
    @classmethod
    def _blank_label_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @model_validator(mode="after")
    def _infer_side(self) -> "EdgeDraft":
        if self.branch_side is None:
            self.branch_side = infer_branch_side(self.branch_label)
        return self

    def to_edge(self) -> Edge:
        return Edge(
            source=self.source,
            target=self.target,
            branch_label=self.branch_label,
            branch_side=self.branch_side,
        )


@dataclass(frozen=True)
class Fragment:
    """A sanitized fragment plus counts of what was dropped to get there."""

    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    malformed_nodes: int = 0
    malformed_edges: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges


def _entries(raw: Mapping, key: str) -> List[Any]:
    value = raw.get(key)
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def validate_fragment(raw: Any) -> Fragment:
    """Sanitize one raw fragment `{"nodes": [...], "edges": [...]}`.

    Never raises: a non-mapping fragment (or non-list `nodes`/`edges`) is treated as
    empty, and each malformed node or edge is dropped individually.
    """
    if not isinstance(raw, Mapping):
        logger.debug("Fragment is not a mapping; treating as empty", extra={"kind": type(raw).__name__})
        return Fragment()

    nodes: List[Node] = []
    malformed_nodes = 0
    for idx, entry in enumerate(_entries(raw, "nodes")):
        try:
            nodes.append(NodeDraft.model_validate(entry).to_node())
        except ValidationError as exc:
            malformed_nodes += 1
            logger.debug(
                "Dropped malformed node",
                extra={"index": idx, "errors": _error_summary(exc)},
            )

    edges: List[Edge] = []
    malformed_edges = 0
    for idx, entry in enumerate(_entries(raw, "edges")):
        try:
            edges.append(EdgeDraft.model_validate(entry).to_edge())
        except ValidationError as exc:
            malformed_edges += 1
            logger.debug(
                "Dropped malformed edge",
                extra={"index": idx, "errors": _error_summary(exc)},
            )

    return Fragment(
        nodes=tuple(nodes),
        edges=tuple(edges),
        malformed_nodes=malformed_nodes,
        malformed_edges=malformed_edges,
    )


def _error_summary(exc: ValidationError) -> List[Dict[str, Any]]:
    return [
        {"loc": ".".join(str(part) for part in err["loc"]), "type": err["type"]}
        for err in exc.errors(include_url=False)
    ]
