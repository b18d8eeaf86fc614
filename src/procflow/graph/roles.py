"""Node roles and their presentation categories.

Roles arrive as free-form tags from the extraction collaborator; `Role.parse`
folds them into the closed set below. Every role maps to exactly one `Category`,
which rendering uses to pick a shape and palette.

Decision nodes are conventionally drawn with two outgoing branches: the
affirmative one leaves on the left, the negative one on the right. The classifier
only annotates that expectation (`annotate_branches`), it never enforces it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .model import Graph


class Role(str, Enum):
    """Semantic role of a node as tagged by the extraction collaborator."""
    START = "start"
    END = "end"
    PROCESS = "process"
    DECISION = "decision"
    IO = "io"
    NOTE = "note"
    DEFAULT = "default"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Fold a raw role tag into a `Role`; unknown or missing tags become DEFAULT."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return cls.DEFAULT
        key = value.strip().lower()
        key = _ROLE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.DEFAULT


_ROLE_ALIASES = {
    "sticky": "note",
    "input": "io",
    "output": "io",
    "inputoutput": "io",
    "input/output": "io",
}


class Category(str, Enum):
    """Presentation category consumed by rendering."""
    TERMINAL = "terminal"
    ACTION = "action"
    BRANCH = "branch"
    INPUT_OUTPUT = "inputOutput"
    ANNOTATION = "annotation"
    DEFAULT = "default"


class BranchSide(str, Enum):
    """Side a decision branch leaves its node from."""
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: Any) -> Optional["BranchSide"]:
        if isinstance(value, BranchSide):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        key = _SIDE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def rank(self) -> int:
        return -1 if self is BranchSide.LEFT else 1


# Handle ids used by diamond-shaped decision nodes.
_SIDE_ALIASES = {"yes": "left", "no": "right"}

_AFFIRMATIVE_LABELS = {"yes", "y", "true"}
_NEGATIVE_LABELS = {"no", "n", "false"}


_CATEGORY_BY_ROLE: Dict[Role, Category] = {
    Role.START: Category.TERMINAL,
    Role.END: Category.TERMINAL,
    Role.PROCESS: Category.ACTION,
    Role.DECISION: Category.BRANCH,
    Role.IO: Category.INPUT_OUTPUT,
    Role.NOTE: Category.ANNOTATION,
    Role.DEFAULT: Category.DEFAULT,
}


def classify(role: Role) -> Category:
    return _CATEGORY_BY_ROLE[role]


def infer_branch_side(label: Optional[str]) -> Optional[BranchSide]:
    """Guess a branch side from a Yes/No style branch label."""
    if not label:
        return None
    key = label.strip().lower().rstrip(".!")
    if key in _AFFIRMATIVE_LABELS:
        return BranchSide.LEFT
    if key in _NEGATIVE_LABELS:
        return BranchSide.RIGHT
    return None


@dataclass
class BranchAnnotation:
    """Outgoing branch summary for one decision node."""

    node_id: str
    branch_count: int
    sides: List[Optional[BranchSide]] = field(default_factory=list)

    EXPECTED_BRANCHES = 2

    @property
    def is_conventional(self) -> bool:
        """Exactly two branches, one leaving left and one leaving right."""
        return self.branch_count == self.EXPECTED_BRANCHES and set(self.sides) == {
            BranchSide.LEFT,
            BranchSide.RIGHT,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "branchCount": self.branch_count,
            "sides": [side.value if side else None for side in self.sides],
            "conventional": self.is_conventional,
        }


def annotate_branches(graph: "Graph") -> Dict[str, BranchAnnotation]:
    annotations: Dict[str, BranchAnnotation] = {}
    for node in graph.nodes.values():
        if node.role is not Role.DECISION:
            continue
        outgoing = graph.outgoing(node.id)
        annotations[node.id] = BranchAnnotation(
            node_id=node.id,
            branch_count=len(outgoing),
            sides=[edge.branch_side for edge in outgoing],
        )
    return annotations
