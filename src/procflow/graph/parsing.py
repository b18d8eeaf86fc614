"""Extraction of a fragment payload from raw collaborator text.

The extraction collaborator answers with text that should be a bare JSON object,
but may arrive wrapped in markdown fences or surrounded by prose.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, List, Tuple

from ..utils.logging import get_logger

logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def empty_fragment() -> Dict[str, List[Any]]:
    return {"nodes": [], "edges": []}


def parse_fragment_text(text: str) -> Dict[str, Any]:
    """Return the fragment object found in `text`, or an empty fragment.

    A top-level JSON list is read as a list of nodes. A `{"flowchart": {...}}`
    envelope is unwrapped.
    """
    for payload in _json_candidates(text or ""):
        if isinstance(payload, dict):
            if isinstance(payload.get("flowchart"), dict):
                payload = payload["flowchart"]
            return payload
        if isinstance(payload, list) and all(isinstance(item, dict) for item in payload):
            return {"nodes": payload, "edges": []}

    logger.warning(
        "No fragment payload found in text; using empty fragment",
        extra={"response_preview": (text or "")[:800]},
    )
    return empty_fragment()


def _json_candidates(text: str) -> Iterator[Any]:
    candidates = [match.group(1) for match in _FENCE_PATTERN.finditer(text)]
    candidates.append(text.strip())

    for candidate in candidates:
        if not candidate:
            continue
        try:
            yield json.loads(candidate)
            continue
        except json.JSONDecodeError:
            pass

        # Try spans in the order they open, so a node list embedded in
        # prose is read whole rather than as its first node.
        spans = _balanced_spans(candidate, "{", "}") + _balanced_spans(candidate, "[", "]")
        for _, payload in sorted(spans):
            try:
                yield json.loads(payload)
            except json.JSONDecodeError:
                continue


def _balanced_spans(raw: str, open_ch: str, close_ch: str) -> List[Tuple[int, str]]:
    spans: List[Tuple[int, str]] = []
    depth = 0
    start = None
    in_string = False
    escape = False
    for idx, ch in enumerate(raw):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == "\"":
                in_string = False
            continue

        if ch == "\"":
            in_string = True
            continue
        if ch == open_ch:
            if depth == 0:
                start = idx
            depth += 1
        elif ch == close_ch and depth > 0:
            depth -= 1
            if depth == 0 and start is not None:
                spans.append((start, raw[start : idx + 1]))
                start = None
    return spans
