"""Custom exception hierarchy for procflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ProcflowException(Exception):
    """Base exception type for all procflow errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ConfigurationError(ProcflowException):
    """Raised when layout or logging configuration is invalid."""


class FragmentRejectedError(ProcflowException):
    """Raised when a fragment cannot be merged as a whole.

    Only internal inconsistencies of the fragment itself (two nodes sharing an id)
    lead here; every other data-shape problem is recovered locally.
    """
