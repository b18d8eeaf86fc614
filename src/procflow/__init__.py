"""procflow - incremental process-flow graph accumulation and layered layout."""

from typing import TYPE_CHECKING

__all__ = ["FlowGraphBuilder", "LayoutSettings", "Settings"]

if TYPE_CHECKING:
    from .builder import FlowGraphBuilder
    from .config.settings import LayoutSettings, Settings


def __getattr__(name: str):
    if name == "FlowGraphBuilder":
        from .builder import FlowGraphBuilder

        return FlowGraphBuilder
    if name in {"LayoutSettings", "Settings"}:
        from .config import settings

        return getattr(settings, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
