"""Shared fixtures for procflow tests."""

from typing import Any, Dict

import pytest

from procflow.builder import FlowGraphBuilder
from procflow.config.settings import LayoutSettings


@pytest.fixture
def layout_settings() -> LayoutSettings:
    """Default layout settings, independent of the environment."""
    return LayoutSettings.from_options(
        {
            "direction": "TB",
            "nodeWidth": 180,
            "nodeHeight": 70,
            "layerGap": 80,
            "nodeGap": 60,
            "orderingPasses": 4,
        }
    )


@pytest.fixture
def builder(layout_settings: LayoutSettings) -> FlowGraphBuilder:
    return FlowGraphBuilder(layout_settings)


@pytest.fixture
def linear_fragment() -> Dict[str, Any]:
    """Start -> Process -> End."""
    return {
        "nodes": [
            {"id": "S", "role": "start", "label": "Start"},
            {"id": "P", "role": "process", "label": "Do work"},
            {"id": "E", "role": "end", "label": "Done"},
        ],
        "edges": [
            {"source": "S", "target": "P"},
            {"source": "P", "target": "E"},
        ],
    }


@pytest.fixture
def decision_fragment() -> Dict[str, Any]:
    """A decision with a left (Yes) and right (No) branch."""
    return {
        "nodes": [
            {"id": "D", "role": "decision", "label": "Valid?"},
            {"id": "Y", "role": "process", "label": "Show dashboard"},
            {"id": "N", "role": "process", "label": "Show error"},
        ],
        "edges": [
            {"source": "D", "target": "Y", "branchLabel": "Yes", "branchSide": "left"},
            {"source": "D", "target": "N", "branchLabel": "No", "branchSide": "right"},
        ],
    }
