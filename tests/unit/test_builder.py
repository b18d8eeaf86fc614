"""Tests for the accumulating builder."""

import threading

import pytest

from procflow.builder import FlowGraphBuilder
from procflow.config.settings import LayoutSettings
from procflow.core.exceptions import FragmentRejectedError


class TestExtend:
    def test_linear_flow_payload(self, builder, linear_fragment):
        payload = builder.extend(linear_fragment).to_dict()
        assert [node["id"] for node in payload["nodes"]] == ["S", "P", "E"]
        assert [node["category"] for node in payload["nodes"]] == ["terminal", "action", "terminal"]
        assert payload["diagnostics"]["isolatedNodeIds"] == []
        assert all(edge["loopBack"] is False for edge in payload["edges"])

    def test_incremental_extension_keeps_earlier_nodes(self, builder, linear_fragment):
        builder.extend(linear_fragment)
        result = builder.extend(
            {
                "nodes": [{"id": "P", "role": "decision"}, {"id": "R", "role": "io", "label": "Report"}],
                "edges": [{"source": "E", "target": "R"}],
            }
        )
        graph = result.graph
        assert graph.node_ids() == ["S", "P", "E", "R"]
        assert graph.nodes["P"].label == "Do work"
        assert graph.nodes["R"].layer == 3
        assert builder.graph is graph

    def test_isolated_nodes_are_surfaced(self, builder):
        result = builder.extend({"nodes": [{"id": "A"}, {"id": "B"}], "edges": []})
        assert result.to_dict()["diagnostics"]["isolatedNodeIds"] == ["A", "B"]

    def test_duplicate_edge_collapsed(self, builder):
        result = builder.extend(
            {
                "nodes": [{"id": "A"}, {"id": "B"}],
                "edges": [{"source": "A", "target": "B"}, {"source": "A", "target": "B"}],
            }
        )
        assert [edge["id"] for edge in result.to_dict()["edges"]] == ["A->B"]

    def test_loop_back_edges_are_flagged(self, builder):
        result = builder.extend(
            {
                "nodes": [{"id": "S", "role": "start"}, {"id": "T"}, {"id": "C", "role": "decision"}],
                "edges": [
                    {"source": "S", "target": "T"},
                    {"source": "T", "target": "C"},
                    {"source": "C", "target": "T", "label": "Retry"},
                ],
            }
        )
        flags = {edge["id"]: edge["loopBack"] for edge in result.to_dict()["edges"]}
        assert flags == {"S->T": False, "T->C": False, "C->T": True}
        assert result.graph.nodes["C"].y > result.graph.nodes["T"].y

    def test_rejected_fragment_leaves_graph_untouched(self, builder, linear_fragment):
        builder.extend(linear_fragment)
        before = builder.graph
        with pytest.raises(FragmentRejectedError):
            builder.extend({"nodes": [{"id": "X"}, {"id": "X"}], "edges": []})
        assert builder.graph is before

    def test_malformed_fragment_does_not_raise(self, builder):
        result = builder.extend("not a fragment")
        assert result.graph.is_empty


def test_extend_from_text(builder):
    text = (
        "Sure!\n```json\n"
        '{"nodes":[{"id":"a","type":"start","data":{"label":"Begin"}},{"id":"b","type":"end"}],'
        '"edges":[{"source":"a","target":"b"}]}\n```'
    )
    result = builder.extend_from_text(text)
    assert result.graph.nodes["a"].label == "Begin"
    assert result.graph.nodes["b"].layer == 1


def test_extend_from_unparseable_text(builder):
    assert builder.extend_from_text("sorry, I cannot help").graph.is_empty


def test_reset(builder, linear_fragment):
    builder.extend(linear_fragment)
    builder.reset()
    assert builder.graph.is_empty
    assert builder.extend({"nodes": [{"id": "S"}], "edges": []}).graph.node_ids() == ["S"]


def test_relayout_with_new_settings(builder, linear_fragment):
    builder.extend(linear_fragment)
    layout = builder.relayout(LayoutSettings.from_options({"direction": "LR"}))
    assert layout.graph.nodes["E"].x == 520.0
    assert builder.settings.direction == "LR"


def test_concurrent_extensions_are_serialized(layout_settings):
    builder = FlowGraphBuilder(layout_settings)
    fragments = [
        {
            "nodes": [{"id": f"n{idx}"}],
            "edges": [{"source": f"n{idx - 1}", "target": f"n{idx}"}] if idx else [],
        }
        for idx in range(20)
    ]
    threads = [threading.Thread(target=builder.extend, args=(fragment,)) for fragment in fragments]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    graph = builder.graph
    assert len(graph.nodes) == 20
    keys = [edge.key for edge in graph.edges]
    assert len(keys) == len(set(keys))
