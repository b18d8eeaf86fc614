"""Tests for incremental merging."""

import pytest

from procflow.core.exceptions import FragmentRejectedError
from procflow.graph.fragment import validate_fragment
from procflow.graph.merge import merge_fragment
from procflow.graph.model import Graph
from procflow.graph.roles import Role


def _merge(graph, raw):
    return merge_fragment(graph, validate_fragment(raw))


class TestMergeFragment:
    def test_isolated_nodes_are_reported_and_kept(self):
        result = _merge(Graph(), {"nodes": [{"id": "A"}, {"id": "B"}], "edges": []})
        assert result.diagnostics.isolated_node_ids == ["A", "B"]
        assert result.graph.node_ids() == ["A", "B"]

    def test_existing_node_wins(self):
        first = _merge(Graph(), {"nodes": [{"id": "A", "role": "start", "label": "Begin"}], "edges": []})
        second = _merge(
            first.graph,
            {"nodes": [{"id": "A", "role": "end", "label": "Other"}, {"id": "B"}], "edges": []},
        )
        node = second.graph.nodes["A"]
        assert node.role is Role.START
        assert node.label == "Begin"
        assert second.added_node_ids == ("B",)
        assert second.diagnostics.duplicate_nodes == 1

    def test_duplicate_edge_is_collapsed(self):
        result = _merge(
            Graph(),
            {
                "nodes": [{"id": "A"}, {"id": "B"}],
                "edges": [{"source": "A", "target": "B"}, {"source": "A", "target": "B"}],
            },
        )
        assert [edge.key for edge in result.graph.edges] == [("A", "B")]
        assert result.diagnostics.duplicate_edges == 1

    def test_edge_already_accumulated_is_dropped(self):
        base = _merge(
            Graph(),
            {"nodes": [{"id": "A"}, {"id": "B"}], "edges": [{"source": "A", "target": "B", "label": "x"}]},
        )
        again = _merge(base.graph, {"nodes": [], "edges": [{"source": "A", "target": "B", "label": "y"}]})
        assert len(again.graph.edges) == 1
        assert again.graph.edges[0].branch_label == "x"
        assert again.added_edges == ()

    def test_edges_may_reference_previously_merged_nodes(self):
        base = _merge(Graph(), {"nodes": [{"id": "A"}], "edges": []})
        result = _merge(base.graph, {"nodes": [{"id": "B"}], "edges": [{"source": "A", "target": "B"}]})
        assert result.graph.edge_keys() == {("A", "B")}
        assert result.diagnostics.isolated_node_ids == []

    def test_dangling_edges_are_dropped(self):
        result = _merge(
            Graph(),
            {
                "nodes": [{"id": "A"}, {"id": "B"}],
                "edges": [{"source": "A", "target": "B"}, {"source": "A", "target": "ghost"}],
            },
        )
        assert result.graph.edge_keys() == {("A", "B")}
        assert result.diagnostics.dangling_edges == 1
        assert "ghost" not in result.graph

    def test_duplicate_ids_within_fragment_reject_everything(self):
        base = _merge(Graph(), {"nodes": [{"id": "A"}], "edges": []})
        with pytest.raises(FragmentRejectedError) as exc_info:
            _merge(base.graph, {"nodes": [{"id": "B"}, {"id": "C"}, {"id": "B"}], "edges": []})
        assert exc_info.value.context == {"node_ids": ["B"]}
        assert base.graph.node_ids() == ["A"]

    def test_input_graph_is_not_mutated(self):
        base = _merge(Graph(), {"nodes": [{"id": "A"}], "edges": []}).graph
        _merge(base, {"nodes": [{"id": "B"}], "edges": [{"source": "A", "target": "B"}]})
        assert base.node_ids() == ["A"]
        assert base.edges == ()

    def test_diagnostic_counts_include_malformed_entries(self):
        result = _merge(
            Graph(),
            {"nodes": [{"id": "A"}, {"label": "no id"}], "edges": [{"source": "A"}]},
        )
        payload = result.diagnostics.to_dict()
        assert payload["malformedNodes"] == 1
        assert payload["malformedEdges"] == 1
        assert payload["isolatedNodeIds"] == ["A"]


class TestMergeProperties:
    FIRST = {
        "nodes": [{"id": "S", "role": "start"}, {"id": "P"}],
        "edges": [{"source": "S", "target": "P"}, {"source": "P", "target": "E"}],
    }
    SECOND = {
        "nodes": [{"id": "E", "role": "end"}, {"id": "Q"}],
        "edges": [{"source": "P", "target": "E"}, {"source": "P", "target": "Q"}, {"source": "Q", "target": "E"}],
    }

    def test_sequential_merge_matches_single_merge_of_union(self):
        # P->E dangles in FIRST alone; it arrives again with SECOND.
        stepwise = _merge(_merge(Graph(), self.FIRST).graph, self.SECOND).graph
        union = {
            "nodes": self.FIRST["nodes"] + self.SECOND["nodes"],
            "edges": self.FIRST["edges"] + self.SECOND["edges"],
        }
        at_once = _merge(Graph(), union).graph
        assert set(stepwise.nodes) == set(at_once.nodes)
        assert stepwise.edge_keys() == at_once.edge_keys()

    def test_no_duplicate_edges_across_merge_sequence(self):
        graph = Graph()
        for raw in (self.FIRST, self.SECOND, self.SECOND, self.FIRST):
            graph = _merge(graph, raw).graph
        keys = [edge.key for edge in graph.edges]
        assert len(keys) == len(set(keys))

    def test_previously_merged_elements_are_unchanged(self):
        first = _merge(Graph(), self.FIRST).graph
        second = _merge(first, self.SECOND).graph
        for node_id, node in first.nodes.items():
            assert second.nodes[node_id] == node
        assert second.edges[: len(first.edges)] == first.edges
