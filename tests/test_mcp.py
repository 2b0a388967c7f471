"""Tests for the cliquebeam MCP server tools and resources."""

from __future__ import annotations

import pytest

from cliquebeam.mcp import server as mcp_server
from cliquebeam.mcp.server import (
    get_neighbors,
    get_stats,
    load_graph,
    mcp,
    mine_cliques,
    schema_resource,
    stats_resource,
)

TYPESPEC = [["author", "published", "article"]]


def _edges(graph, graph_id=0):
    return [
        {
            "source": a,
            "source_type": ta,
            "target": b,
            "target_type": tb,
            "relation": rel,
            "graph_id": graph_id,
        }
        for a, ta, b, tb, rel in graph.edges()
    ]


@pytest.fixture(autouse=True)
def _reset_miner(monkeypatch):
    """Start every test with no graph loaded."""
    monkeypatch.setattr(mcp_server, "_MINER", None)


@pytest.fixture()
def loaded(author_graph):
    return load_graph(typespec=TYPESPEC, edges=_edges(author_graph))


class TestGraphTools:
    def test_load_graph(self, loaded):
        assert loaded["graph_ids"] == [0]
        assert loaded["graphs"]["0"]["node_count"] == 4
        assert loaded["graphs"]["0"]["edge_count"] == 5

    def test_load_multiple_graphs(self, author_graph):
        edges = _edges(author_graph, graph_id=1) + _edges(author_graph, graph_id=2)
        result = load_graph(typespec=TYPESPEC, edges=edges)
        assert result["graph_ids"] == [1, 2]
        assert set(result["graphs"]) == {"1", "2"}

    def test_load_invalid_edge(self):
        edge = {
            "source": 1,
            "source_type": "author",
            "target": 3,
            "target_type": "article",
            "relation": "reviewed",
        }
        result = load_graph(typespec=TYPESPEC, edges=[edge])
        assert result["error"] is True
        assert "InvalidEdgeError" in result["message"]

    def test_get_stats(self, loaded):
        result = get_stats()
        assert result["node_count"] == 4
        assert result["nodes_by_type"] == {"article": 2, "author": 2}

    def test_get_stats_without_graph(self):
        result = get_stats()
        assert result["error"] is True
        assert "load_graph" in result["message"]

    def test_get_neighbors(self, loaded):
        result = get_neighbors(node_id=1)
        assert result == {"count": 3, "nodes": [2, 3, 4]}
        assert get_neighbors(node_id=1, relation="published")["nodes"] == [3, 4]

    def test_get_neighbors_unknown_node(self, loaded):
        result = get_neighbors(node_id=99)
        assert result["error"] is True
        assert "UnknownNodeError" in result["message"]


class TestMiningTools:
    def test_mine_cliques(self, loaded):
        result = mine_cliques(config={"global_thresh": 1.0, "local_thresh": 1.0, "min_degree": 1})
        assert result["count"] == 1
        clique = result["results"][0]["cliques"][0]
        assert clique["core_ids"] == [1, 2]
        assert clique["noncore_ids"] == [3, 4]

    def test_mine_single_graph(self, author_graph):
        edges = _edges(author_graph, graph_id=1) + _edges(author_graph, graph_id=2)
        load_graph(typespec=TYPESPEC, edges=edges)
        result = mine_cliques(graph_id=2)
        assert result["count"] == 1
        assert result["results"][0]["graph_id"] == 2

    def test_mine_invalid_config(self, loaded):
        result = mine_cliques(config={"beam_size": 0})
        assert result["error"] is True
        assert "ConfigurationError" in result["message"]

    def test_mine_without_graph(self):
        result = mine_cliques()
        assert result["error"] is True


class TestResources:
    def test_schema_resource(self):
        text = schema_resource()
        assert "cliquebeam Data Model" in text
        assert "global_density" in text

    def test_stats_resource(self, loaded):
        text = stats_resource()
        assert "cliquebeam Statistics" in text
        assert "Nodes: 4" in text
        assert "Edges: 5" in text

    def test_stats_resource_empty(self):
        text = stats_resource()
        assert "No graph loaded." in text


class TestServerRegistration:
    def test_all_tools_registered(self):
        tool_names = {tool.name for tool in mcp._tool_manager.list_tools()}
        expected = {"load_graph", "get_stats", "get_neighbors", "mine_cliques"}
        assert tool_names == expected

    def test_all_resources_registered(self):
        resource_uris = set()
        for template in mcp._resource_manager.list_templates():
            resource_uris.add(str(template.uri_template))
        for resource in mcp._resource_manager.list_resources():
            resource_uris.add(str(resource.uri))
        assert "cliquebeam://schema" in resource_uris
        assert "cliquebeam://stats" in resource_uris
