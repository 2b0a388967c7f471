"""cliquebeam MCP server — exposes typed clique mining as tools for AI agents."""

from __future__ import annotations

import functools
import logging
import os
import sys
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from cliquebeam.client import CliqueMiner
from cliquebeam.models import GraphStats, MiningRequest, MiningResult

# All logging goes to stderr; stdout is reserved for JSON-RPC
logging.basicConfig(stream=sys.stderr, level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("cliquebeam.mcp")

# ---------------------------------------------------------------------------
# Miner singleton, shared by every tool of the single-process stdio server
# ---------------------------------------------------------------------------

_MINER: CliqueMiner | None = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    global _MINER
    request_path = os.environ.get("CLIQUEBEAM_REQUEST_PATH")
    if request_path:
        logger.info("Preloading mining request: %s", request_path)
        request = MiningRequest.model_validate_json(Path(request_path).read_text())
        _MINER = CliqueMiner.from_request(request)
    try:
        yield {}
    finally:
        _MINER = None


mcp = FastMCP(
    "cliquebeam",
    instructions=(
        "cliquebeam finds dense typed quasi-cliques in a heterogeneous graph. "
        "Call load_graph first with a typespec (list of [core_type, relation, non_core_type]) "
        "and a list of edges. Every triple must share one core type; core nodes may also be "
        "linked to each other with the 'core' relation. "
        "Then call mine_cliques; it returns the best clique per graph with its densities."
    ),
    lifespan=app_lifespan,
)


def _get_miner() -> CliqueMiner:
    """Return the active miner."""
    if _MINER is None:
        raise RuntimeError("No graph is loaded; call load_graph first")
    return _MINER


def _safe_tool(fn: Callable[..., dict]) -> Callable[..., dict]:
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> dict:
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            logger.exception("Tool %s failed", fn.__name__)
            return {"error": True, "message": f"{type(exc).__name__}: {exc}"}
    return wrapper


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def _stats_dict(stats: GraphStats) -> dict:
    return stats.model_dump()


def _result_dict(result: MiningResult) -> dict:
    return result.model_dump()


# ===================================================================
# Graph tools (3)
# ===================================================================


@mcp.tool()
@_safe_tool
def load_graph(
    typespec: list[list[str]],
    edges: list[dict[str, Any]],
    core_relation: str = "core",
) -> dict:
    """Load a typed graph, replacing any graph loaded before.

    Args:
        typespec: Relation triples, e.g. [["author", "published", "article"]].
        edges: Edge objects with keys source, source_type, target, target_type,
            relation and optionally graph_id (default 0).
        core_relation: Relation tag of core-core edges.
    """
    global _MINER
    request = MiningRequest.model_validate(
        {"typespec": typespec, "edges": edges, "core_relation": core_relation}
    )
    miner = CliqueMiner.from_request(request)
    _MINER = miner
    logger.info("Loaded %d graphs", len(miner.graph_ids))
    return {
        "graph_ids": miner.graph_ids,
        "graphs": {str(gid): _stats_dict(miner.stats(gid)) for gid in miner.graph_ids},
    }


@mcp.tool()
@_safe_tool
def get_stats(graph_id: int = 0) -> dict:
    """Get node and edge counts of a loaded graph.

    Args:
        graph_id: Which loaded graph to describe.
    """
    return _stats_dict(_get_miner().stats(graph_id))


@mcp.tool()
@_safe_tool
def get_neighbors(
    node_id: int,
    relation: str | None = None,
    graph_id: int = 0,
) -> dict:
    """Find the nodes adjacent to a given node.

    Args:
        node_id: The node to find neighbors of.
        relation: If provided, only follow edges with this relation.
        graph_id: Which loaded graph to query.
    """
    nodes = _get_miner().neighbors(node_id, relation=relation, graph_id=graph_id)
    return {"count": len(nodes), "nodes": nodes}


# ===================================================================
# Mining tools (1)
# ===================================================================


@mcp.tool()
@_safe_tool
def mine_cliques(
    config: dict[str, Any] | None = None,
    graph_id: int | None = None,
) -> dict:
    """Run the beam search and return the best (quasi-)clique.

    Args:
        config: Mining options, e.g. {"beam_size": 20, "alpha": 0.5,
            "global_thresh": 0.8, "local_thresh": 0.5, "min_degree": 1}.
        graph_id: Mine only this graph; every loaded graph when omitted.
    """
    miner = _get_miner()
    if graph_id is None:
        results = miner.mine_many(config)
    else:
        results = [miner.mine(config, graph_id=graph_id)]
    return {"count": len(results), "results": [_result_dict(r) for r in results]}


# ===================================================================
# Resources (2)
# ===================================================================


@mcp.resource("cliquebeam://schema")
def schema_resource() -> str:
    """cliquebeam data model reference."""
    return (
        "# cliquebeam Data Model\n\n"
        "## TypeSpec\n"
        "Ordered [core_type, relation, non_core_type] triples sharing one core type.\n"
        "Core nodes may also be linked to each other with the core relation.\n\n"
        "## Edges\n"
        "Integer node ids with a type each, joined by a declared relation.\n\n"
        "## Cliques\n"
        "- `core_ids` / `noncore_ids`: member nodes\n"
        "- `global_density`: share of possible core-core edges present\n"
        "- `local_densities`: per core node, share of its possible edges present\n"
        "- `type_densities`: per non-core type, share of core edges present\n"
    )


@mcp.resource("cliquebeam://stats")
def stats_resource() -> str:
    """Live statistics of the loaded graphs."""
    lines = ["# cliquebeam Statistics\n"]
    if _MINER is None or not _MINER.graph_ids:
        lines.append("No graph loaded.")
        return "\n".join(lines)
    for graph_id in _MINER.graph_ids:
        stats = _MINER.stats(graph_id)
        lines.append(f"## Graph {graph_id}")
        lines.append(f"Nodes: {stats.node_count}")
        lines.append(f"Edges: {stats.edge_count}")
        for t, c in stats.nodes_by_type.items():
            lines.append(f"- {t}: {c}")
    return "\n".join(lines)


# ===================================================================
# Entry point
# ===================================================================


def run_server() -> None:
    """Run the cliquebeam MCP server over stdio."""
    mcp.run(transport="stdio")
