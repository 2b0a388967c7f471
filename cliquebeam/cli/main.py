"""cliquebeam CLI — mine typed quasi-cliques from the command line."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from cliquebeam.client import CliqueMiner
from cliquebeam.engine.errors import CliqueMiningError
from cliquebeam.models import MiningConfig, MiningRequest


def _load_request(path: str) -> MiningRequest:
    try:
        return MiningRequest.model_validate_json(Path(path).read_text())
    except ValidationError as exc:
        raise click.ClickException(f"Invalid request file {path}: {exc}") from exc


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log search progress to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """cliquebeam CLI — find dense typed quasi-cliques with beam search."""
    ctx.ensure_object(dict)
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


@cli.command()
@click.argument("request_file", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), default=None, help="Write JSON here.")
@click.option("--beam-size", type=int, default=None, help="Override config.beam_size.")
@click.option("--epochs", type=int, default=None, help="Override config.epochs.")
@click.option("--alpha", type=float, default=None, help="Override config.alpha.")
@click.option("--workers", type=int, default=None, help="Override config.num_workers.")
@click.option("--random-seed", type=int, default=None, help="Override config.random_seed.")
def mine(
    request_file: str,
    output: str | None,
    beam_size: int | None,
    epochs: int | None,
    alpha: float | None,
    workers: int | None,
    random_seed: int | None,
) -> None:
    """Mine every graph in a JSON request file and print the cliques."""
    request = _load_request(request_file)
    overrides = {
        "beam_size": beam_size,
        "epochs": epochs,
        "alpha": alpha,
        "num_workers": workers,
        "random_seed": random_seed,
    }
    try:
        config = MiningConfig.load(
            request.config, **{k: v for k, v in overrides.items() if v is not None}
        )
        miner = CliqueMiner.from_request(request)
        results = miner.mine_many(config)
    except CliqueMiningError as exc:
        raise click.ClickException(str(exc)) from exc

    text = json.dumps([r.model_dump() for r in results], indent=2)
    if output:
        Path(output).write_text(text)
        found = sum(len(r.cliques) for r in results)
        click.echo(f"Wrote {found} cliques from {len(results)} graphs to {output}")
    else:
        click.echo(text)


@cli.command()
@click.argument("request_file", type=click.Path(exists=True))
def stats(request_file: str) -> None:
    """Show node and edge counts of every graph in a request file."""
    request = _load_request(request_file)
    try:
        miner = CliqueMiner.from_request(request)
    except CliqueMiningError as exc:
        raise click.ClickException(str(exc)) from exc
    if not miner.graph_ids:
        click.echo("No edges found.")
        return
    for graph_id in miner.graph_ids:
        s = miner.stats(graph_id)
        click.echo(f"Graph {graph_id}: Nodes: {s.node_count}  Edges: {s.edge_count}")
        for t, c in s.nodes_by_type.items():
            click.echo(f"  {t}: {c}")
        for r, c in s.edges_by_relation.items():
            click.echo(f"  -[{r}]-: {c}")


@cli.command()
@click.option("--request", "request_file", default=None, help="Request file to preload.")
def mcp(request_file: str | None) -> None:
    """Start the MCP server for AI agent integration."""
    import os

    if request_file:
        os.environ["CLIQUEBEAM_REQUEST_PATH"] = request_file
    from cliquebeam.mcp.server import run_server

    run_server()


if __name__ == "__main__":
    cli()
