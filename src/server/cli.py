"""Click CLI for running and exercising the webhook server."""

from __future__ import annotations

import logging
from typing import IO

import click
import uvicorn

from src.line.signature import compute_signature


@click.group()
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Root logging level.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """LINE audio/video transcription bridge."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level.lower()
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address.")
@click.option("--port", default=8000, type=int, help="Bind port.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Serve the webhook app; configuration comes from the environment."""
    uvicorn.run(
        "src.server.app:create_app_from_env",
        factory=True,
        host=host,
        port=port,
        log_level=ctx.obj["log_level"],
    )


@cli.command()
@click.argument("payload", type=click.File("rb"))
@click.option(
    "--secret",
    envvar="CHANNEL_SECRET",
    required=True,
    help="Channel secret (defaults to $CHANNEL_SECRET).",
)
def sign(payload: IO[bytes], secret: str) -> None:
    """Print the x-line-signature value for a webhook PAYLOAD file."""
    click.echo(compute_signature(secret, payload.read()))
