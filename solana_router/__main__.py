"""Command-line entry point for the Solana query router."""

import asyncio
import json
from typing import Optional

import click
import httpx
import uvicorn

from solana_router.config import get_app_config
from solana_router.logging_config import configure_logging
from solana_router.models.conversation import Query
from solana_router.router.pipeline import build_router
from solana_router.utils.errors import RouterError


@click.group()
def cli() -> None:
    """Answer natural-language questions about Solana."""


@cli.command()
@click.option("--port", type=int, help="Port to listen on")
@click.option("--host", type=str, help="Host to bind to")
@click.option("--reload", is_flag=True, help="Reload on code changes")
@click.option("--log-level", type=str, help="Log level override")
def serve(
    port: Optional[int] = None,
    host: Optional[str] = None,
    reload: bool = False,
    log_level: Optional[str] = None,
) -> None:
    """Run the HTTP API."""
    config = get_app_config().server

    uvicorn.run(
        "solana_router.app:create_application",
        factory=True,
        host=host or config.host,
        port=port or config.port,
        log_level=(log_level or config.log_level).lower(),
        reload=reload or config.debug,
    )


async def _ask(question: str, address: Optional[str], session: Optional[str]) -> dict:
    config = get_app_config()
    async with httpx.AsyncClient() as http_client:
        router = build_router(config, http_client)
        try:
            response = await router.route(Query(text=question, address=address, session_id=session))
        finally:
            await router.close()
    return response.to_payload()


@cli.command()
@click.argument("question")
@click.option("--address", type=str, help="Address or transaction signature the question is about")
@click.option("--session", type=str, help="Session ID for continuity")
def ask(question: str, address: Optional[str] = None, session: Optional[str] = None) -> None:
    """Answer one QUESTION and print the JSON response."""
    configure_logging(get_app_config().server.log_level)
    try:
        payload = asyncio.run(_ask(question, address, session))
    except RouterError as e:
        click.echo(json.dumps({"error": e.to_dict()}, indent=2), err=True)
        raise SystemExit(1)
    click.echo(json.dumps(payload, indent=2, default=str))


def main():
    """Run the command-line interface."""
    cli()


if __name__ == "__main__":
    main()
