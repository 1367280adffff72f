"""CLI entry point for autotriage."""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click
import structlog

from autotriage import __version__
from autotriage.config.settings import TriageSettings
from autotriage.engine.batch import BatchTriageOrchestrator
from autotriage.engine.triage import TriageOrchestrator
from autotriage.exceptions import AutoTriageError, ConfigurationError
from autotriage.mcp.server import MCPServer, warn_missing_credentials
from autotriage.mcp.tools import TriageToolkit
from autotriage.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

T = TypeVar("T")


@click.group()
@click.option(
    "--config",
    envvar="AUTOTRIAGE_CONFIG",
    default=None,
    help="Path to a YAML configuration file (default: read environment variables)",
)
@click.option("--log-level", default="INFO", help="Logging level")
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"]),
    default="json",
    help="Log renderer (logs always go to stderr)",
)
@click.version_option(__version__, prog_name="autotriage")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str, log_format: str) -> None:
    """autotriage: GitHub issue triage over MCP."""
    configure_logging(log_level, json_output=log_format == "json")

    if config is None:
        ctx.obj = {"settings": TriageSettings.from_env()}
        return

    if not Path(config).exists():
        click.echo(f"Error: Configuration file not found: {config}", err=True)
        sys.exit(1)

    try:
        settings = TriageSettings.from_yaml(config)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {"settings": settings}


def _run(command: str, func: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine, mapping failures to exit codes."""
    try:
        return asyncio.run(func())
    except AutoTriageError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug(f"{command}_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error(f"{command}_unexpected", exc_info=True)
        sys.exit(1)


async def _with_toolkit(settings: TriageSettings, func: Callable[[TriageToolkit], Awaitable[T]]) -> T:
    toolkit = TriageToolkit.from_settings(settings)
    try:
        return await func(toolkit)
    finally:
        await toolkit.close()


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP server on stdin/stdout."""
    settings: TriageSettings = ctx.obj["settings"]
    warn_missing_credentials(settings)

    async def _serve() -> None:
        await MCPServer(TriageToolkit.from_settings(settings)).serve()

    _run("serve", _serve)


@cli.command()
@click.argument("owner")
@click.argument("repo")
@click.argument("number", type=click.IntRange(min=1))
@click.pass_context
def triage(ctx: click.Context, owner: str, repo: str, number: int) -> None:
    """Classify, label and annotate a single issue."""
    settings: TriageSettings = ctx.obj["settings"]

    async def _triage(toolkit: TriageToolkit) -> str:
        orchestrator = TriageOrchestrator(toolkit.store, toolkit.policy, toolkit.renderer)
        result = await orchestrator.triage(owner, repo, number)
        return result.summary()

    click.echo(_run("triage", lambda: _with_toolkit(settings, _triage)))


@cli.command()
@click.argument("owner")
@click.argument("repo")
@click.option("--label", "labels", multiple=True, help="Only issues with this label (repeatable)")
@click.option("--limit", type=click.IntRange(min=1, max=100), default=None, help="Issues to consider")
@click.pass_context
def recommend(ctx: click.Context, owner: str, repo: str, labels: tuple[str, ...], limit: int | None) -> None:
    """Recommend beginner-friendly open issues."""
    settings: TriageSettings = ctx.obj["settings"]

    async def _recommend(toolkit: TriageToolkit) -> str:
        return await toolkit.recommend(owner, repo, list(labels), limit)

    click.echo(_run("recommend", lambda: _with_toolkit(settings, _recommend)))


@cli.command()
@click.argument("owner")
@click.argument("repo")
@click.option(
    "--dry-run/--apply",
    default=True,
    help="Only classify (default) or also apply labels",
)
@click.option("--limit", type=click.IntRange(min=1, max=100), default=None, help="Max issues to process")
@click.pass_context
def batch(ctx: click.Context, owner: str, repo: str, dry_run: bool, limit: int | None) -> None:
    """Classify every untriaged open issue in a repository."""
    settings: TriageSettings = ctx.obj["settings"]

    async def _batch(toolkit: TriageToolkit) -> str:
        orchestrator = BatchTriageOrchestrator(
            toolkit.store,
            toolkit.policy,
            delay=settings.triage.batch_delay,
            limit=settings.triage.batch_limit,
        )
        summary = await orchestrator.run(owner, repo, dry_run=dry_run, limit=limit)
        return toolkit.renderer.render_batch_summary(summary)

    click.echo(_run("batch", lambda: _with_toolkit(settings, _batch)))


@cli.command()
@click.argument("owner")
@click.argument("repo")
@click.option("--json", "as_json", is_flag=True, help="Print the JSON document instead of markdown")
@click.pass_context
def stats(ctx: click.Context, owner: str, repo: str, as_json: bool) -> None:
    """Show label coverage and staleness for open issues."""
    settings: TriageSettings = ctx.obj["settings"]

    async def _stats(toolkit: TriageToolkit) -> str:
        report = await toolkit.stats(owner, repo)
        if as_json:
            return json.dumps(report.to_dict(), indent=2)
        return toolkit.renderer.render_stats_report(report)

    click.echo(_run("stats", lambda: _with_toolkit(settings, _stats)))


if __name__ == "__main__":
    cli()
