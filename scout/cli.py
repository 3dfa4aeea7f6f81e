#!/usr/bin/env python3
"""
Scout CLI - test event reporting tools

Usage:
    scout upload-events --eventLogPath <events.ndjson> [OPTIONS]
    scout summarize-events <events.ndjson>
    scout --version
"""

import asyncio
import logging
from collections import Counter
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import DEFAULT_DATA_STREAM, ENV_DATA_STREAM, ENV_ES_API_KEY, ENV_ES_URL, StoreConfig
from .errors import ConfigError
from .persistence import ReportDataStream
from .reporting import EventAction, load_events
from .store import BulkStats, StoreConnectionError, StoreError, create_store_client

app = typer.Typer(
    name="scout",
    help="Scout - test event reporting tools",
    add_completion=False,
)
console = Console()
log = logging.getLogger("scout")


def version_callback(value: bool):
    if value:
        console.print(f"Scout v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show version and exit"
    ),
    debug: bool = typer.Option(
        False, "--debug",
        help="Enable debug logging"
    ),
):
    """
    Scout - test event reporting tools

    Upload and inspect event logs recorded by the Scout reporters.
    """
    configure_logging(logging.DEBUG if debug else logging.INFO)


def configure_logging(level: int = logging.INFO) -> None:
    """Route ``scout`` loggers through a rich handler (once per process)."""
    if not any(isinstance(h, RichHandler) for h in log.handlers):
        handler = RichHandler(console=console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        log.addHandler(handler)
    log.setLevel(level)


async def upload_events_async(
    config: StoreConfig,
    event_log_path: Path,
    data_stream: str = DEFAULT_DATA_STREAM,
) -> BulkStats:
    """
    Connect to the store, bootstrap the data stream schema and upload an event log.

    Raises:
        StoreConnectionError: If the store cannot be reached (before any schema change)
        StoreError: If schema bootstrap fails
    """
    log.info(f"Connecting to Elasticsearch at {config.url}")

    async with create_store_client(config) as client:
        try:
            es_info = await client.info()
        except StoreError as e:
            raise StoreConnectionError(f"Failed to connect to Elasticsearch\n{e}") from e

        log.info(f"Connected to Elasticsearch node '{es_info.get('name', '?')}'")

        events_data_stream = ReportDataStream(client, name=data_stream, log=log)
        await events_data_stream.create_if_missing()
        return await events_data_stream.add_events_from_file(event_log_path)


@app.command("upload-events")
def upload_events(
    event_log_path: Path = typer.Option(
        ..., "--eventLogPath",
        help="Path to the event log to upload",
    ),
    es_url: str = typer.Option(
        ..., "--esURL", envvar=ENV_ES_URL,
        help="Elasticsearch URL",
    ),
    es_api_key: str = typer.Option(
        ..., "--esAPIKey", envvar=ENV_ES_API_KEY,
        help="Elasticsearch API Key",
    ),
    verify_tls_certs: bool = typer.Option(
        False, "--verifyTLSCerts",
        help="Verify TLS certificates",
    ),
    data_stream: str = typer.Option(
        DEFAULT_DATA_STREAM, "--dataStream", envvar=ENV_DATA_STREAM,
        help="Target data stream",
    ),
):
    """
    Upload events recorded by the Scout reporter to Elasticsearch.

    Individual documents that fail to upload are reported as a warning;
    the command still succeeds.
    """
    if not event_log_path.is_file():
        raise typer.BadParameter(
            f"Event log path '{event_log_path}' does not exist or is not a file.",
            param_hint="--eventLogPath",
        )

    if not es_api_key.strip():
        raise typer.BadParameter("Elasticsearch API key must not be empty", param_hint="--esAPIKey")

    try:
        config = StoreConfig(url=es_url, api_key=es_api_key, verify_certs=verify_tls_certs)
    except ConfigError as e:
        raise typer.BadParameter(str(e), param_hint="--esURL")

    try:
        stats = asyncio.run(upload_events_async(config, event_log_path, data_stream))
    except StoreConnectionError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(code=1)
    except StoreError as e:
        console.print(f"[red]❌ Failed to set up data stream '{data_stream}':[/red] {e.message}")
        raise typer.Exit(code=1)

    if stats.failed:
        console.print(
            f"[yellow]⚠️  Uploaded {stats.total - stats.failed}/{stats.total} events[/yellow]"
        )
    else:
        console.print(f"[green]✅ Uploaded {stats.total} events[/green]")


@app.command("summarize-events")
def summarize_events(
    event_log_path: Path = typer.Argument(
        ...,
        help="Path to the event log",
        exists=True,
        readable=True,
        dir_okay=False,
    ),
):
    """
    Summarize a saved event log.

    Show each run's outcome and the number of events per action.
    """
    runs: dict[str, dict] = {}
    actions: Counter = Counter()

    try:
        for event in load_events(event_log_path):
            actions[event.action.value] += 1
            run = runs.setdefault(event.run.id, {"status": None, "duration": None, "passed": 0, "failed": 0})

            if event.action == EventAction.RUN_END:
                run["status"] = event.run.status
                run["duration"] = event.run.duration
            elif event.action == EventAction.TEST_END and event.test is not None:
                if event.test.status == "passed":
                    run["passed"] += 1
                else:
                    run["failed"] += 1
    except (ValueError, KeyError) as e:
        console.print(f"[red]❌ Malformed event log:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Runs")
    table.add_column("Run ID", style="cyan")
    table.add_column("Status")
    table.add_column("Duration")
    table.add_column("Passed", style="green")
    table.add_column("Failed", style="red")

    for run_id, run in runs.items():
        status = run["status"] or "incomplete"
        duration = f"{run['duration']}" if run["duration"] is not None else "N/A"
        table.add_row(run_id, status, duration, str(run["passed"]), str(run["failed"]))

    console.print()
    console.print(table)

    actions_table = Table(title="Events")
    actions_table.add_column("Action", style="magenta")
    actions_table.add_column("Count")
    for action in EventAction:
        if actions[action.value]:
            actions_table.add_row(action.value, str(actions[action.value]))

    console.print(actions_table)


@app.command()
def info():
    """
    Show information about Scout.
    """
    console.print(f"""
[bold]Scout[/bold] v{__version__}

Test event reporting tools

[bold]Features:[/bold]
  • Canonical test event model with stable test IDs
  • Reporters for event-emitter and callback test runners
  • Newline-delimited JSON event logs
  • Idempotent data stream bootstrap and bulk upload to Elasticsearch

[bold]Quick Start:[/bold]
  scout upload-events --eventLogPath .scout/reports/scout-<run id>/events.ndjson
  scout summarize-events .scout/reports/scout-<run id>/events.ndjson
""")


if __name__ == "__main__":
    app()
