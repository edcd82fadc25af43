"""CLI entry point for tab-hibernate."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
import uvicorn

from .backends import get_host
from .client import HibernateClient
from .config import get_storage_path
from .errors import HibernateError
from .service import Hibernator
from .storage import KeyValueStore

DEFAULT_URL = "http://127.0.0.1:8765"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.option("--url", default=DEFAULT_URL, show_default=True, help="Address of a running service.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, url: str):
    """Suspend idle browser tabs and keep their restore data safe."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"url": url}


@main.command()
@click.option("--port", default=8765, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the service and its scheduler."""
    click.echo(f"Starting tab-hibernate on http://{host}:{port}")
    uvicorn.run("tab_hibernate.server:app", host=host, port=port, reload=False)


@main.command()
def tick():
    """Run one scheduler firing against the configured host and exit."""
    hibernator = Hibernator(get_host(), KeyValueStore(get_storage_path()))
    report = asyncio.run(hibernator.scheduler.fire())
    if report is None:
        click.echo("Firing failed; see log.", err=True)
        sys.exit(1)
    if not report.enabled:
        click.echo("Suspension is disabled.")
        return
    click.echo(f"Suspended {len(report.suspended)} tab(s).")


def _remote(ctx: click.Context, type_: str) -> dict:
    try:
        with HibernateClient(ctx.obj["url"]) as client:
            return client.send(type_)
    except HibernateError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Show today's count, the last firing and eligible tabs."""
    res = _remote(ctx, "get-status")
    click.echo(f"Suspended today: {res['suspendedToday']}")
    click.echo(f"Last run: {res['lastRun'] or 'never'}")
    click.echo(f"Eligible tabs: {res['eligibleCount']}")


@main.command()
@click.pass_context
def backup(ctx: click.Context):
    """Back up all open tabs now."""
    res = _remote(ctx, "backup-now")
    click.echo(f"Backed up {res['count']} tab(s).")


@main.command("suspend-all")
@click.pass_context
def suspend_all(ctx: click.Context):
    """Suspend every eligible tab, ignoring the timeout."""
    res = _remote(ctx, "suspend-all-now")
    click.echo(f"Suspended: {res['suspended']}")


@main.command("restore-all")
@click.pass_context
def restore_all(ctx: click.Context):
    """Restore every tab showing a stub page."""
    res = _remote(ctx, "restore-all-suspended")
    click.echo(f"Restored: {res['restored']}")


@main.command("close-all")
@click.pass_context
def close_all(ctx: click.Context):
    """Close eligible tabs and keep them in the saved history."""
    res = _remote(ctx, "close-and-save-all")
    click.echo(f"Closed: {res['closed']}")


@main.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export_cmd(ctx: click.Context, path: Path):
    """Write history and backups to a JSON file."""
    try:
        with HibernateClient(ctx.obj["url"]) as client:
            data = client.export_history()
    except HibernateError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    click.echo(f"Exported to {path}")


@main.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_cmd(ctx: click.Context, path: Path):
    """Merge a previously exported JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        click.echo("Error: Invalid JSON file.", err=True)
        sys.exit(1)
    try:
        with HibernateClient(ctx.obj["url"]) as client:
            res = client.import_history(data)
    except HibernateError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)
    click.echo(f"Import done ({res['closedAndSaved']} saved entries).")
