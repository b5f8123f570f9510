"""
zcr — CLI entrypoint.

Usage:
    zcr install <package>
    zcr find <query>
    zcr update-all
    zcr ui
    python -m zcr.main --help
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, NoReturn

import click

from zcr import __version__
from zcr.core.config.loader import ConfigError, Settings, load_settings
from zcr.core.errors import ZcrError
from zcr.core.observability.logging_config import logging_session
from zcr.core.services.lifecycle import PackageManager
from zcr.core.services.manifest_ops import clear_scratch
from zcr.core.services.progress import ProgressChannel
from zcr.ui.cli.progress import run_with_progress
from zcr.ui.cli.render import (
    Theme,
    render_error,
    render_help,
    render_how_to_add,
    render_matches,
    render_result,
    render_upgrade,
)

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="zcr")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to zcr.yml (default: $ZCR_CONFIG or /etc/zcr/zcr.yml).",
)
@click.option("--mock", is_flag=True, help="Use mock adapters (no real git or hooks).")
@click.option("--no-color", is_flag=True, help="Disable colored output.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    mock: bool,
    no_color: bool,
) -> None:
    """zcr — Zenit Linux package manager."""
    ctx.ensure_object(dict)
    theme = Theme(color=not no_color)
    ctx.obj["theme"] = theme
    ctx.obj["mock"] = mock

    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings(Path(config_path) if config_path else None)
        except ConfigError as e:
            click.echo(render_error(e, theme), err=True)
            sys.exit(1)
    settings: Settings = ctx.obj["settings"]

    # ── Logging setup (once, closed when the command finishes) ──
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("ZCR_LOG_LEVEL", "WARNING")

    ctx.with_resource(
        logging_session(
            level=level,
            log_file=settings.log_file,
            log_file_level=os.environ.get("ZCR_LOG_FILE_LEVEL", "INFO"),
        )
    )


# ── Helpers ─────────────────────────────────────────────────────


def _manager(ctx: click.Context) -> PackageManager:
    """The PackageManager for this invocation (built once, mock-aware)."""
    manager = ctx.obj.get("manager")
    if manager is None:
        settings: Settings = ctx.obj["settings"]
        if ctx.obj.get("mock"):
            from zcr.adapters.mock import MockHookAdapter, MockRepositoryAdapter

            manager = PackageManager(
                settings,
                repo=MockRepositoryAdapter(),
                hooks=MockHookAdapter(build_dir=settings.build_dir),
            )
        else:
            manager = PackageManager(settings)
        ctx.obj["manager"] = manager
    return manager


def _fail(ctx: click.Context, error: BaseException) -> NoReturn:
    logger.error("%s", error)
    click.echo(render_error(error, ctx.obj["theme"]), err=True)
    sys.exit(1)


def _run(
    ctx: click.Context,
    operation: str,
    package: str,
    work: Callable[[ProgressChannel], Any],
) -> Any:
    """Run a lifecycle operation on a worker; exit 1 on ZcrError."""
    settings: Settings = ctx.obj["settings"]
    try:
        return run_with_progress(
            operation, package, work, ctx.obj["theme"], buffer=settings.event_buffer
        )
    except ZcrError as e:
        _fail(ctx, e)


# ── Lifecycle commands ──────────────────────────────────────────


@cli.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def install(ctx: click.Context, name: str, yes: bool) -> None:
    """Install a package: clone its repository and run unpack.sh."""
    theme: Theme = ctx.obj["theme"]
    if not yes and not click.confirm(f"Install {name}?", default=False):
        logger.info("Installation of %s cancelled", name)
        click.echo(theme.paint(f"✖ Installation of {name} cancelled", "error"))
        return

    manager = _manager(ctx)
    result = _run(ctx, "install", name, lambda ch: manager.install(name, ch))
    click.echo(render_result(result, theme))


@cli.command()
@click.argument("name")
@click.pass_context
def remove(ctx: click.Context, name: str) -> None:
    """Remove a package: run remove.sh and delete its directory."""
    manager = _manager(ctx)
    result = _run(ctx, "remove", name, lambda ch: manager.remove(name, ch))
    click.echo(render_result(result, ctx.obj["theme"]))


@cli.command()
@click.argument("name")
@click.pass_context
def update(ctx: click.Context, name: str) -> None:
    """Update a package if its upstream has new commits."""
    manager = _manager(ctx)
    result = _run(ctx, "update", name, lambda ch: manager.update(name, ch))
    click.echo(render_result(result, ctx.obj["theme"]))


@cli.command("update-all")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update_all(ctx: click.Context, as_json: bool) -> None:
    """Update every installed package (alias: upgrade).

    A package that fails is reported and skipped; the command only
    fails when the repository list cannot be fetched.
    """
    manager = _manager(ctx)

    if as_json:
        try:
            report = manager.upgrade()
        except ZcrError as e:
            click.echo(json.dumps({"error": str(e), "kind": e.kind}, indent=2))
            sys.exit(1)
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    report = _run(ctx, "upgrade", "", manager.upgrade)
    click.echo(render_upgrade(report, ctx.obj["theme"]))


cli.add_command(update_all, "upgrade")


# ── Manifest commands ───────────────────────────────────────────


@cli.command()
@click.argument("query")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def find(ctx: click.Context, query: str, as_json: bool) -> None:
    """Search the repository list (case-insensitive substring)."""
    try:
        matches = _manager(ctx).find(query)
    except ZcrError as e:
        _fail(ctx, e)

    if as_json:
        click.echo(json.dumps([{"name": m.name, "url": m.url} for m in matches], indent=2))
        return
    click.echo(render_matches(query, matches, ctx.obj["theme"]))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def refresh(ctx: click.Context, as_json: bool) -> None:
    """Fetch the repository list and report how many packages it has."""
    manager = _manager(ctx)
    try:
        manifest = manager.load_manifest()
    except ZcrError as e:
        _fail(ctx, e)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "packages": len(manifest),
                    "source": manifest.source,
                    "saved": manager.fetcher.last_write_error is None,
                },
                indent=2,
            )
        )
        return
    theme: Theme = ctx.obj["theme"]
    click.echo(theme.paint(f"✔ Package list refreshed: {len(manifest)} packages", "success"))


@cli.command()
@click.pass_context
def autoremove(ctx: click.Context) -> None:
    """Remove temporary files (the cached repository list)."""
    theme: Theme = ctx.obj["theme"]
    settings: Settings = ctx.obj["settings"]

    click.echo(theme.paint("➜ Cleaning up temporary files...", "progress"))
    outcome = clear_scratch(settings.scratch_files)
    for path in outcome["removed"]:
        click.echo(theme.paint(f"✔ Removed {path}", "success"))
    for err in outcome["errors"]:
        click.echo(
            theme.paint(f"✖ Failed to remove {err['path']}: {err['error']}", "error"),
            err=True,
        )

    if outcome["errors"]:
        sys.exit(1)
    click.echo(theme.paint("✔ Cleanup completed", "success"))


# ── Informational / interactive ─────────────────────────────────


@cli.command("help")
@click.pass_context
def help_command(ctx: click.Context) -> None:
    """Show the zcr command overview."""
    click.echo(render_help(ctx.obj["theme"]))


@cli.command("how-to-add")
@click.pass_context
def how_to_add(ctx: click.Context) -> None:
    """Explain how to get a repository listed in zcr."""
    click.echo(render_how_to_add(ctx.obj["theme"]))


@cli.command()
@click.pass_context
def ui(ctx: click.Context) -> None:
    """Interactive mode: menus and prompts instead of arguments."""
    from zcr.ui.cli.interactive import run_interactive

    run_interactive(_manager(ctx), ctx.obj["theme"])


if __name__ == "__main__":
    cli()
