"""
Interactive mode — menu selection and text prompts over the same operations.

One message at a time: show the menu, read a choice, run the operation
(install/update/remove on a background worker), show the result, repeat
until ``exit``. Ctrl-C / EOF leave the loop like ``exit``.
"""

from __future__ import annotations

import logging

import click

from zcr.core.errors import ZcrError
from zcr.core.services.lifecycle import PackageManager
from zcr.core.services.manifest_ops import clear_scratch
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

MENU = (
    ("install", "Install a package"),
    ("remove", "Remove a package"),
    ("update", "Update a package"),
    ("upgrade", "Upgrade all packages"),
    ("find", "Find packages"),
    ("refresh", "Refresh package list"),
    ("autoremove", "Remove temporary files"),
    ("help", "Show help"),
    ("how-to-add", "How to add your own repo"),
    ("exit", "Exit the application"),
)

_NEEDS_PACKAGE = {"install", "remove", "update"}


def render_menu(theme: Theme) -> str:
    lines = [theme.paint("ZCR - Zenit Community Repository", "accent", bold=True)]
    for i, (name, desc) in enumerate(MENU, start=1):
        lines.append(f"  {theme.paint(f'{i:>2}.', 'progress')} {name:<11} {desc}")
    return "\n".join(lines)


def parse_choice(raw: str) -> str | None:
    """Menu choice from a number or a command name; None if unknown."""
    value = raw.strip().lower()
    if value.isdigit():
        index = int(value) - 1
        return MENU[index][0] if 0 <= index < len(MENU) else None
    names = {name for name, _ in MENU}
    return value if value in names else None


def run_interactive(manager: PackageManager, theme: Theme) -> None:
    """Menu loop. Returns when the user picks ``exit`` or aborts."""
    logger.info("Interactive mode started")
    while True:
        click.echo()
        click.echo(render_menu(theme))
        try:
            raw = click.prompt("Select", default="", show_default=False)
        except click.Abort:
            break

        choice = parse_choice(raw)
        if choice is None:
            if raw.strip():
                click.echo(theme.paint(f"✖ Unknown choice: {raw.strip()}", "error"))
            continue
        logger.info("Selected command: %s", choice)
        if choice == "exit":
            break

        try:
            _dispatch(choice, manager, theme)
        except click.Abort:
            click.echo()
            click.echo(theme.paint("ℹ Cancelled", "info"))
        except ZcrError as e:
            logger.error("%s failed: %s", choice, e)
            click.echo(render_error(e, theme))

    logger.info("Interactive mode finished")


def _dispatch(choice: str, manager: PackageManager, theme: Theme) -> None:
    buffer = manager.settings.event_buffer

    if choice in _NEEDS_PACKAGE:
        name = click.prompt("Package name").strip()
        if not name:
            return
        if choice == "install":
            if not click.confirm(f"Install {name}?", default=False):
                click.echo(theme.paint(f"✖ Installation of {name} cancelled", "error"))
                return
            result = run_with_progress(
                "install", name, lambda ch: manager.install(name, ch), theme, buffer
            )
        elif choice == "update":
            result = run_with_progress(
                "update", name, lambda ch: manager.update(name, ch), theme, buffer
            )
        else:
            result = run_with_progress(
                "remove", name, lambda ch: manager.remove(name, ch), theme, buffer
            )
        click.echo(render_result(result, theme))

    elif choice == "upgrade":
        report = run_with_progress("upgrade", "", manager.upgrade, theme, buffer)
        click.echo(render_upgrade(report, theme))

    elif choice == "find":
        query = click.prompt("Search query").strip()
        click.echo(render_matches(query, manager.find(query), theme))

    elif choice == "refresh":
        manifest = manager.load_manifest()
        click.echo(theme.paint(f"✔ Package list refreshed: {len(manifest)} packages", "success"))

    elif choice == "autoremove":
        outcome = clear_scratch(manager.settings.scratch_files)
        for err in outcome["errors"]:
            click.echo(
                theme.paint(f"✖ Failed to remove {err['path']}: {err['error']}", "error")
            )
        if not outcome["errors"]:
            click.echo(
                theme.paint(f"✔ Removed {len(outcome['removed'])} temporary file(s)", "success")
            )

    elif choice == "help":
        click.echo(render_help(theme))

    elif choice == "how-to-add":
        click.echo(render_how_to_add(theme))
