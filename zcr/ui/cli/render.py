"""
Rendering — pure functions from (view state, event/result) to text.

Nothing here prints or keeps module-level style state: every function
takes an explicit :class:`Theme` and returns a string, so the CLI,
the interactive mode and the tests all share one renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import click

from zcr.core.models.events import ProgressEvent, Stage
from zcr.core.models.manifest import ManifestEntry
from zcr.core.models.package import OperationResult, Outcome, UpgradeReport

HELP_COMMANDS = (
    ("install <package>", "Install a package"),
    ("find <package>", "Search for a package"),
    ("remove <package>", "Remove a package"),
    ("update <package>", "Update a specific package"),
    ("update-all", "Update all installed packages (alias: upgrade)"),
    ("refresh", "Fetch the repository list and count packages"),
    ("autoremove", "Remove temporary files"),
    ("ui", "Interactive mode"),
    ("help", "Show this help message"),
    ("how-to-add", "Instructions for adding new repositories"),
)

HOW_TO_ADD = (
    "You can contribute your own repository to zcr by submitting it to:",
    " - Issues: https://github.com/Zenit-Linux/zcr/issues",
    " - Discussions: https://github.com/Zenit-Linux/zcr/discussions",
    "Example repository: https://github.com/Zenit-Linux/Sample-repo-zcr/",
    "Guide: https://github.com/Zenit-Linux/zcr/wiki/Creating-your-own-repository-for-zcr",
    "Please read the documentation for more details:",
    " - https://github.com/Zenit-Linux/zcr/blob/main/README.md",
)

_STAGE_ICONS = {
    Stage.FETCHING_MANIFEST: "➜",
    Stage.CLONING: "➜",
    Stage.FETCHING: "➜",
    Stage.PULLING: "➜",
    Stage.RUNNING_HOOK: "➜",
    Stage.REMOVING: "➜",
    Stage.DONE: "✔",
    Stage.ERROR: "✖",
}


@dataclass(frozen=True)
class Theme:
    """Colors per role. ``color=False`` renders plain text."""

    success: str = "green"
    error: str = "red"
    info: str = "magenta"
    progress: str = "cyan"
    accent: str = "yellow"
    color: bool = True

    def paint(self, text: str, role: str, bold: bool = False) -> str:
        if not self.color:
            return text
        return click.style(text, fg=getattr(self, role), bold=bold)


@dataclass(frozen=True)
class ProgressView:
    """What the progress display knows about one running operation."""

    operation: str
    package: str = ""
    step: int = 0
    last_seq: int = 0
    finished: bool = False
    failed: bool = False


def advance(view: ProgressView, event: ProgressEvent) -> ProgressView:
    """Fold one event into the view."""
    if event.terminal:
        return replace(
            view,
            last_seq=event.seq,
            finished=True,
            failed=event.stage is Stage.ERROR,
        )
    return replace(view, step=view.step + 1, last_seq=event.seq)


def render_event(view: ProgressView, event: ProgressEvent, theme: Theme) -> str:
    """One status line for ``event`` (``view`` already advanced past it)."""
    icon = _STAGE_ICONS[event.stage]
    if event.stage is Stage.ERROR:
        kind = f"[{event.error_kind}] " if event.error_kind else ""
        return theme.paint(f"{icon} {kind}{event.message}", "error", bold=True)
    if event.stage is Stage.DONE:
        return theme.paint(f"{icon} {event.message}", "success", bold=True)
    step = theme.paint(f"[{view.step}]", "accent")
    return f"{theme.paint(icon, 'progress')} {step} {event.message}"


def render_result(result: OperationResult, theme: Theme) -> str:
    """Summary line(s) for a finished single-package operation."""
    if result.outcome in (Outcome.UP_TO_DATE, Outcome.ALREADY_ABSENT):
        lines = [theme.paint(f"ℹ {result.message}", "info")]
    else:
        lines = [theme.paint(f"✔ {result.message}", "success", bold=True)]
    if result.outcome is Outcome.INSTALLED and result.hook == "skipped":
        lines.append(theme.paint("ℹ No unpack.sh found, package cloned as-is", "info"))
    for warning in result.warnings:
        lines.append(theme.paint(f"⚠ {warning}", "accent"))
    return "\n".join(lines)


def render_error(error: BaseException, theme: Theme) -> str:
    return theme.paint(f"✖ {error}", "error", bold=True)


def render_matches(query: str, matches: list[ManifestEntry], theme: Theme) -> str:
    if not matches:
        return theme.paint(f"ℹ No packages found matching '{query}'", "info")
    lines = [theme.paint(f"Found {len(matches)} package(s):", "success", bold=True)]
    width = max(len(m.name) for m in matches)
    for m in matches:
        lines.append(f"  {theme.paint(m.name.ljust(width), 'accent')}  {m.url}")
    return "\n".join(lines)


def render_upgrade(report: UpgradeReport, theme: Theme) -> str:
    role = "success" if report.failed == 0 else "accent"
    lines = [
        theme.paint(
            f"✔ Upgrade finished: {report.attempted} attempted, "
            f"{report.updated} updated, {report.up_to_date} up to date, "
            f"{report.failed} failed",
            role,
            bold=True,
        )
    ]
    for failure in report.failures:
        lines.append(theme.paint(f"  ✖ {failure.package}: {failure.error}", "error"))
    return "\n".join(lines)


def render_help(theme: Theme) -> str:
    width = max(len(cmd) for cmd, _ in HELP_COMMANDS) + len("zcr ")
    body = ["Usage:"] + [
        f"  {theme.paint(('zcr ' + cmd).ljust(width), 'success')} - {desc}"
        for cmd, desc in HELP_COMMANDS
    ]
    return _boxed(" zcr - Zenit Linux Package Manager ", body, theme)


def render_how_to_add(theme: Theme) -> str:
    return _boxed(" How to Add a Repository to zcr ", list(HOW_TO_ADD), theme)


def _boxed(title: str, lines: list[str], theme: Theme) -> str:
    """Title + lines inside a rounded box (widths measured on plain text)."""
    plain = [click.unstyle(line) for line in lines]
    width = max([len(title)] + [len(p) for p in plain]) + 2
    top = "╭" + "─" * width + "╮"
    bottom = "╰" + "─" * width + "╯"
    out = [
        theme.paint(top, "info"),
        "│ " + theme.paint(title.ljust(width - 2), "accent", bold=True) + " │",
        "│" + " " * width + "│",
    ]
    for line, p in zip(lines, plain):
        out.append("│ " + line + " " * (width - 2 - len(p)) + " │")
    out.append(theme.paint(bottom, "info"))
    return "\n".join(out)
