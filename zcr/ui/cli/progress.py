"""
Progress driver — run one lifecycle operation on a worker, render its events.

The worker owns the operation; this loop owns the terminal. They only
meet through the :class:`ProgressChannel`.
"""

from __future__ import annotations

from typing import Any, Callable

import click

from zcr.core.services.progress import ProgressChannel, run_in_worker
from zcr.ui.cli.render import ProgressView, Theme, advance, render_event


def run_with_progress(
    operation: str,
    package: str,
    work: Callable[[ProgressChannel], Any],
    theme: Theme,
    buffer: int = 64,
) -> Any:
    """Run ``work(channel)`` in the background and echo each event.

    Returns:
        Whatever ``work`` returned.

    Raises:
        The worker's exception, re-raised on the calling thread once
        the error event arrives.
    """
    channel = ProgressChannel(maxsize=buffer, package=package)
    run_in_worker(work, channel, name=f"zcr-{operation}")

    view = ProgressView(operation=operation, package=package)
    for event in channel.events():
        view = advance(view, event)
        if event.terminal:
            # The caller renders the result or the error itself
            break
        click.echo(render_event(view, event, theme))

    if channel.error is not None:
        raise channel.error
    return channel.result
