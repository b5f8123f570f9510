"""
ProgressChannel — ordered, bounded event stream from one worker to one consumer.

The lifecycle worker runs on a background thread and never touches
presentation state. It reports through the channel; the presentation
loop drains it.

Contract
────────
- ``emit()`` assigns a monotonic ``seq`` and enqueues a stage marker.
  When the queue is full the worker blocks until the consumer catches up.
- ``finish()`` / ``fail()`` enqueue exactly one terminal event and close
  the channel. A second terminal call is ignored; ``emit()`` after close
  raises ``ChannelClosed``.
- Reading ``closed`` never blocks, even while the producer waits on a
  full queue.
- ``events()`` yields every event in order and stops after the terminal
  one, so the consumer detects completion deterministically.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Iterator

from zcr.core.errors import ZcrError
from zcr.core.models.events import TERMINAL_STAGES, ProgressEvent, Stage

logger = logging.getLogger(__name__)


class ChannelClosed(RuntimeError):
    """An event was emitted after the terminal event."""


class ProgressChannel:
    """Bounded queue of :class:`ProgressEvent` for a single operation.

    Parameters
    ----------
    maxsize : int
        Queue capacity. The producer blocks when it is reached.
    package : str
        Package the operation targets, stamped on every event.
    """

    def __init__(self, maxsize: int = 64, package: str = "") -> None:
        self._queue: queue.Queue[ProgressEvent] = queue.Queue(maxsize=maxsize)
        # _send serializes producers across the blocking put; _lock only
        # guards seq/closed and is never held while waiting on the queue.
        self._send = threading.Lock()
        self._lock = threading.Lock()
        self._seq = 0
        self._closed = False
        self.package = package
        self.result: Any = None
        self.error: BaseException | None = None

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    # ── Producer side ───────────────────────────────────────────

    def emit(self, stage: Stage, message: str = "", **data: Any) -> ProgressEvent:
        """Report a non-terminal stage."""
        if stage in TERMINAL_STAGES:
            raise ValueError(f"Use finish()/fail() for terminal stage {stage.value}")
        with self._send:
            with self._lock:
                if self._closed:
                    raise ChannelClosed(f"Channel closed, cannot emit {stage.value}")
                event = self._next(stage, message, data=data)
            return self._enqueue(event)

    __call__ = emit

    def finish(self, result: Any = None, message: str = "") -> ProgressEvent | None:
        """Close the channel with a success event."""
        with self._send:
            with self._lock:
                if self._closed:
                    logger.debug("finish() on closed channel ignored")
                    return None
                self._closed = True
                self.result = result
                if not message:
                    message = getattr(result, "message", "") or "done"
                event = self._next(Stage.DONE, message)
            return self._enqueue(event)

    def fail(self, error: BaseException) -> ProgressEvent | None:
        """Close the channel with an error event."""
        with self._send:
            with self._lock:
                if self._closed:
                    logger.debug("fail() on closed channel ignored: %s", error)
                    return None
                self._closed = True
                self.error = error
                data: dict[str, Any] = {}
                if isinstance(error, ZcrError):
                    kind = error.kind
                    if error.state is not None:
                        data["state"] = error.state.value
                else:
                    kind = type(error).__name__
                event = self._next(Stage.ERROR, str(error), error_kind=kind, data=data)
            return self._enqueue(event)

    def _next(
        self,
        stage: Stage,
        message: str,
        error_kind: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> ProgressEvent:
        # Caller holds both locks; seq order == queue order.
        self._seq += 1
        return ProgressEvent(
            seq=self._seq,
            stage=stage,
            package=self.package,
            message=message,
            error_kind=error_kind,
            data=data or {},
        )

    def _enqueue(self, event: ProgressEvent) -> ProgressEvent:
        self._queue.put(event)
        logger.debug("event #%d %s %s", event.seq, event.stage.value, self.package or "-")
        return event

    # ── Consumer side ───────────────────────────────────────────

    def events(self, timeout: float | None = None) -> Iterator[ProgressEvent]:
        """Yield events until (and including) the terminal one.

        Raises:
            queue.Empty: No event arrived within ``timeout`` seconds.
        """
        while True:
            event = self._queue.get(timeout=timeout)
            yield event
            if event.terminal:
                return


def run_in_worker(
    work: Callable[[ProgressChannel], Any],
    channel: ProgressChannel,
    name: str = "zcr-worker",
) -> threading.Thread:
    """Run ``work(channel)`` on a background thread.

    The return value closes the channel with ``finish()``; any exception
    closes it with ``fail()``. The thread is a daemon: quitting the
    presentation loop does not wait for an in-flight git or hook process.
    """

    def _target() -> None:
        try:
            result = work(channel)
        except ZcrError as e:
            channel.fail(e)
        except Exception as e:
            logger.exception("Worker %s crashed", name)
            channel.fail(e)
        else:
            channel.finish(result)

    thread = threading.Thread(target=_target, name=name, daemon=True)
    thread.start()
    return thread
