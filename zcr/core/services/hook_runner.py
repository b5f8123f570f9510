"""
Hook runner — optional lifecycle scripts inside a package.

``<package>/<build-dir>/unpack.sh`` runs after clone/update,
``<package>/<build-dir>/remove.sh`` before deletion. A missing script
is ``skipped``, not an error. The runner only reports; what a failure
means is the lifecycle manager's decision.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from zcr.adapters.base import HookBackend
from zcr.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

HOOK_KINDS = ("unpack", "remove")


class HookRunner:
    """Runs hooks through a swappable :class:`HookBackend`."""

    def __init__(self, backend: HookBackend) -> None:
        self.backend = backend

    def locate(self, kind: str, package_dir: Path) -> Path | None:
        _check_kind(kind)
        return self.backend.locate(kind, package_dir)

    def run(self, kind: str, package_dir: Path) -> Receipt:
        """Run the ``kind`` hook of the package in ``package_dir``.

        Returns:
            Receipt with status ``ok``, ``skipped`` (no script) or
            ``failed`` (non-zero exit, or the script could not start).
        """
        action_id = f"{kind}:{package_dir.name}"
        path = self.locate(kind, package_dir)
        if path is None:
            logger.info("No %s.sh found for %s", kind, package_dir.name)
            return Receipt.skip(
                adapter=self.backend.name, action_id=action_id, reason=f"no {kind}.sh"
            )

        logger.info("Executing %s for %s", path.name, package_dir.name)
        started_at = datetime.now(UTC).isoformat()
        start = time.monotonic()
        try:
            code = self.backend.execute(path, path.parent)
        except OSError as e:
            return Receipt.failure(
                adapter=self.backend.name,
                action_id=action_id,
                error=f"Cannot execute {path.name}: {e}",
                started_at=started_at,
                metadata={"path": str(path)},
            )
        elapsed_ms = int((time.monotonic() - start) * 1000)

        if code == 0:
            logger.info("Successfully executed %s for %s", path.name, package_dir.name)
            return Receipt.success(
                adapter=self.backend.name,
                action_id=action_id,
                started_at=started_at,
                duration_ms=elapsed_ms,
                metadata={"path": str(path), "return_code": 0},
            )
        return Receipt.failure(
            adapter=self.backend.name,
            action_id=action_id,
            error=f"{path.name} exited with code {code}",
            started_at=started_at,
            duration_ms=elapsed_ms,
            metadata={"path": str(path), "return_code": code},
        )


def _check_kind(kind: str) -> None:
    if kind not in HOOK_KINDS:
        raise ValueError(f"Unknown hook kind '{kind}'. Valid: {', '.join(HOOK_KINDS)}")
