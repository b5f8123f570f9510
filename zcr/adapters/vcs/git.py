"""
Git adapter — the repository driver.

Clone, fetch and ahead/behind counting for one package working copy.
Uses the git CLI — never a library binding.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from zcr.adapters.base import RepositoryBackend
from zcr.core.errors import CloneError, NetworkError, NotARepository, PullError

logger = logging.getLogger(__name__)

# Never block on a credential prompt for a private or mistyped URL
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class GitCommandError(RuntimeError):
    """A git invocation exited non-zero or timed out."""


class GitAdapter(RepositoryBackend):
    """Repository operations through the ``git`` binary.

    Args:
        timeout: Seconds allowed for network operations (clone, fetch).
        git: Name or path of the git executable.
    """

    def __init__(self, timeout: int = 600, git: str = "git") -> None:
        self.timeout = timeout
        self.git = git

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which(self.git) is not None

    # ── Operations ──────────────────────────────────────────────

    def clone(self, url: str, dest: Path) -> None:
        if not url.strip():
            raise CloneError(f"Invalid repository URL for {dest.name}: empty", package=dest.name)
        if dest.exists() and (not dest.is_dir() or any(dest.iterdir())):
            raise CloneError(
                f"Destination {dest} already exists and is not empty", package=dest.name
            )

        logger.info("Cloning %s into %s", url, dest)
        try:
            self._git(["clone", "--quiet", url, str(dest)], cwd=dest.parent, timeout=self.timeout)
        except GitCommandError as e:
            raise CloneError(f"Failed to clone {url}: {e}", package=dest.name) from e
        logger.info("Cloned %s", dest.name)

    def is_repository(self, dest: Path) -> bool:
        if not (dest / ".git").exists():
            return False
        try:
            top = self._git(["rev-parse", "--show-toplevel"], cwd=dest).strip()
        except GitCommandError:
            return False
        return Path(top).resolve() == dest.resolve()

    def fetch(self, dest: Path) -> None:
        self._require_repository(dest)
        logger.info("Fetching %s", dest.name)
        try:
            self._git(["fetch", "--quiet"], cwd=dest, timeout=self.timeout)
        except GitCommandError as e:
            raise NetworkError(f"Failed to fetch updates for {dest.name}: {e}", package=dest.name) from e

    def upstream(self, dest: Path) -> str | None:
        """Upstream tracking ref of the checked-out branch (``origin/main``)."""
        try:
            ref = self._git(
                ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], cwd=dest
            ).strip()
        except GitCommandError:
            return None
        return ref or None

    def pending_commit_count(self, dest: Path) -> int | None:
        self._require_repository(dest)
        upstream = self.upstream(dest)
        if upstream is None:
            logger.info("No tracked branch for %s, assuming update needed", dest.name)
            return None

        try:
            out = self._git(["rev-list", "--count", f"HEAD..{upstream}"], cwd=dest).strip()
        except GitCommandError as e:
            logger.warning("Failed to check update count for %s: %s", dest.name, e)
            return None
        try:
            return int(out)
        except ValueError:
            logger.warning("Invalid update count for %s: %r", dest.name, out)
            return None

    def fast_forward(self, dest: Path) -> None:
        self._require_repository(dest)
        try:
            self._git(["merge", "--ff-only", "--quiet", "@{u}"], cwd=dest)
        except GitCommandError as e:
            raise PullError(f"Cannot fast-forward {dest.name}: {e}", package=dest.name) from e

    def remote_url(self, dest: Path) -> str | None:
        try:
            url = self._git(["config", "--get", "remote.origin.url"], cwd=dest).strip()
        except GitCommandError:
            return None
        return url or None

    # ── Helpers ─────────────────────────────────────────────────

    def _require_repository(self, dest: Path) -> None:
        if not self.is_repository(dest):
            raise NotARepository(f"{dest} is not a git repository", package=dest.name)

    def _git(self, args: list[str], cwd: Path, timeout: int = 30) -> str:
        """Run a git command and return stdout."""
        try:
            result = subprocess.run(
                [self.git, *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env={**os.environ, **_GIT_ENV},
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(f"git {args[0]} timed out after {timeout}s") from e
        except OSError as e:
            raise GitCommandError(f"cannot run git: {e}") from e
        if result.returncode != 0:
            raise GitCommandError(result.stderr.strip() or f"git {args[0]} failed")
        return result.stdout
