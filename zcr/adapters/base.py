"""
Adapter base — the capability contracts between the lifecycle manager
and external tools.

The lifecycle manager only talks to git and to hook scripts through
these interfaces, so the execution backend (native process spawn,
in-memory double, a sandboxed runner) can be swapped without touching
lifecycle code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class Adapter(ABC):
    """Abstract base class for all adapters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'git', 'shell')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class RepositoryBackend(Adapter):
    """Version-control capability over a single working directory."""

    @abstractmethod
    def clone(self, url: str, dest: Path) -> None:
        """Clone ``url`` into ``dest``.

        Raises:
            CloneError: ``dest`` exists and is non-empty, the URL is
                invalid, or the remote is unreachable.
        """

    @abstractmethod
    def is_repository(self, dest: Path) -> bool:
        """Whether ``dest`` is a cloned working copy."""

    @abstractmethod
    def fetch(self, dest: Path) -> None:
        """Update remote-tracking refs without touching the working tree.

        Raises:
            NotARepository: ``dest`` is not a cloned repository.
            NetworkError: The remote could not be reached.
        """

    @abstractmethod
    def pending_commit_count(self, dest: Path) -> int | None:
        """Upstream commits not yet present locally.

        Returns None when no upstream tracking reference is configured:
        the count is unknown and the caller should assume an update
        is needed.
        """

    @abstractmethod
    def fast_forward(self, dest: Path) -> None:
        """Fast-forward the checked-out branch to its upstream.

        Raises:
            PullError: The branch cannot be fast-forwarded.
        """

    @abstractmethod
    def remote_url(self, dest: Path) -> str | None:
        """URL of the ``origin`` remote, if any."""


class HookBackend(Adapter):
    """Locates and executes lifecycle hook scripts."""

    def __init__(self, build_dir: str = "zcr-build-files") -> None:
        self.build_dir = build_dir

    def locate(self, kind: str, package_dir: Path) -> Path | None:
        """Path to ``<package_dir>/<build_dir>/<kind>.sh``, or None if absent."""
        path = package_dir / self.build_dir / f"{kind}.sh"
        return path if path.is_file() else None

    @abstractmethod
    def execute(self, path: Path, cwd: Path) -> int:
        """Run the hook at ``path`` inside ``cwd`` and return its exit code."""
