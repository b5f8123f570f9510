"""
Mock adapters — test doubles for the git and hook capabilities.

Used by ``--mock`` mode and the test-suite to exercise the lifecycle
without cloning anything or spawning shells. The mock repository still
writes real files under the registry root, so registry and hook lookup
behave exactly as they do for real clones.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from zcr.adapters.base import HookBackend, RepositoryBackend
from zcr.core.errors import CloneError, NetworkError, NotARepository, PullError

_MARKER = ".git"
_STATE_FILE = "mock-clone.json"


@dataclass
class MockRemote:
    """A fake upstream: a file tree plus a commit counter."""

    url: str
    files: dict[str, str] = field(default_factory=dict)
    commits: int = 1
    reachable: bool = True
    tracking: bool = True


class MockRepositoryAdapter(RepositoryBackend):
    """Universal mock repository driver.

    Any URL clones successfully (as an empty tree) unless
    ``auto_remotes`` is False, in which case only remotes registered
    with :meth:`add_remote` exist.
    """

    def __init__(self, auto_remotes: bool = True, available: bool = True) -> None:
        self.auto_remotes = auto_remotes
        self._available = available
        self._remotes: dict[str, MockRemote] = {}
        self._call_log: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "mock-git"

    @property
    def call_log(self) -> list[tuple[str, str]]:
        """(operation, target) pairs, in call order."""
        return self._call_log

    def calls(self, operation: str) -> list[str]:
        """Targets of every call to ``operation``."""
        return [target for op, target in self._call_log if op == operation]

    def is_available(self) -> bool:
        return self._available

    # ── Configuration ───────────────────────────────────────────

    def add_remote(
        self,
        url: str,
        files: dict[str, str] | None = None,
        tracking: bool = True,
    ) -> MockRemote:
        remote = MockRemote(url=url, files=dict(files or {}), tracking=tracking)
        self._remotes[url] = remote
        return remote

    def push_commit(self, url: str, files: dict[str, str] | None = None) -> None:
        """Simulate a new upstream commit, optionally changing files."""
        remote = self._remotes[url]
        remote.commits += 1
        if files:
            remote.files.update(files)

    def set_unreachable(self, url: str, unreachable: bool = True) -> None:
        self._remotes[url].reachable = not unreachable

    # ── RepositoryBackend ───────────────────────────────────────

    def clone(self, url: str, dest: Path) -> None:
        self._call_log.append(("clone", url))
        if not url.strip():
            raise CloneError(f"Invalid repository URL for {dest.name}: empty", package=dest.name)
        if dest.exists() and (not dest.is_dir() or any(dest.iterdir())):
            raise CloneError(
                f"Destination {dest} already exists and is not empty", package=dest.name
            )
        remote = self._remote(url)
        if remote is None or not remote.reachable:
            raise CloneError(f"Failed to clone {url}: remote unreachable", package=dest.name)

        dest.mkdir(parents=True, exist_ok=True)
        (dest / _MARKER).mkdir()
        self._write_tree(dest, remote)
        self._save(
            dest,
            {
                "url": url,
                "commits": remote.commits,
                "fetched": remote.commits,
                "tracking": remote.tracking,
            },
        )

    def is_repository(self, dest: Path) -> bool:
        return (dest / _MARKER / _STATE_FILE).is_file()

    def fetch(self, dest: Path) -> None:
        self._call_log.append(("fetch", dest.name))
        clone = self._load(dest)
        remote = self._remote(clone["url"])
        if remote is None or not remote.reachable:
            raise NetworkError(f"Failed to fetch updates for {dest.name}", package=dest.name)
        clone["fetched"] = remote.commits
        self._save(dest, clone)

    def pending_commit_count(self, dest: Path) -> int | None:
        clone = self._load(dest)
        if not clone["tracking"]:
            return None
        return clone["fetched"] - clone["commits"]

    def fast_forward(self, dest: Path) -> None:
        self._call_log.append(("fast_forward", dest.name))
        clone = self._load(dest)
        remote = self._remote(clone["url"])
        if remote is None:
            raise PullError(f"Cannot fast-forward {dest.name}", package=dest.name)
        self._write_tree(dest, remote)
        clone["commits"] = clone["fetched"]
        self._save(dest, clone)

    def remote_url(self, dest: Path) -> str | None:
        if not self.is_repository(dest):
            return None
        return self._load(dest)["url"]

    # ── Helpers ─────────────────────────────────────────────────

    def _remote(self, url: str) -> MockRemote | None:
        if url not in self._remotes and self.auto_remotes:
            self._remotes[url] = MockRemote(url=url)
        return self._remotes.get(url)

    # Clone bookkeeping lives inside the marker directory, so it follows
    # the working copy when the registry renames it.
    def _load(self, dest: Path) -> dict:
        if not self.is_repository(dest):
            raise NotARepository(f"{dest} is not a git repository", package=dest.name)
        return json.loads((dest / _MARKER / _STATE_FILE).read_text(encoding="utf-8"))

    @staticmethod
    def _save(dest: Path, clone: dict) -> None:
        (dest / _MARKER / _STATE_FILE).write_text(json.dumps(clone), encoding="utf-8")

    @staticmethod
    def _write_tree(dest: Path, remote: MockRemote) -> None:
        for rel, content in remote.files.items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")


class MockHookAdapter(HookBackend):
    """Hook backend that records calls instead of spawning a shell.

    Hooks are still located on disk; ``exit_codes`` maps
    ``"<package>/<kind>"`` to the exit code to report (default 0).
    """

    def __init__(
        self,
        build_dir: str = "zcr-build-files",
        exit_codes: dict[str, int] | None = None,
    ) -> None:
        super().__init__(build_dir)
        self.exit_codes = dict(exit_codes or {})
        self.executed: list[str] = []

    @property
    def name(self) -> str:
        return "mock-shell"

    def is_available(self) -> bool:
        return True

    def execute(self, path: Path, cwd: Path) -> int:
        key = f"{path.parent.parent.name}/{path.stem}"
        self.executed.append(key)
        return self.exit_codes.get(key, 0)
