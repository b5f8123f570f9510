"""
Package lifecycle manager — install, update, upgrade, remove, find.

This is the orchestrator: it resolves names against a freshly fetched
manifest, consults the registry, drives the repository backend and the
hook runner, and reports stage progress through a reporter callable
(usually a :class:`~zcr.core.services.progress.ProgressChannel`).

Failure policy
──────────────
- install:  AlreadyExists is checked before any network or filesystem
  work. A failed clone or unpack leaves whatever was written on disk;
  the next install of that name fails fast with AlreadyExists until
  the package is removed.
- update:   zero pending commits short-circuits (no pull, no hook).
  Unknown pending count (no upstream) falls back to a full re-clone.
  A failed unpack hook is a HookError.
- upgrade:  sequential, per-package errors are logged and counted.
- remove:   an absent package is a no-op. A failing remove.sh is a
  warning; failing to delete the directory is a RegistryIOError.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

from zcr.adapters.base import HookBackend, RepositoryBackend
from zcr.core.config.loader import Settings
from zcr.core.errors import (
    AlreadyExists,
    CloneError,
    HookError,
    NotInstalled,
    ZcrError,
)
from zcr.core.models.events import Stage
from zcr.core.models.manifest import Manifest, ManifestEntry
from zcr.core.models.package import (
    OperationResult,
    Outcome,
    PackageState,
    UpgradeFailure,
    UpgradeReport,
)
from zcr.core.services.hook_runner import HookRunner
from zcr.core.services.manifest_ops import ManifestFetcher
from zcr.core.services.registry import Registry

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    def __call__(self, stage: Stage, message: str = "", **data: Any) -> Any: ...


def silent(stage: Stage, message: str = "", **data: Any) -> None:
    """Reporter that drops every event."""


class PackageManager:
    """Owns package state transitions and the failure policy.

    Args:
        settings: Runtime settings (registry root, manifest URL, ...).
        repo: Repository backend (git by default).
        hooks: Hook execution backend (host shell by default).
        fetcher: Manifest fetcher (HTTP by default).
    """

    def __init__(
        self,
        settings: Settings,
        repo: RepositoryBackend | None = None,
        hooks: HookBackend | None = None,
        fetcher: ManifestFetcher | None = None,
    ) -> None:
        if repo is None:
            from zcr.adapters.vcs.git import GitAdapter

            repo = GitAdapter(timeout=settings.git_timeout)
        if hooks is None:
            from zcr.adapters.shell.hooks import ShellHookAdapter

            hooks = ShellHookAdapter(build_dir=settings.build_dir, shell=settings.hook_shell)
        if fetcher is None:
            fetcher = ManifestFetcher(
                settings.manifest_url,
                scratch_path=settings.scratch_path,
                timeout=settings.http_timeout,
            )

        self.settings = settings
        self.repo = repo
        self.hooks = HookRunner(hooks)
        self.fetcher = fetcher
        self.registry = Registry(settings.registry_root)

    # ── Queries ─────────────────────────────────────────────────

    def state_of(self, name: str) -> PackageState:
        return PackageState.PRESENT if self.registry.is_installed(name) else PackageState.ABSENT

    def load_manifest(self, report: Reporter = silent) -> Manifest:
        """Fetch and parse the manifest (fresh every call)."""
        report(Stage.FETCHING_MANIFEST, "Fetching repository list", url=self.fetcher.url)
        return self.fetcher.load()

    def find(self, query: str, report: Reporter = silent) -> list[ManifestEntry]:
        """Case-insensitive substring search over manifest names."""
        manifest = self.load_manifest(report)
        matches = manifest.search(query)
        logger.info("Search for %r matched %d package(s)", query, len(matches))
        return matches

    # ── Install ─────────────────────────────────────────────────

    def install(self, name: str, report: Reporter = silent) -> OperationResult:
        """Absent → Resolving → Cloning → Unpacking → Present."""
        logger.info("Installing package: %s", name)
        dest = self.registry.path_for(name)
        if self.registry.has_entry(name):
            raise AlreadyExists(
                f"Package {name} already has a directory at {dest}; remove it first",
                package=name,
                state=PackageState.PRESENT,
            )

        with _failing_in(PackageState.RESOLVING):
            manifest = self.load_manifest(report)
            url = manifest.lookup(name)
        logger.info("Found package %s with repo %s", name, url)

        with _failing_in(PackageState.CLONING):
            self.registry.ensure_root()
            report(Stage.CLONING, f"Cloning {name} from {url}", url=url)
            self.repo.clone(url, dest)

        hook = self._unpack(name, dest, report)
        logger.info("Package %s installed", name)
        return OperationResult(
            operation="install",
            package=name,
            outcome=Outcome.INSTALLED,
            state=PackageState.PRESENT,
            url=url,
            hook=hook,
        )

    # ── Update ──────────────────────────────────────────────────

    def update(
        self,
        name: str,
        report: Reporter = silent,
        manifest: Manifest | None = None,
    ) -> OperationResult:
        """Present → Fetching → (UpToDate | Pulling → Unpacking) → Present.

        Args:
            manifest: Already-fetched manifest, used to resolve the URL
                when a re-clone is needed (``upgrade`` passes one in).
        """
        logger.info("Updating package: %s", name)
        dest = self.registry.path_for(name)
        if not dest.is_dir():
            raise NotInstalled(
                f"Package {name} is not installed", package=name, state=PackageState.ABSENT
            )

        with _failing_in(PackageState.FETCHING):
            report(Stage.FETCHING, f"Checking {name} for updates")
            self.repo.fetch(dest)
            pending = self.repo.pending_commit_count(dest)

        if pending == 0:
            logger.info("Package %s is up to date", name)
            return OperationResult(
                operation="update",
                package=name,
                outcome=Outcome.UP_TO_DATE,
                state=PackageState.PRESENT,
                pending_commits=0,
            )

        warnings: list[str] = []
        if pending is None:
            with _failing_in(PackageState.CLONING):
                url = self._reclone(name, dest, manifest, report, warnings)
        else:
            logger.info("Update available for %s (%d commit(s))", name, pending)
            with _failing_in(PackageState.PULLING):
                report(
                    Stage.PULLING, f"Pulling {pending} new commit(s) for {name}", pending=pending
                )
                self.repo.fast_forward(dest)
            url = self.repo.remote_url(dest) or ""

        hook = self._unpack(name, dest, report)
        logger.info("Package %s updated", name)
        return OperationResult(
            operation="update",
            package=name,
            outcome=Outcome.UPDATED,
            state=PackageState.PRESENT,
            url=url,
            hook=hook,
            pending_commits=pending,
            warnings=warnings,
        )

    def upgrade(self, report: Reporter = silent) -> UpgradeReport:
        """Update every installed package, one at a time, in name order.

        The manifest fetch is the only failure that aborts the batch.
        """
        logger.info("Upgrading all packages")
        manifest = self.load_manifest(report)
        summary = UpgradeReport()

        for name in self.registry.installed():
            try:
                result = self.update(name, report, manifest=manifest)
            except ZcrError as e:
                logger.error("Failed to update %s: %s", name, e)
                summary.failures.append(
                    UpgradeFailure(package=name, kind=e.kind, error=str(e), state=e.state)
                )
                continue
            summary.results.append(result)

        logger.info(
            "Upgrade complete: %d attempted, %d failed", summary.attempted, summary.failed
        )
        return summary

    # ── Remove ──────────────────────────────────────────────────

    def remove(self, name: str, report: Reporter = silent) -> OperationResult:
        """Present → PreRemoveHook → Deleting → Absent."""
        logger.info("Removing package: %s", name)
        dest = self.registry.path_for(name)
        if not self.registry.has_entry(name):
            logger.info("Package %s is not installed, nothing to remove", name)
            return OperationResult(
                operation="remove",
                package=name,
                outcome=Outcome.ALREADY_ABSENT,
                state=PackageState.ABSENT,
            )

        warnings: list[str] = []
        hook = ""
        if dest.is_dir():
            with _failing_in(PackageState.PRE_REMOVE_HOOK):
                hook = self._pre_remove(name, dest, report, warnings)

        with _failing_in(PackageState.DELETING):
            report(Stage.REMOVING, f"Deleting {dest}")
            self.registry.delete(name)
        logger.info("Package %s removed", name)
        return OperationResult(
            operation="remove",
            package=name,
            outcome=Outcome.REMOVED,
            state=PackageState.ABSENT,
            hook=hook,
            warnings=warnings,
        )

    # ── Helpers ─────────────────────────────────────────────────

    def _unpack(self, name: str, dest: Path, report: Reporter) -> str:
        if self.hooks.locate("unpack", dest) is not None:
            report(Stage.RUNNING_HOOK, f"Executing unpack.sh for {name}", hook="unpack")
        receipt = self.hooks.run("unpack", dest)
        if receipt.failed:
            code = receipt.metadata.get("return_code")
            raise HookError(
                f"unpack.sh failed for {name}: {receipt.error}",
                package=name,
                exit_code=code,
                state=PackageState.UNPACKING,
            )
        return receipt.status

    def _pre_remove(self, name: str, dest: Path, report: Reporter, warnings: list[str]) -> str:
        """Run remove.sh; a failure is appended to ``warnings``, never raised."""
        if self.hooks.locate("remove", dest) is not None:
            report(Stage.RUNNING_HOOK, f"Executing remove.sh for {name}", hook="remove")
        receipt = self.hooks.run("remove", dest)
        if receipt.failed:
            logger.warning("remove.sh failed for %s: %s", name, receipt.error)
            warnings.append(f"remove.sh failed: {receipt.error}")
        return receipt.status

    def _reclone(
        self,
        name: str,
        dest: Path,
        manifest: Manifest | None,
        report: Reporter,
        warnings: list[str],
    ) -> str:
        """Replace ``dest`` with a fresh clone (no upstream to compare against).

        The old copy's remove.sh runs only once the new clone is in
        staging, so a failed clone leaves the package untouched.
        """
        url = (manifest.get(name) if manifest is not None else None) or self.repo.remote_url(dest)
        if not url:
            raise CloneError(f"No repository URL known for {name}", package=name)

        logger.info("No tracked branch for %s, re-cloning from %s", name, url)
        staging = self.registry.staging_path(name)
        self.registry.discard(staging)
        report(Stage.CLONING, f"Re-cloning {name} from {url}", url=url)
        try:
            self.repo.clone(url, staging)
        except ZcrError:
            self.registry.discard(staging)
            raise

        self._pre_remove(name, dest, report, warnings)
        self.registry.replace(name, staging)
        return url


@contextmanager
def _failing_in(state: PackageState) -> Iterator[None]:
    """Stamp ``state`` on any ZcrError leaving the block without one."""
    try:
        yield
    except ZcrError as e:
        if e.state is None:
            e.state = state
        raise
