"""
Registry — the on-disk collection of installed packages.

One directory per package under the registry root, named exactly as
in the manifest. The directory's presence is the only record that a
package is installed; there is no separate index. Entries starting
with ``.`` (staging directories) are never packages.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from zcr.core.errors import PackageNotFound, RegistryIOError

logger = logging.getLogger(__name__)


class Registry:
    """Installed-package directories under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, name: str) -> Path:
        """Directory for package ``name``.

        Raises:
            PackageNotFound: ``name`` cannot be a registry entry
                (empty, hidden, or containing a path separator).
        """
        if not name or name.startswith(".") or "/" in name or "\\" in name:
            raise PackageNotFound(f"Invalid package name: {name!r}", package=name)
        return self.root / name

    def is_installed(self, name: str) -> bool:
        return self.path_for(name).is_dir()

    def has_entry(self, name: str) -> bool:
        """Whether anything (directory, stray file, dangling link) sits at the package path."""
        path = self.path_for(name)
        return path.exists() or path.is_symlink()

    def installed(self) -> list[str]:
        """Installed package names, sorted."""
        if not self.root.is_dir():
            return []
        try:
            entries = list(self.root.iterdir())
        except OSError as e:
            raise RegistryIOError(f"Cannot list {self.root}: {e}") from e
        return sorted(p.name for p in entries if p.is_dir() and not p.name.startswith("."))

    def ensure_root(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RegistryIOError(f"Cannot create registry root {self.root}: {e}") from e

    def staging_path(self, name: str) -> Path:
        """Hidden sibling used while re-cloning ``name``."""
        return self.root / f".{name}.staging"

    def delete(self, name: str) -> None:
        """Remove the package entry (a directory tree, or a stray file or link).

        Raises:
            RegistryIOError: The directory could not be fully removed.
        """
        self._remove(self.path_for(name), package=name)
        logger.info("Deleted %s", self.path_for(name))

    def discard(self, path: Path) -> None:
        """Remove a staging directory if it exists."""
        if path.exists() or path.is_symlink():
            self._remove(path)

    def replace(self, name: str, staging: Path) -> None:
        """Swap the package directory for a freshly cloned ``staging`` tree."""
        dest = self.path_for(name)
        if dest.exists() or dest.is_symlink():
            self._remove(dest, package=name)
        try:
            staging.rename(dest)
        except OSError as e:
            raise RegistryIOError(
                f"Cannot move {staging} to {dest}: {e}", package=name
            ) from e
        logger.info("Replaced %s with a fresh clone", dest)

    @staticmethod
    def _remove(path: Path, package: str | None = None) -> None:
        """Remove a directory tree, or unlink a file or symlink in its place."""
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            raise RegistryIOError(f"Failed to remove {path}: {e}", package=package) from e
