"""
Error taxonomy for package lifecycle operations.

Services raise these; the CLI catches ``ZcrError`` at the command
boundary and turns it into a styled error line plus a non-zero exit.
``upgrade()`` catches them per package so one failure never aborts
the rest of the batch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zcr.core.models.package import PackageState


class ZcrError(Exception):
    """Base class for every error zcr reports to the user.

    ``state`` is the lifecycle state the package was in when the error
    was raised; the lifecycle manager fills it in when left unset.
    """

    def __init__(
        self,
        message: str,
        package: str | None = None,
        state: PackageState | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.package = package
        self.state = state

    @property
    def kind(self) -> str:
        """Short machine-readable error kind (the class name)."""
        return type(self).__name__


class NetworkError(ZcrError):
    """Manifest or remote transport failure. Never retried."""


class PackageNotFound(ZcrError):
    """The requested name has no entry in the manifest."""


class AlreadyExists(ZcrError):
    """A registry directory already exists for the package."""


class NotInstalled(ZcrError):
    """The package has no registry directory."""


class CloneError(ZcrError):
    """Cloning failed: bad URL, unreachable remote or non-empty destination."""


class NotARepository(ZcrError):
    """The directory is not a usable git working copy."""


class HookError(ZcrError):
    """A lifecycle hook exited non-zero."""

    def __init__(
        self,
        message: str,
        package: str | None = None,
        exit_code: int | None = None,
        state: PackageState | None = None,
    ) -> None:
        super().__init__(message, package, state)
        self.exit_code = exit_code


class RegistryIOError(ZcrError):
    """Filesystem failure inside the registry (mkdir, remove, rename)."""


class PullError(ZcrError):
    """Fast-forwarding the tracked branch failed (diverged or dirty tree)."""
