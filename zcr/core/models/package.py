"""
Package lifecycle models — states, operation results, upgrade report.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class PackageState(str, Enum):
    """Where a package is in its lifecycle.

    Install:  ABSENT → RESOLVING → CLONING → UNPACKING → PRESENT
    Update:   PRESENT → FETCHING → (UP_TO_DATE | PULLING → UNPACKING) → PRESENT
    Remove:   PRESENT → PRE_REMOVE_HOOK → DELETING → ABSENT
    """

    ABSENT = "absent"
    RESOLVING = "resolving"
    CLONING = "cloning"
    UNPACKING = "unpacking"
    PRESENT = "present"
    FETCHING = "fetching"
    UP_TO_DATE = "up-to-date"
    PULLING = "pulling"
    PRE_REMOVE_HOOK = "pre-remove-hook"
    DELETING = "deleting"


class Outcome(str, Enum):
    """How a successful operation ended."""

    INSTALLED = "installed"
    UPDATED = "updated"
    UP_TO_DATE = "up-to-date"
    REMOVED = "removed"
    ALREADY_ABSENT = "already-absent"


class OperationResult(BaseModel):
    """Result of a single-package lifecycle operation."""

    operation: str
    package: str
    outcome: Outcome
    state: PackageState
    url: str = ""
    hook: str = ""  # ok, skipped, failed (remove hook only), "" if not run
    pending_commits: int | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        """One-line human summary."""
        if self.outcome is Outcome.INSTALLED:
            return f"Package {self.package} installed"
        if self.outcome is Outcome.UPDATED:
            return f"Package {self.package} updated"
        if self.outcome is Outcome.UP_TO_DATE:
            return f"Package {self.package} is already up to date"
        if self.outcome is Outcome.REMOVED:
            return f"Package {self.package} removed"
        return f"Package {self.package} is not installed, nothing to remove"


class UpgradeFailure(BaseModel):
    """One package that failed during upgrade."""

    package: str
    kind: str
    error: str
    state: PackageState | None = None  # where the update stopped


class UpgradeReport(BaseModel):
    """Aggregate summary of ``upgrade()``."""

    results: list[OperationResult] = Field(default_factory=list)
    failures: list[UpgradeFailure] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results) + len(self.failures)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def updated(self) -> int:
        return sum(1 for r in self.results if r.outcome is Outcome.UPDATED)

    @property
    def up_to_date(self) -> int:
        return sum(1 for r in self.results if r.outcome is Outcome.UP_TO_DATE)

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "failed": self.failed,
            "updated": self.updated,
            "up_to_date": self.up_to_date,
            "failures": [f.model_dump(mode="json") for f in self.failures],
        }
