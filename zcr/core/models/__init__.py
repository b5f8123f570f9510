"""
Domain models — Pydantic types for zcr.

All models are re-exported here for convenient access:

    from zcr.core.models import Manifest, OperationResult, ProgressEvent, Receipt
"""

from zcr.core.models.events import ProgressEvent, Stage
from zcr.core.models.manifest import Manifest, ManifestEntry
from zcr.core.models.package import (
    OperationResult,
    Outcome,
    PackageState,
    UpgradeFailure,
    UpgradeReport,
)
from zcr.core.models.receipt import Receipt

__all__ = [
    # events.py
    "ProgressEvent",
    "Stage",
    # manifest.py
    "Manifest",
    "ManifestEntry",
    # package.py
    "OperationResult",
    "Outcome",
    "PackageState",
    "UpgradeFailure",
    "UpgradeReport",
    # receipt.py
    "Receipt",
]
