"""
Manifest operations — fetch, parse and search the package manifest.

The manifest is a plain UTF-8 text document hosted centrally::

    # comment
    hello -> https://github.com/example/hello.git

It is fetched fresh for every command. A copy is written to a scratch
path for debugging; failing to write it is a warning, never an error.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Callable

from zcr import __version__
from zcr.core.errors import NetworkError
from zcr.core.models.manifest import Manifest, ManifestEntry

logger = logging.getLogger(__name__)

SEPARATOR = " -> "

HttpGet = Callable[[str, float], bytes]


# ── Parsing ─────────────────────────────────────────────────────


def parse_manifest(text: str, source: str = "") -> Manifest:
    """Parse manifest text into an ordered :class:`Manifest`.

    Blank lines and ``#`` comments are skipped. A line must split on
    ``" -> "`` into exactly two non-empty parts; anything else is
    dropped without affecting the other lines.
    """
    entries: list[ManifestEntry] = []
    skipped = 0
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(SEPARATOR)
        if len(parts) != 2:
            skipped += 1
            continue
        name, url = parts[0].strip(), parts[1].strip()
        if not name or not url:
            skipped += 1
            continue
        entries.append(ManifestEntry(name=name, url=url, line=lineno))

    if skipped:
        logger.debug("Skipped %d malformed manifest line(s)", skipped)
    logger.debug("Parsed %d manifest entries", len(entries))
    return Manifest(entries=entries, source=source)


def parse(text: str) -> dict[str, str]:
    """Manifest text → ``{name: url}`` (last occurrence of a name wins)."""
    return parse_manifest(text).as_mapping()


def lookup(text: str, name: str) -> str:
    """URL for ``name`` in manifest text.

    Raises:
        PackageNotFound: No line's name equals ``name`` exactly.
    """
    return parse_manifest(text).lookup(name)


# ── Fetching ────────────────────────────────────────────────────


def http_get(url: str, timeout: float) -> bytes:
    """GET ``url`` and return the body. Raises NetworkError on any failure."""
    req = urllib.request.Request(url, headers={"User-Agent": f"zcr/{__version__}"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.read()
    except urllib.error.HTTPError as e:
        raise NetworkError(f"Failed to fetch repository list: HTTP {e.code}") from e
    except urllib.error.URLError as e:
        raise NetworkError(f"Failed to fetch repository list: {e.reason}") from e
    except (TimeoutError, OSError) as e:
        raise NetworkError(f"Failed to fetch repository list: {e}") from e


class ManifestFetcher:
    """Retrieves the remote manifest and drops a copy at ``scratch_path``.

    One attempt per call, no retry.
    """

    def __init__(
        self,
        url: str,
        scratch_path: Path | None = None,
        timeout: float = 30.0,
        getter: HttpGet | None = None,
    ) -> None:
        self.url = url
        self.scratch_path = scratch_path
        self.timeout = timeout
        self._get = getter or http_get
        self.last_write_error: OSError | None = None

    def fetch(self) -> str:
        """Return the manifest text.

        Raises:
            NetworkError: Transport failure.
        """
        logger.info("Fetching repo list from %s", self.url)
        body = self._get(self.url, self.timeout)
        self._write_scratch(body)
        return body.decode("utf-8", errors="replace")

    def load(self) -> Manifest:
        """Fetch and parse in one step."""
        return parse_manifest(self.fetch(), source=self.url)

    def _write_scratch(self, body: bytes) -> None:
        self.last_write_error = None
        if self.scratch_path is None:
            return
        try:
            self.scratch_path.parent.mkdir(parents=True, exist_ok=True)
            self.scratch_path.write_bytes(body)
        except OSError as e:
            self.last_write_error = e
            logger.warning("Could not save repo list to %s: %s", self.scratch_path, e)
            return
        logger.info("Saved repo list to %s", self.scratch_path)


# ── Scratch cleanup ─────────────────────────────────────────────


def clear_scratch(paths: list[Path]) -> dict[str, Any]:
    """Delete scratch cache files (``autoremove``).

    Returns:
        ``{"removed": [...], "missing": [...], "errors": [{"path", "error"}]}``
    """
    removed: list[str] = []
    missing: list[str] = []
    errors: list[dict[str, str]] = []

    for path in paths:
        if not path.exists():
            logger.info("Temporary file %s not found, skipping", path)
            missing.append(str(path))
            continue
        try:
            path.unlink()
        except OSError as e:
            logger.error("Failed to remove temporary file %s: %s", path, e)
            errors.append({"path": str(path), "error": str(e)})
            continue
        logger.info("Removed temporary file %s", path)
        removed.append(str(path))

    return {"removed": removed, "missing": missing, "errors": errors}
