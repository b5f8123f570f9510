"""
Manifest model — the name → repository URL mapping.

The raw document is an ordered list of ``name -> url`` lines. Names may
repeat; the mapping keeps the LAST occurrence of a name (later lines
override earlier ones), while iteration order is the position where
the name first appeared.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from zcr.core.errors import PackageNotFound


class ManifestEntry(BaseModel):
    """One significant manifest line."""

    name: str
    url: str
    line: int = 0  # 1-based line number in the source document


class Manifest(BaseModel):
    """Parsed manifest, in document order."""

    entries: list[ManifestEntry] = Field(default_factory=list)
    source: str = ""

    def as_mapping(self) -> dict[str, str]:
        """Resolve to a name → url dict (last occurrence wins)."""
        mapping: dict[str, str] = {}
        for entry in self.entries:
            mapping[entry.name] = entry.url
        return mapping

    def lookup(self, name: str) -> str:
        """Return the URL for an exact, case-sensitive package name.

        Raises:
            PackageNotFound: If no entry has this name.
        """
        mapping = self.as_mapping()
        if name not in mapping:
            raise PackageNotFound(f"Package {name} not found in manifest", package=name)
        return mapping[name]

    def get(self, name: str) -> str | None:
        """Like :meth:`lookup`, but returns None on a miss."""
        return self.as_mapping().get(name)

    def search(self, query: str) -> list[ManifestEntry]:
        """Case-insensitive substring match on package names.

        Each matching name is reported once, with its resolved URL.
        An empty result is not an error.
        """
        needle = query.lower()
        return [
            ManifestEntry(name=name, url=url)
            for name, url in self.as_mapping().items()
            if needle in name.lower()
        ]

    def names(self) -> list[str]:
        """Distinct package names, in first-appearance order."""
        return list(self.as_mapping())

    def __len__(self) -> int:
        return len(self.as_mapping())

    def __contains__(self, name: object) -> bool:
        return name in self.as_mapping()
