"""Core records, enums, and constants for metadata resolution.

Records:
    CandidateRecord  -- One provider's proposed match for a folder title.
    LookupResult     -- Tagged provider outcome (found, not_found, error).
    ResolvedMetadata -- Merged orchestrator output handed back to the caller.
    ScanReport       -- Counters from a library directory scan.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class LookupStatus(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".webp",
    }
)

# Folder-local files with these stems are treated as the title's cover
LOCAL_COVER_STEMS: tuple[str, ...] = ("cover", "folder", "poster")


@dataclass
class CandidateRecord:
    """A provider's best guess for one title. cover_url is still remote here."""

    title: str
    source: str
    synopsis: str | None = None
    status: str | None = None
    cover_url: str | None = None
    rating: float | None = None
    external_id: str | None = None
    score: float | None = None


@dataclass
class LookupResult:
    """Outcome of a single provider call.

    Providers never raise for network or parsing problems; they return
    ERROR with a reason instead. NOT_FOUND covers both empty result sets and
    matches rejected as low-confidence.
    """

    status: LookupStatus
    record: CandidateRecord | None = None
    reason: str = ""

    @classmethod
    def found(cls, record: CandidateRecord) -> LookupResult:
        return cls(LookupStatus.FOUND, record=record)

    @classmethod
    def not_found(cls, reason: str = "") -> LookupResult:
        return cls(LookupStatus.NOT_FOUND, reason=reason)

    @classmethod
    def error(cls, reason: str) -> LookupResult:
        return cls(LookupStatus.ERROR, reason=reason)

    @property
    def record_or_none(self) -> CandidateRecord | None:
        if self.status == LookupStatus.FOUND:
            return self.record
        return None


@dataclass
class ResolvedMetadata:
    """Final metadata for one title. cover is a cached local file or None."""

    title: str
    source: str
    cover: Path | None = None
    synopsis: str | None = None
    status: str | None = None
    rating: float | None = None
    external_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "source": self.source,
            "cover": str(self.cover) if self.cover else None,
            "synopsis": self.synopsis,
            "status": self.status,
            "rating": self.rating,
            "external_id": self.external_id,
        }


@dataclass
class ScanReport:
    """Result summary from a library scan."""

    processed: int = 0
    created: int = 0
    enriched: int = 0
    local_covers: int = 0
    failed: int = 0
    unresolved: list[str] = field(default_factory=list)


def text_or_none(value) -> str | None:
    """Non-empty strings pass through; anything else from a provider becomes None."""
    if isinstance(value, str) and value.strip():
        return value
    return None
