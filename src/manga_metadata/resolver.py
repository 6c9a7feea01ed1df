"""Resolution orchestrator -- primary/fallback lookup, merge, cover caching.

Per title: ask MangaDex, fall back to Kitsu when MangaDex has nothing or
no cover, merge (primary fields win, cover/synopsis gaps filled from the
fallback), then swap the remote cover URL for a cached local file.

Batches run strictly sequentially in fixed-size groups with a short pause
between titles and a longer pause between groups, to stay under provider
rate limits. Pauses go through an injected sleep callable.

Cancellation mid-batch is not supported; callers needing it should split
their title list and stop between calls.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from .api.http import HttpFetcher
from .api.kitsu import KitsuClient
from .api.mangadex import MangaDexClient
from .assets import AssetCache, DirectoryAssetStore, is_remote
from .errors import ConfigError
from .models import CandidateRecord, LookupResult, LookupStatus, ResolvedMetadata

if TYPE_CHECKING:
    from .config import LibraryConfig

log = logger.bind(stage="resolver")

DEFAULT_BATCH_SIZE = 3
DEFAULT_REQUEST_DELAY = 0.5
DEFAULT_BATCH_DELAY = 2.0


class CatalogProvider(Protocol):
    name: str
    referer: str

    def search(self, title: str) -> LookupResult: ...


class IdLookupProvider(CatalogProvider, Protocol):
    def fetch_by_id(self, id_or_url: str) -> LookupResult: ...


def chunk_titles(titles: list[str], size: int) -> list[list[str]]:
    """Split titles into consecutive groups of at most size."""
    return [titles[i:i + size] for i in range(0, len(titles), size)]


def merge_records(
    primary: CandidateRecord | None,
    secondary: CandidateRecord | None,
) -> tuple[CandidateRecord | None, str | None]:
    """Merge two provider records.

    Returns (merged, cover_source) where cover_source names the provider the
    cover URL came from. Primary title/status/rating always win; only a
    missing cover or synopsis is taken from the secondary.
    """
    if primary is None:
        if secondary is None:
            return None, None
        return secondary, secondary.source if secondary.cover_url else None

    merged = CandidateRecord(
        title=primary.title,
        source=primary.source,
        synopsis=primary.synopsis,
        status=primary.status,
        cover_url=primary.cover_url,
        rating=primary.rating,
        external_id=primary.external_id,
        score=primary.score,
    )
    cover_source = primary.source if primary.cover_url else None

    if secondary is not None:
        filled = False
        if not merged.cover_url and secondary.cover_url:
            merged.cover_url = secondary.cover_url
            cover_source = secondary.source
            filled = True
        if not merged.synopsis and secondary.synopsis:
            merged.synopsis = secondary.synopsis
            filled = True
        if filled:
            merged.source = f"{primary.source}+{secondary.source}"

    return merged, cover_source


def _collapse(provider: CatalogProvider, result: LookupResult) -> CandidateRecord | None:
    if result.status == LookupStatus.ERROR:
        log.debug(f"{provider.name}: treating error as absent ({result.reason})")
    return result.record_or_none


class MetadataResolver:
    """Resolve folder titles to ResolvedMetadata using two providers."""

    def __init__(
        self,
        primary: IdLookupProvider,
        secondary: CatalogProvider,
        assets: AssetCache,
        batch_size: int = DEFAULT_BATCH_SIZE,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        fetcher: HttpFetcher | None = None,
    ) -> None:
        if batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {batch_size}")
        if request_delay < 0:
            raise ConfigError(f"request_delay must be >= 0, got {request_delay}")
        if batch_delay <= request_delay:
            raise ConfigError(
                f"batch_delay ({batch_delay}) must exceed request_delay ({request_delay})"
            )
        self.primary = primary
        self.secondary = secondary
        self.assets = assets
        self.batch_size = batch_size
        self.request_delay = request_delay
        self.batch_delay = batch_delay
        self._sleep = sleep
        self._fetcher = fetcher

    @classmethod
    def from_config(cls, config: LibraryConfig, **kwargs) -> MetadataResolver:
        """Build the default MangaDex + Kitsu + directory cache stack."""
        fetcher = HttpFetcher(user_agent=config.user_agent, timeout=config.http_timeout)
        primary = MangaDexClient(
            fetcher,
            api_base=config.mangadex_api_base,
            uploads_base=config.mangadex_uploads_base,
            threshold=config.match_threshold,
            limit=config.search_limit,
        )
        secondary = KitsuClient(fetcher, api_base=config.kitsu_api_base)
        assets = AssetCache(DirectoryAssetStore(config.cache_dir), fetcher)
        return cls(
            primary,
            secondary,
            assets,
            batch_size=config.batch_size,
            request_delay=config.request_delay,
            batch_delay=config.batch_delay,
            fetcher=fetcher,
            **kwargs,
        )

    def __enter__(self) -> MetadataResolver:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._fetcher is not None:
            self._fetcher.close()

    def _provider_for(self, source: str | None) -> CatalogProvider | None:
        for provider in (self.primary, self.secondary):
            if provider.name == source:
                return provider
        return None

    def _finalize(
        self,
        record: CandidateRecord,
        cover_source: str | None,
        label: str,
        force: bool = False,
    ) -> ResolvedMetadata:
        """Cache the cover (if remote) and build the final record."""
        cover = None
        if record.cover_url and is_remote(record.cover_url):
            provider = self._provider_for(cover_source)
            cover = self.assets.materialize(
                record.cover_url,
                label=label,
                force=force,
                referer=provider.referer if provider else None,
            )
            if cover is None:
                log.info(f"Dropping cover for {label!r}: download failed")

        return ResolvedMetadata(
            title=record.title,
            source=record.source,
            cover=cover,
            synopsis=record.synopsis,
            status=record.status,
            rating=record.rating,
            external_id=record.external_id,
        )

    def resolve(self, title: str) -> ResolvedMetadata | None:
        """Resolve one folder title. Returns None when no provider matched."""
        log.info(f"Resolving: {title!r}")
        primary = _collapse(self.primary, self.primary.search(title))

        secondary = None
        if primary is None or not primary.cover_url:
            log.debug(f"Trying {self.secondary.name} for {title!r}")
            secondary = _collapse(self.secondary, self.secondary.search(title))

        merged, cover_source = merge_records(primary, secondary)
        if merged is None:
            log.info(f"No metadata found for {title!r}")
            return None

        return self._finalize(merged, cover_source, label=title)

    def resolve_by_external_id(self, id_or_url: str) -> ResolvedMetadata | None:
        """Manual re-association by MangaDex id or URL.

        Raises InvalidIdentifierError for empty/unusable ids. The cover is
        always re-downloaded, overwriting any cached copy.
        """
        result = self.primary.fetch_by_id(id_or_url)
        record = _collapse(self.primary, result)
        if record is None:
            log.info(f"No metadata for id {id_or_url!r} ({result.reason})")
            return None
        cover_source = record.source if record.cover_url else None
        return self._finalize(record, cover_source, label=record.title, force=True)

    def resolve_batch(self, titles: Iterable[str]) -> dict[str, ResolvedMetadata | None]:
        """Resolve titles in rate-limited groups, preserving input order.

        Duplicate titles are resolved once.
        """
        unique = list(dict.fromkeys(titles))
        batches = chunk_titles(unique, self.batch_size)
        results: dict[str, ResolvedMetadata | None] = {}

        for batch_no, batch in enumerate(batches, 1):
            log.info(f"Processing batch {batch_no}/{len(batches)} ({len(batch)} items)")
            for pos, title in enumerate(batch):
                results[title] = self.resolve(title)
                if pos < len(batch) - 1:
                    self._sleep(self.request_delay)

            if batch_no < len(batches):
                log.debug(f"Waiting {self.batch_delay}s before next batch")
                self._sleep(self.batch_delay)

        found = sum(1 for v in results.values() if v is not None)
        log.info(f"Batch complete: {found}/{len(results)} titles resolved")
        return results
