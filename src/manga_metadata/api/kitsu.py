"""Kitsu catalog client -- the fallback metadata provider.

Free-text search; the first hit is taken as-is, without similarity scoring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from ..errors import FetchError
from ..models import CandidateRecord, LookupResult, text_or_none

if TYPE_CHECKING:
    from .http import HttpFetcher

log = logger.bind(stage="kitsu")

API_BASE = "https://kitsu.io/api/edge"
SITE_URL = "https://kitsu.io/"


def _parse_rating(value) -> float | None:
    """Kitsu sends averageRating as a string like "82.45"."""
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        log.debug(f"Ignoring unparseable rating {value!r}")
        return None


class KitsuClient:
    """Secondary provider backed by the Kitsu JSON:API."""

    name = "kitsu"
    referer = SITE_URL

    def __init__(self, fetcher: HttpFetcher, api_base: str = API_BASE) -> None:
        self._fetcher = fetcher
        self.api_base = api_base.rstrip("/")

    def search(self, title: str) -> LookupResult:
        log.debug(f"Kitsu search: {title!r}")
        try:
            data = self._fetcher.get_json(
                f"{self.api_base}/manga",
                params={"filter[text]": title},
                headers={"Accept": "application/vnd.api+json"},
            )
            results = data.get("data") or []
            if not results:
                log.info(f"Kitsu: no results for {title!r}")
                return LookupResult.not_found("no results")

            manga = results[0]
            attrs = manga["attributes"]
            canonical = text_or_none(attrs.get("canonicalTitle"))
            if canonical is None:
                log.warning(f"Kitsu returned no usable title for {title!r}")
                return LookupResult.error("malformed response: missing canonicalTitle")

            poster = attrs.get("posterImage") or {}
            record = CandidateRecord(
                title=canonical,
                source=self.name,
                synopsis=text_or_none(attrs.get("synopsis")),
                status=text_or_none(attrs.get("status")),
                cover_url=(
                    text_or_none(poster.get("large"))
                    or text_or_none(poster.get("medium"))
                ),
                rating=_parse_rating(attrs.get("averageRating")),
                external_id=str(manga.get("id")) if manga.get("id") else None,
            )
        except FetchError as e:
            log.warning(f"Kitsu error for {title!r}: {e.reason}")
            return LookupResult.error(e.reason)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            log.warning(f"Kitsu returned malformed data for {title!r}: {e!r}")
            return LookupResult.error(f"malformed response: {e!r}")

        log.info(f"Kitsu: {title!r} -> {record.title!r}")
        return LookupResult.found(record)
