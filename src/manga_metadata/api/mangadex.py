"""MangaDex catalog client -- the primary metadata provider.

Title search fetches up to five candidates, scores each display title
against the folder name, and accepts the best one only when it clears the
match threshold. Direct lookup by MangaDex id (or title URL) skips scoring
and is used for manual re-association.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from loguru import logger

from ..errors import FetchError, InvalidIdentifierError
from ..models import CandidateRecord, LookupResult, text_or_none
from .search import pick_best

if TYPE_CHECKING:
    from .http import HttpFetcher

log = logger.bind(stage="mangadex")

API_BASE = "https://api.mangadex.org"
UPLOADS_BASE = "https://uploads.mangadex.org"
SITE_URL = "https://mangadex.org/"

DEFAULT_THRESHOLD = 0.6
DEFAULT_LIMIT = 5

# Title language preference before falling back to any available title
TITLE_LANGUAGES: tuple[str, ...] = ("en", "ja-ro", "ja")

_TITLE_URL_RE = re.compile(r"/title/([^/?#\s]+)")


def extract_manga_id(value: str) -> str:
    """Pull a MangaDex id out of a bare id or a mangadex.org title URL.

    Raises InvalidIdentifierError for empty input or URLs without a
    /title/<id> segment.
    """
    if not value or not value.strip():
        raise InvalidIdentifierError("MangaDex id is required")

    value = value.strip()
    match = _TITLE_URL_RE.search(value)
    if match:
        return match.group(1)
    if "://" in value or "/" in value:
        raise InvalidIdentifierError(f"No /title/<id> segment in {value!r}")
    return value


def display_title(manga: dict, fallback: str) -> str:
    """Pick the display title: preferred languages, then any, then fallback."""
    titles = manga.get("attributes", {}).get("title") or {}
    for lang in TITLE_LANGUAGES:
        if text_or_none(titles.get(lang)):
            return titles[lang]
    for value in titles.values():
        if text_or_none(value):
            return value
    return fallback


class MangaDexClient:
    """Primary provider backed by the MangaDex REST API."""

    name = "mangadex"
    referer = SITE_URL

    def __init__(
        self,
        fetcher: HttpFetcher,
        api_base: str = API_BASE,
        uploads_base: str = UPLOADS_BASE,
        threshold: float = DEFAULT_THRESHOLD,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._fetcher = fetcher
        self.api_base = api_base.rstrip("/")
        self.uploads_base = uploads_base.rstrip("/")
        self.threshold = threshold
        self.limit = limit

    def search(self, title: str) -> LookupResult:
        """Search by title and return the best candidate above threshold."""
        log.debug(f"MangaDex search: {title!r}")
        params = {
            "title": title,
            "limit": self.limit,
            "includes[]": "cover_art",
        }

        try:
            data = self._fetcher.get_json(f"{self.api_base}/manga", params=params)
            results = data.get("data") or []
            if not results:
                log.info(f"MangaDex: no results for {title!r}")
                return LookupResult.not_found("no results")

            titles = [display_title(m, title) for m in results]
            idx, best_score = pick_best(title, titles)

            if best_score < self.threshold:
                log.info(
                    f"MangaDex: rejecting {titles[idx]!r} for {title!r} "
                    f"(score {best_score:.2f} < {self.threshold:.2f})"
                )
                return LookupResult.not_found(
                    f"low confidence: {titles[idx]!r} scored {best_score:.2f}"
                )

            record = self._to_record(results[idx], titles[idx], best_score)
        except FetchError as e:
            log.warning(f"MangaDex error for {title!r}: {e.reason}")
            return LookupResult.error(e.reason)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            log.warning(f"MangaDex returned malformed data for {title!r}: {e!r}")
            return LookupResult.error(f"malformed response: {e!r}")

        log.info(f"MangaDex: {title!r} -> {record.title!r} (score {best_score:.2f})")
        return LookupResult.found(record)

    def fetch_by_id(self, id_or_url: str) -> LookupResult:
        """Fetch one manga by id or title URL. No similarity check.

        Raises InvalidIdentifierError for bad input; network and parse
        failures come back as an ERROR result like search().
        """
        manga_id = extract_manga_id(id_or_url)
        log.debug(f"MangaDex lookup: id={manga_id}")

        try:
            data = self._fetcher.get_json(
                f"{self.api_base}/manga/{manga_id}",
                params={"includes[]": "cover_art"},
            )
            manga = data.get("data")
            if not manga:
                log.info(f"MangaDex: no manga with id {manga_id}")
                return LookupResult.not_found("unknown id")
            record = self._to_record(manga, display_title(manga, manga_id), None)
        except FetchError as e:
            log.warning(f"MangaDex lookup error for {manga_id}: {e.reason}")
            return LookupResult.error(e.reason)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            log.warning(f"MangaDex returned malformed data for {manga_id}: {e!r}")
            return LookupResult.error(f"malformed response: {e!r}")

        return LookupResult.found(record)

    def _to_record(
        self, manga: dict, title: str, match_score: float | None,
    ) -> CandidateRecord:
        attrs = manga.get("attributes") or {}
        description = attrs.get("description") or {}
        return CandidateRecord(
            title=title,
            source=self.name,
            synopsis=text_or_none(description.get("en")),
            status=text_or_none(attrs.get("status")),
            cover_url=self._cover_url(manga),
            external_id=manga["id"],
            score=match_score,
        )

    def _cover_url(self, manga: dict) -> str | None:
        """Build the uploads URL from the cover_art relationship, if any."""
        for rel in manga.get("relationships") or []:
            if rel.get("type") != "cover_art":
                continue
            file_name = text_or_none((rel.get("attributes") or {}).get("fileName"))
            if file_name:
                return f"{self.uploads_base}/covers/{manga['id']}/{file_name}"
        return None
