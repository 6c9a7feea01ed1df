"""Tests for models.py -- lookup results and record helpers."""

from pathlib import Path

import pytest

from manga_metadata.models import (
    IMAGE_EXTENSIONS,
    CandidateRecord,
    LookupResult,
    LookupStatus,
    ResolvedMetadata,
    ScanReport,
)


class TestLookupStatus:
    def test_values(self):
        assert LookupStatus.FOUND == "found"
        assert LookupStatus.NOT_FOUND == "not_found"
        assert LookupStatus.ERROR == "error"


class TestLookupResult:
    def test_found_exposes_record(self):
        rec = CandidateRecord(title="Naruto", source="mangadex")
        result = LookupResult.found(rec)
        assert result.status == LookupStatus.FOUND
        assert result.record_or_none is rec

    @pytest.mark.parametrize(
        "result",
        [LookupResult.not_found("no results"), LookupResult.error("HTTP 500")],
    )
    def test_non_found_collapses_to_none(self, result):
        assert result.record_or_none is None

    def test_error_keeps_reason(self):
        assert LookupResult.error("timeout").reason == "timeout"


class TestResolvedMetadata:
    def test_to_dict(self):
        meta = ResolvedMetadata(
            title="Berserk",
            source="mangadex+kitsu",
            cover=Path("/cache/abc.jpg"),
            rating=90.1,
        )
        d = meta.to_dict()
        assert d["title"] == "Berserk"
        assert d["cover"] == "/cache/abc.jpg"
        assert d["source"] == "mangadex+kitsu"
        assert d["rating"] == 90.1
        assert d["synopsis"] is None

    def test_to_dict_without_cover(self):
        assert ResolvedMetadata(title="X", source="kitsu").to_dict()["cover"] is None


class TestConstants:
    def test_image_extensions(self):
        assert ".jpg" in IMAGE_EXTENSIONS
        assert ".webp" in IMAGE_EXTENSIONS
        assert ".txt" not in IMAGE_EXTENSIONS


class TestScanReport:
    def test_defaults(self):
        report = ScanReport()
        assert report.processed == 0
        assert report.unresolved == []
        assert ScanReport().unresolved is not report.unresolved
