"""Tests for config.py -- defaults, env var overrides."""

from pathlib import Path

import pytest

from manga_metadata.config import LibraryConfig

# Env vars that pydantic-settings reads -- must be cleaned for default tests
_CONFIG_ENV_VARS = [
    "LIBRARY_ROOT", "DATA_DIR", "CACHE_DIR", "LOG_DIR", "USER_AGENT",
    "HTTP_TIMEOUT", "MANGADEX_API_BASE", "MANGADEX_UPLOADS_BASE",
    "KITSU_API_BASE", "MATCH_THRESHOLD", "SEARCH_LIMIT", "BATCH_SIZE",
    "REQUEST_DELAY", "BATCH_DELAY", "COVER_URL_PREFIX",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove config env vars so defaults tests see actual defaults."""
    for var in _CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_default_values(self):
        config = LibraryConfig(_env_file=None)
        assert config.user_agent == "MangaReader/1.0"
        assert config.match_threshold == 0.6
        assert config.search_limit == 5
        assert config.batch_size == 3
        assert config.request_delay == 0.5
        assert config.batch_delay == 2.0
        assert config.cover_url_prefix == "/covers"
        assert config.log_level == "INFO"

    def test_batch_delay_exceeds_request_delay(self):
        config = LibraryConfig(_env_file=None)
        assert config.batch_delay > config.request_delay

    def test_default_paths(self):
        config = LibraryConfig(_env_file=None)
        assert config.library_root == Path("/manga")
        assert config.cache_dir == Path("/var/lib/manga-metadata/covers")
        assert config.db_path == Path("/var/lib/manga-metadata/library.db")

    def test_api_bases(self):
        config = LibraryConfig(_env_file=None)
        assert config.mangadex_api_base == "https://api.mangadex.org"
        assert config.mangadex_uploads_base == "https://uploads.mangadex.org"
        assert config.kitsu_api_base == "https://kitsu.io/api/edge"


class TestOverrides:
    def test_constructor_override(self):
        config = LibraryConfig(_env_file=None, batch_size=5, match_threshold=0.75)
        assert config.batch_size == 5
        assert config.match_threshold == 0.75

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("BATCH_DELAY", "5")
        monkeypatch.setenv("MATCH_THRESHOLD", "0.8")
        config = LibraryConfig(_env_file=None)
        assert config.batch_delay == 5.0
        assert config.match_threshold == 0.8

    def test_env_file(self, tmp_path):
        env = tmp_path / "test.env"
        env.write_text("LIBRARY_ROOT=/srv/comics\nBATCH_SIZE=4\n")
        config = LibraryConfig(_env_file=env)
        assert config.library_root == Path("/srv/comics")
        assert config.batch_size == 4

    def test_db_path_follows_data_dir(self, monkeypatch):
        monkeypatch.setenv("DATA_DIR", "/tmp/test-data")
        config = LibraryConfig(_env_file=None)
        assert config.db_path == Path("/tmp/test-data/library.db")

    def test_ensure_dirs(self, tmp_path):
        config = LibraryConfig(
            _env_file=None,
            data_dir=tmp_path / "data",
            cache_dir=tmp_path / "data" / "covers",
            log_dir=tmp_path / "logs",
        )
        config.ensure_dirs()
        assert (tmp_path / "data" / "covers").is_dir()
        assert (tmp_path / "logs").is_dir()
