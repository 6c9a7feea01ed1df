"""Library configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class LibraryConfig(BaseSettings):
    """All configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    library_root: Path = Path("/manga")
    data_dir: Path = Path("/var/lib/manga-metadata")
    cache_dir: Path = Path("/var/lib/manga-metadata/covers")
    log_dir: Path = Path("/var/log/manga-metadata")

    # -- HTTP --
    user_agent: str = "MangaReader/1.0"
    http_timeout: float = 30.0
    mangadex_api_base: str = "https://api.mangadex.org"
    mangadex_uploads_base: str = "https://uploads.mangadex.org"
    kitsu_api_base: str = "https://kitsu.io/api/edge"

    # -- Matching --
    match_threshold: float = 0.6
    search_limit: int = 5

    # -- Rate limiting (seconds) --
    batch_size: int = 3
    request_delay: float = 0.5
    batch_delay: float = 2.0

    # -- Serving --
    cover_url_prefix: str = "/covers"

    # -- Logging --
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        """Path to the SQLite library database."""
        return self.data_dir / "library.db"

    def ensure_dirs(self) -> None:
        """Create all required directories if they don't exist."""
        for d in (self.data_dir, self.cache_dir, self.log_dir):
            d.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure loguru for the resolver."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "metadata.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
