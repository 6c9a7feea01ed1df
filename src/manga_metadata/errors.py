"""Exception hierarchy for metadata resolution and the library store."""


class MetadataError(Exception):
    """Base exception for all manga-metadata errors."""


class ConfigError(MetadataError):
    """Invalid or inconsistent configuration."""


class FetchError(MetadataError):
    """An HTTP request failed (transport, status, or body decoding).

    Raised by the fetch adapter only. Provider clients and the asset cache
    convert it into an absent result, so it never reaches batch callers.
    """

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"GET {url} failed: {reason}")
        self.url = url
        self.reason = reason


class InvalidIdentifierError(MetadataError, ValueError):
    """A caller passed an empty or unusable catalog identifier."""


class LibraryError(MetadataError):
    """Library store or scan root problem."""
