"""External catalog clients for metadata resolution.

Submodules:
    http     -- GET-only httpx adapter with uniform FetchError
    search   -- Title similarity scoring
    mangadex -- Primary provider (scored search, lookup by id)
    kitsu    -- Fallback provider (first free-text hit)
"""
