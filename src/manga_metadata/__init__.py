"""Manga Metadata -- resolve library folders to catalog metadata and cached covers.

Core modules:
    config     -- Configuration via pydantic-settings (.env + env vars) and loguru setup
    models     -- Candidate/resolved records and the tagged provider LookupResult
    resolver   -- Orchestrator: MangaDex first, Kitsu fallback, merge, rate-limited
                  batches, manual re-association by MangaDex id
    assets     -- Cover cache keyed by URL hash, atomic writes, forced refresh
    scan       -- Library directory scan and the local-cover-first policy
    library_db -- SQLite store of title folders and their merged metadata
    cli        -- Click CLI (scan, resolve, lookup)

Subpackages:
    api        -- HTTP adapter, title similarity scoring, MangaDex and Kitsu clients
"""
