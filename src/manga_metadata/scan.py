"""Library directory scan -- folders to library rows, enriched with metadata.

Each immediate subdirectory of the library root is one title. Cover policy:
    1. An image file directly inside the title folder always wins.
    2. Otherwise a cover cached by the resolver.
    3. Otherwise no cover. A stored remote URL is never kept.

Metadata failures are counted, never raised; the scan always finishes.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .assets import is_remote
from .errors import LibraryError
from .models import IMAGE_EXTENSIONS, LOCAL_COVER_STEMS, ResolvedMetadata, ScanReport

if TYPE_CHECKING:
    from .library_db import LibraryDB
    from .resolver import MetadataResolver

log = logger.bind(stage="scan")


def _natural_key(name: str) -> list:
    """Sort key treating digit runs as numbers ("p2" < "p10")."""
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name)]


def find_local_cover(folder: Path) -> Path | None:
    """Image file directly inside folder: cover/folder/poster first, else first by name."""
    images = [
        p for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    ]
    if not images:
        return None
    for stem in LOCAL_COVER_STEMS:
        for p in images:
            if p.stem.lower() == stem:
                return p
    return min(images, key=lambda p: _natural_key(p.name))


def list_title_folders(root: Path) -> list[Path]:
    """Immediate subdirectories of root in natural order (hidden dirs skipped)."""
    if not root.is_dir():
        raise LibraryError(f"Library root is not a directory: {root}")
    return sorted(
        (p for p in root.iterdir() if p.is_dir() and not p.name.startswith(".")),
        key=lambda p: _natural_key(p.name),
    )


def _metadata_fields(meta: ResolvedMetadata) -> dict:
    fields = {
        "synopsis": meta.synopsis,
        "status": meta.status,
        "rating": meta.rating,
        "external_id": meta.external_id,
        "source": meta.source,
    }
    # an empty title would wipe the folder name, which the column requires
    if meta.title:
        fields["title"] = meta.title
    return fields


def scan_library(
    root: Path,
    db: LibraryDB,
    resolver: MetadataResolver | None = None,
    refresh: bool = False,
) -> ScanReport:
    """Sync library rows with the folders under root and enrich them.

    Rows are enriched when new, never enriched, or holding a remote-URL
    cover. Enriched rows without a cover are skipped; refresh=True enriches
    every row. resolver=None runs
    an offline scan (folders and local covers only).
    """
    root = Path(root).resolve()
    report = ScanReport()
    pending: dict[str, tuple[str, Path | None]] = {}

    for folder in list_title_folders(root):
        path = str(folder)
        row, created = db.upsert_folder(path, folder.name)
        report.processed += 1
        if created:
            report.created += 1

        local_cover = find_local_cover(folder)
        cover = row["cover"]
        dropped_remote = False
        if local_cover is not None:
            report.local_covers += 1
            cover = str(local_cover)
        elif is_remote(cover):
            log.info(f"Removing remote cover URL for {folder.name!r}")
            cover = None
            dropped_remote = True
        if cover != row["cover"]:
            db.update(path, cover=cover)

        if refresh or row["source"] is None or dropped_remote:
            pending[folder.name] = (path, local_cover)

    if resolver is None or not pending:
        log.info(f"Scanned {report.processed} folders ({report.created} new), nothing to resolve")
        return report

    log.info(f"Resolving metadata for {len(pending)} of {report.processed} folders")
    results = resolver.resolve_batch(list(pending))

    for title, (path, local_cover) in pending.items():
        meta = results.get(title)
        if meta is None:
            report.failed += 1
            report.unresolved.append(title)
            continue

        fields = _metadata_fields(meta)
        if local_cover is None and meta.cover is not None:
            fields["cover"] = str(meta.cover)
        db.update(path, **fields)
        report.enriched += 1

    log.info(
        f"Scan complete: processed={report.processed} created={report.created} "
        f"enriched={report.enriched} failed={report.failed}"
    )
    return report


def reassociate(
    db: LibraryDB,
    resolver: MetadataResolver,
    path: str,
    id_or_url: str,
) -> dict | None:
    """Re-link one library row to a specific MangaDex entry.

    The previous cover is discarded (it belonged to the wrong match) unless a
    folder-local image exists. Returns the updated row, or None when the
    lookup found nothing. InvalidIdentifierError propagates to the caller.
    """
    row = db.read(path)
    if row is None:
        raise LibraryError(f"No library entry for {path}")

    meta = resolver.resolve_by_external_id(id_or_url)
    if meta is None:
        log.warning(f"Re-association failed for {row['title']!r}: no metadata for {id_or_url!r}")
        return None

    folder = Path(path)
    local_cover = find_local_cover(folder) if folder.is_dir() else None
    fields = _metadata_fields(meta)
    if local_cover is not None:
        fields["cover"] = str(local_cover)
    else:
        fields["cover"] = str(meta.cover) if meta.cover else None

    log.info(f"Re-associated {path} -> {meta.title!r} ({meta.external_id})")
    return db.update(path, **fields)
