"""CLI entry point for manga-metadata."""

import json
from pathlib import Path

import click
from loguru import logger

from .assets import public_path
from .config import LibraryConfig
from .errors import InvalidIdentifierError, LibraryError
from .library_db import LibraryDB
from .resolver import MetadataResolver
from .scan import reassociate, scan_library

log = logger.bind(stage="cli")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_file: str | None) -> None:
    """Resolve manga folder names to catalog metadata and cached covers."""
    config_kwargs: dict = {}
    if config_file:
        config_kwargs["_env_file"] = config_file
    if verbose:
        config_kwargs["log_level"] = "DEBUG"

    config = LibraryConfig(**config_kwargs)
    config.setup_logging()
    ctx.obj = config


@main.command()
@click.argument("root", type=click.Path(file_okay=False), required=False)
@click.option("--refresh", is_flag=True, help="Re-resolve every title, not just unresolved ones.")
@click.option("--offline", is_flag=True, help="Only sync folders and local covers.")
@click.pass_obj
def scan(config: LibraryConfig, root: str | None, refresh: bool, offline: bool) -> None:
    """Scan ROOT (default: LIBRARY_ROOT) and enrich new or unresolved titles."""
    library_root = Path(root) if root else config.library_root
    log.debug(f"Scanning {library_root} (refresh={refresh}, offline={offline})")
    config.ensure_dirs()
    db = LibraryDB(config.db_path)

    try:
        if offline:
            report = scan_library(library_root, db, None, refresh=refresh)
        else:
            with MetadataResolver.from_config(config) as resolver:
                report = scan_library(library_root, db, resolver, refresh=refresh)
    except LibraryError as e:
        raise click.ClickException(str(e))
    finally:
        db.close()

    click.echo(
        f"Processed {report.processed} folders: {report.created} new, "
        f"{report.enriched} enriched, {report.local_covers} local covers, "
        f"{report.failed} unresolved"
    )
    for title in report.unresolved:
        click.echo(f"  unresolved: {title}")


def _metadata_json(meta, cover_url_prefix: str) -> dict | None:
    if meta is None:
        return None
    data = meta.to_dict()
    data["cover_url"] = public_path(meta.cover, cover_url_prefix) if meta.cover else None
    return data


@main.command()
@click.argument("titles", nargs=-1, required=True)
@click.pass_obj
def resolve(config: LibraryConfig, titles: tuple[str, ...]) -> None:
    """Resolve TITLES and print the metadata as JSON."""
    config.ensure_dirs()
    with MetadataResolver.from_config(config) as resolver:
        results = resolver.resolve_batch(titles)

    payload = {
        title: _metadata_json(meta, config.cover_url_prefix)
        for title, meta in results.items()
    }
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@main.command()
@click.argument("folder", type=click.Path(exists=True, file_okay=False))
@click.argument("id_or_url")
@click.pass_obj
def lookup(config: LibraryConfig, folder: str, id_or_url: str) -> None:
    """Re-associate FOLDER with a MangaDex id or title URL."""
    config.ensure_dirs()
    db = LibraryDB(config.db_path)
    path = str(Path(folder).resolve())

    try:
        if db.read(path) is None:
            db.upsert_folder(path, Path(path).name)
        with MetadataResolver.from_config(config) as resolver:
            row = reassociate(db, resolver, path, id_or_url)
    except InvalidIdentifierError as e:
        raise click.UsageError(str(e))
    finally:
        db.close()

    if row is None:
        raise click.ClickException(f"No MangaDex entry found for {id_or_url!r}")
    click.echo(f"Linked {path} -> {row['title']} ({row['external_id']})")
