"""Typer-based CLI entry point."""

from __future__ import annotations

from dataclasses import replace
from functools import wraps
from pathlib import Path
from typing import Optional

import typer
from rich import print

from .app import scan_library
from .domain.services.manifest_service import ManifestService
from .errors import PhotoWallError
from .settings import PipelineSettings, load_settings
from .utils.logging import configure_logging

app = typer.Typer(help="Build thumbnails, transcodes and the photos.json manifest")


def _handle_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PhotoWallError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _settings(
    settings_file: Optional[Path],
    public_dir: Optional[Path],
    manifest: Optional[Path],
    workers: Optional[int] = None,
    regenerate_stale: Optional[bool] = None,
) -> PipelineSettings:
    settings = load_settings(settings_file)
    overrides = {}
    if public_dir is not None:
        overrides["public_dir"] = public_dir
    if manifest is not None:
        overrides["manifest_path"] = manifest
    if workers is not None:
        overrides["workers"] = workers
    if regenerate_stale is not None:
        overrides["regenerate_stale"] = regenerate_stale
    if not overrides:
        return settings
    return replace(settings, **overrides)


_SETTINGS_OPTION = typer.Option(None, "--settings", help="Path to a photowall.json settings file")
_PUBLIC_OPTION = typer.Option(None, "--public-dir", help="Directory holding photos/, thumbs/ and generated/")
_MANIFEST_OPTION = typer.Option(None, "--manifest", help="Manifest output path")


@app.command()
@_handle_errors
def scan(
    settings_file: Optional[Path] = _SETTINGS_OPTION,
    public_dir: Optional[Path] = _PUBLIC_OPTION,
    manifest: Optional[Path] = _MANIFEST_OPTION,
    workers: Optional[int] = typer.Option(None, "--workers", min=0, help="Parallel files, 0 = CPU count"),
    regenerate_stale: Optional[bool] = typer.Option(
        None, "--regenerate-stale/--keep-existing", help="Rebuild artifacts older than their source"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Scan photos/<album>/ and rewrite the manifest."""

    configure_logging(verbose)
    settings = _settings(settings_file, public_dir, manifest, workers, regenerate_stale)
    summary = scan_library(settings)
    result = summary.result
    print(
        f"[green]Indexed {len(summary.records)} assets[/green] from {result.total_processed} files "
        f"({result.thumbnails_created} thumbnails, {result.videos_transcoded} transcodes, "
        f"{result.images_converted} conversions)"
    )
    if result.errors:
        print(f"[yellow]{len(result.errors)} files degraded or skipped")
    if result.skipped_albums:
        print(f"[yellow]Skipped albums: {', '.join(result.skipped_albums)}")


@app.command()
@_handle_errors
def enhance(
    settings_file: Optional[Path] = _SETTINGS_OPTION,
    manifest: Optional[Path] = _MANIFEST_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Backfill category and displayTime in an existing manifest."""

    configure_logging(verbose)
    settings = _settings(settings_file, None, manifest)
    updated = ManifestService(settings.manifest_path).enhance()
    print(f"[green]Updated {updated} records")


@app.command()
@_handle_errors
def report(
    settings_file: Optional[Path] = _SETTINGS_OPTION,
    manifest: Optional[Path] = _MANIFEST_OPTION,
) -> None:
    """Print per-album counts and field completeness of the manifest."""

    settings = _settings(settings_file, None, manifest)
    summary = ManifestService(settings.manifest_path).report()

    def _percent(count: int) -> int:
        return round(count * 100 / summary.total) if summary.total else 0

    print(f"Total records: {summary.total}")
    for category, count in summary.categories.items():
        print(f"  {category}: {count}")
    print(f"With category: {summary.with_category}/{summary.total} ({_percent(summary.with_category)}%)")
    print(
        f"With display time: {summary.with_display_time}/{summary.total} "
        f"({_percent(summary.with_display_time)}%)"
    )


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
