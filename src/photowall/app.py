"""High-level entry points composing the scan pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .application.interfaces import IMediaToolchain, IMetadataProvider
from .domain.services.manifest_service import ManifestService
from .infrastructure.services.derived_assets import DerivedAssetGenerator
from .infrastructure.services.ffmpeg_toolchain import FFmpegToolchain
from .infrastructure.services.metadata_provider import ExifToolMetadataProvider
from .infrastructure.services.thumbnail_generator import PillowThumbnailGenerator
from .io.scanner import AlbumScanner
from .models.asset import ScanResult
from .settings import PipelineSettings
from .utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class ScanSummary:
    result: ScanResult
    records: List[Dict[str, Any]]


def build_scanner(
    settings: PipelineSettings,
    *,
    toolchain: Optional[IMediaToolchain] = None,
    metadata_provider: Optional[IMetadataProvider] = None,
) -> AlbumScanner:
    """Wire the default collaborators for *settings*; tests inject fakes."""

    toolchain = toolchain or FFmpegToolchain(
        transcode_args=settings.transcode_args,
        probe_timeout=settings.probe_timeout,
        frame_timeout=settings.frame_timeout,
        transcode_timeout=settings.transcode_timeout,
    )
    encoder = PillowThumbnailGenerator(
        width=settings.thumbnail_width,
        quality=settings.thumbnail_quality,
        heic_quality=settings.heic_quality,
    )
    generator = DerivedAssetGenerator(
        settings.public_dir,
        toolchain,
        encoder,
        frame_offset=settings.frame_offset,
        regenerate_stale=settings.regenerate_stale,
    )
    return AlbumScanner(
        settings.public_dir,
        toolchain,
        metadata_provider or ExifToolMetadataProvider(),
        generator,
        workers=settings.workers,
    )


def scan_library(
    settings: PipelineSettings,
    *,
    toolchain: Optional[IMediaToolchain] = None,
    metadata_provider: Optional[IMetadataProvider] = None,
) -> ScanSummary:
    """Scan the photo tree and atomically publish the manifest.

    The previous manifest stays untouched if the scan aborts.
    """

    scanner = build_scanner(settings, toolchain=toolchain, metadata_provider=metadata_provider)
    result = scanner.scan()
    records = ManifestService(settings.manifest_path).write(result.assets)
    LOGGER.info(
        "Scan complete: %d assets, %d thumbnails, %d transcodes, %d conversions, %d errors",
        len(result.assets),
        result.thumbnails_created,
        result.videos_transcoded,
        result.images_converted,
        len(result.errors),
    )
    return ScanSummary(result=result, records=records)
