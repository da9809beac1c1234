"""Album scanner producing manifest assets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..application.interfaces import IMediaToolchain, IMetadataProvider
from ..application.services.parallel_scanner import ParallelScanner
from ..config import EXIFTOOL_BATCH_SIZE, PHOTOS_DIR_NAME
from ..errors import OutputDirectoryError, PhotoWallError, ScanError
from ..infrastructure.services.derived_assets import DerivedAssetGenerator
from ..media_classifier import classify_kind
from ..models.asset import MediaAsset, MediaKind, ScanResult
from ..utils.logging import get_logger
from ..utils.pathutils import derive_asset_paths, resolve_relative
from .metadata import read_image_meta, read_video_meta

LOGGER = get_logger(__name__)

CREATED_THUMBNAIL = "thumbnail"
CREATED_TRANSCODE = "transcode"
CREATED_CONVERSION = "conversion"


@dataclass(frozen=True)
class FileTask:
    album: str
    filename: str
    path: Path
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class FileOutcome:
    """What one file contributed to the scan."""

    task: FileTask
    asset: Optional[MediaAsset] = None
    created: List[str] = field(default_factory=list)
    error: Optional[str] = None


def list_albums(photos_root: Path) -> List[Path]:
    """Return the immediate sub-directories of *photos_root*, sorted by name."""

    return sorted((entry for entry in photos_root.iterdir() if entry.is_dir()), key=lambda p: p.name)


def list_album_media(album_dir: Path) -> List[str]:
    """Return the accepted media filenames of *album_dir*, sorted by name.

    ``OSError`` propagates so the caller can skip the whole album.
    """

    names = []
    for entry in album_dir.iterdir():
        if classify_kind(entry.name) is None:
            continue
        if entry.is_file():
            names.append(entry.name)
    return sorted(names)


def _mtime_datetime(stat: Any) -> datetime:
    return datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)


class AlbumScanner:
    """Walk ``photos/<album>/<file>`` and build one :class:`MediaAsset` per file."""

    def __init__(
        self,
        public_dir: Path,
        toolchain: IMediaToolchain,
        metadata_provider: IMetadataProvider,
        generator: DerivedAssetGenerator,
        *,
        workers: int = 1,
    ) -> None:
        self._public_dir = public_dir
        self._toolchain = toolchain
        self._metadata_provider = metadata_provider
        self._generator = generator
        self._pool = ParallelScanner(max_workers=workers)

    @property
    def photos_root(self) -> Path:
        return self._public_dir / PHOTOS_DIR_NAME

    def scan(self) -> ScanResult:
        """Scan every album and return the accumulated result.

        A missing photo root yields an empty result.  Albums that cannot be
        listed are skipped, and so are files that cannot be processed at all.
        """

        result = ScanResult()
        root = self.photos_root
        if not root.is_dir():
            LOGGER.info("Photo root %s does not exist; nothing to scan", root)
            return result

        try:
            albums = list_albums(root)
        except OSError as exc:
            raise ScanError(f"Unable to list albums in {root}: {exc}") from exc

        for album_dir in albums:
            try:
                tasks = self._album_tasks(album_dir)
            except OSError as exc:
                LOGGER.warning("Skipping album %s: %s", album_dir.name, exc)
                result.skipped_albums.append(album_dir.name)
                continue

            LOGGER.info("Scanning album %s (%d files)", album_dir.name, len(tasks))
            for outcome in self._pool.map(self.process_file, tasks):
                self._collect(result, outcome)

        return result

    def _album_tasks(self, album_dir: Path) -> List[FileTask]:
        album = album_dir.name
        filenames = list_album_media(album_dir)
        paths = [album_dir / name for name in filenames]

        still_images = [
            path for path in paths if classify_kind(path.name) in (MediaKind.IMAGE, MediaKind.HEIC)
        ]
        lookup: Dict[Path, Dict[str, Any]] = {}
        for start in range(0, len(still_images), EXIFTOOL_BATCH_SIZE):
            batch = still_images[start : start + EXIFTOOL_BATCH_SIZE]
            for payload in self._metadata_provider.get_metadata_batch(batch):
                if not isinstance(payload, dict):
                    continue
                source = payload.get("SourceFile")
                if isinstance(source, str):
                    lookup[Path(source).resolve()] = payload

        return [
            FileTask(album, name, path, lookup.get(path.resolve()))
            for name, path in zip(filenames, paths)
        ]

    @staticmethod
    def _collect(result: ScanResult, outcome: FileOutcome) -> None:
        if outcome.asset is not None:
            result.assets.append(outcome.asset)
        if outcome.error is not None:
            result.errors.append((outcome.task.path, outcome.error))
        result.thumbnails_created += outcome.created.count(CREATED_THUMBNAIL)
        result.videos_transcoded += outcome.created.count(CREATED_TRANSCODE)
        result.images_converted += outcome.created.count(CREATED_CONVERSION)

    # ------------------------------------------------------------------
    # Per-file pipeline
    # ------------------------------------------------------------------

    def process_file(self, task: FileTask) -> FileOutcome:
        """Build the asset for one file, degrading instead of failing.

        Only output-directory failures escape, since they affect every file.
        """

        outcome = FileOutcome(task)
        try:
            stat = task.path.stat()
        except OSError as exc:
            LOGGER.warning("Could not read file %s: %s", task.path, exc)
            outcome.error = str(exc)
            return outcome

        try:
            outcome.asset = self._build_asset(task, stat, outcome.created)
        except OutputDirectoryError:
            raise
        except (PhotoWallError, OSError) as exc:
            LOGGER.warning("Could not process file %s: %s", task.path, exc)
            outcome.error = str(exc)
            outcome.asset = self._build_base_asset(task, stat)
        except Exception as exc:
            LOGGER.exception("Unexpected failure while processing %s", task.path)
            outcome.error = str(exc)
            outcome.asset = self._build_base_asset(task, stat)
        return outcome

    def _build_base_asset(self, task: FileTask, stat: Any) -> MediaAsset:
        """Create the degraded record used when processing fails."""

        kind = classify_kind(task.filename) or MediaKind.IMAGE
        paths = derive_asset_paths(task.album, task.filename)
        return MediaAsset(
            id=paths.id,
            source=task.path,
            album=task.album,
            kind=kind,
            name=task.filename,
            captured_at=_mtime_datetime(stat),
            size_bytes=stat.st_size,
            url=paths.served,
            thumbnail=paths.thumbnail,
        )

    def _build_asset(self, task: FileTask, stat: Any, created: List[str]) -> MediaAsset:
        asset = self._build_base_asset(task, stat)
        if asset.kind is MediaKind.VIDEO:
            self._fill_video(asset, task, created)
        else:
            self._fill_image(asset, task, created)
        return asset

    def _fill_video(self, asset: MediaAsset, task: FileTask, created: List[str]) -> None:
        transcoded = self._generator.transcode_video(task.album, task.filename, task.path)
        if transcoded.relative:
            asset.url = transcoded.relative
        if transcoded.created:
            created.append(CREATED_TRANSCODE)

        meta = read_video_meta(task.path, self._toolchain)
        asset.width, asset.height = meta.width, meta.height
        asset.duration = meta.duration
        if meta.captured_at is not None:
            asset.captured_at = meta.captured_at

        thumb = self._generator.generate_video_thumbnail(task.path, asset.thumbnail)
        if thumb.created:
            created.append(CREATED_THUMBNAIL)

    def _fill_image(self, asset: MediaAsset, task: FileTask, created: List[str]) -> None:
        thumb_source = task.path
        if asset.kind is MediaKind.HEIC:
            converted = self._generator.convert_heic(task.album, task.filename, task.path)
            if converted.relative:
                asset.url = converted.relative
                thumb_source = resolve_relative(self._public_dir, converted.relative)
            if converted.created:
                created.append(CREATED_CONVERSION)

        thumb = self._generator.generate_thumbnail(thumb_source, asset.thumbnail)
        if thumb.created:
            created.append(CREATED_THUMBNAIL)

        meta = read_image_meta(task.path, task.metadata)
        asset.width = meta.width or 0
        asset.height = meta.height or 0
        if meta.captured_at is not None:
            asset.captured_at = meta.captured_at
        asset.exif = meta.to_exif()
