import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List

from photowall.config import PHOTOS_DIR_NAME
from photowall.errors import ManifestInvalidError, PhotoWallError
from photowall.models.asset import MediaAsset
from photowall.schemas import validate_manifest
from photowall.utils.formatting import format_display_time, parse_timestamp
from photowall.utils.jsonio import read_json, write_json

LOGGER = logging.getLogger(__name__)

_CATEGORY_FROM_URL = re.compile(rf"{PHOTOS_DIR_NAME}/([^/]+)/")


@dataclass
class ManifestReport:
    total: int = 0
    categories: Dict[str, int] = field(default_factory=dict)
    with_category: int = 0
    with_display_time: int = 0


def sort_assets(assets: Iterable[MediaAsset]) -> List[MediaAsset]:
    """Newest first.  ``sorted`` is stable, so equal timestamps keep scan order."""

    return sorted(assets, key=lambda asset: asset.captured_at.timestamp(), reverse=True)


class ManifestService:
    """Builds, publishes and post-processes the ``photos.json`` manifest."""

    def __init__(self, manifest_path: Path):
        self._path = manifest_path

    @property
    def path(self) -> Path:
        return self._path

    def build(self, assets: Iterable[MediaAsset]) -> List[Dict[str, Any]]:
        records = [asset.to_record() for asset in sort_assets(assets)]
        validate_manifest(records)
        return records

    def write(self, assets: Iterable[MediaAsset]) -> List[Dict[str, Any]]:
        """Replace the manifest with the sorted records of *assets*."""
        records = self.build(assets)
        write_json(self._path, records)
        LOGGER.info("Wrote %d records to %s", len(records), self._path)
        return records

    def read(self) -> List[Dict[str, Any]]:
        if not self._path.exists():
            raise PhotoWallError(f"Manifest not found: {self._path}")
        data = read_json(self._path)
        if not isinstance(data, list):
            raise ManifestInvalidError(f"Manifest {self._path} is not a JSON array")
        return data

    def enhance(self) -> int:
        """Backfill ``category`` and ``displayTime`` in place.

        Returns the number of records that changed.  The file is only
        rewritten when something changed.
        """
        records = self.read()
        updated = 0
        for record in records:
            if not isinstance(record, dict):
                continue
            changed = False

            if not record.get("category"):
                match = _CATEGORY_FROM_URL.search(str(record.get("url", "")))
                if match:
                    record["category"] = match.group(1)
                    changed = True

            captured = parse_timestamp(record["date"]) if isinstance(record.get("date"), str) else None
            if captured is not None:
                display = format_display_time(captured)
                if record.get("displayTime") != display:
                    record["displayTime"] = display
                    changed = True

            if changed:
                updated += 1

        if updated:
            write_json(self._path, records)
        LOGGER.info("Enhanced %d of %d records", updated, len(records))
        return updated

    def report(self) -> ManifestReport:
        records = [r for r in self.read() if isinstance(r, dict)]
        categories = Counter(r["category"] for r in records if r.get("category"))
        return ManifestReport(
            total=len(records),
            categories=dict(sorted(categories.items())),
            with_category=sum(1 for r in records if r.get("category")),
            with_display_time=sum(1 for r in records if r.get("displayTime")),
        )
