from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from photowall.application.interfaces import IMetadataProvider
from photowall.config import EXIFTOOL_TIMEOUT_SEC
from photowall.errors import ExternalToolError
from photowall.utils.exiftool import get_metadata_batch

logger = logging.getLogger(__name__)


class ExifToolMetadataProvider(IMetadataProvider):
    def __init__(self, timeout: Optional[float] = EXIFTOOL_TIMEOUT_SEC):
        self._timeout = timeout
        self._unavailable = False

    def get_metadata_batch(self, paths: List[Path]) -> List[Dict[str, Any]]:
        # A missing exiftool is reported once; images then fall back to Pillow.
        if self._unavailable or not paths:
            return []
        try:
            return get_metadata_batch(paths, timeout=self._timeout)
        except ExternalToolError as e:
            if "not found" in str(e):
                self._unavailable = True
            logger.warning("Batch ExifTool query failed for %s files: %s", len(paths), e)
            return []
