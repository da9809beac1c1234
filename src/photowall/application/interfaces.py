from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List


class IMediaToolchain(ABC):
    """External media tooling used by the derived-asset generator and prober.

    Every method raises :class:`~photowall.errors.ExternalToolError` on
    failure; callers decide whether that degrades or aborts.
    """

    @abstractmethod
    def transcode(self, source: Path, destination: Path) -> Path:
        """Encode *source* into the browser delivery format at *destination*."""

    @abstractmethod
    def extract_frame(self, source: Path, destination: Path, offset: float) -> Path:
        """Write a still frame sampled *offset* seconds into *source*."""

    @abstractmethod
    def probe(self, source: Path) -> Dict[str, Any]:
        """Return ``{"format": {...}, "streams": [...]}`` for *source*."""


class IMetadataProvider(ABC):
    """Interface for extracting embedded metadata from media files."""

    @abstractmethod
    def get_metadata_batch(self, paths: List[Path]) -> List[Dict[str, Any]]:
        """
        Extract metadata for a batch of files.
        Returns a list of dictionaries, one for each readable path, each
        carrying a ``SourceFile`` key (order not guaranteed to match input).
        """
