from .asset import (
    AssetPaths,
    ImageMetadata,
    MediaAsset,
    MediaKind,
    ScanResult,
    VideoMetadata,
)

__all__ = [
    "AssetPaths",
    "ImageMetadata",
    "MediaAsset",
    "MediaKind",
    "ScanResult",
    "VideoMetadata",
]
