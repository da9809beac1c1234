"""Hashing utilities."""

from __future__ import annotations

import xxhash

from ..config import ASSET_ID_LENGTH


def asset_id(album: str, filename: str) -> str:
    """Return the stable identifier for ``album/filename``.

    The key is the relative location only, never file content or timestamps,
    so re-running a scan over an unchanged tree yields identical ids.
    """

    key = f"{album}/{filename}".encode("utf-8")
    return xxhash.xxh3_64(key).hexdigest()[:ASSET_ID_LENGTH]


__all__ = ["asset_id"]
