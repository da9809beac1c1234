"""Build-time media pipeline for the photo wall gallery."""

__version__ = "0.3.0"
