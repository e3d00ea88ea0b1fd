"""imagebot: chat message to image (or ASCII-art fallback) pipeline."""

__version__ = "0.1.0"
