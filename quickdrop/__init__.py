"""QuickDrop - one-time file transfers with download notifications."""

__version__ = "1.0.0"
