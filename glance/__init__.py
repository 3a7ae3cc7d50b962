"""glance: incremental per-directory summaries."""

__version__ = "0.4.0"
