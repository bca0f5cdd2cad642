"""Multi-page memo pad with per-page file persistence and encoding handling."""

__version__ = "0.3.0"
