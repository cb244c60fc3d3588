"""API endpoint modules for v1."""

from vocab_stats.api.v1.endpoints import admin, stats, words

__all__ = ["admin", "stats", "words"]
