"""Celery tasks package."""

from vocab_stats.tasks import migrations

__all__ = ["migrations"]
