"""Vocabulary status aggregates and their maintenance jobs."""
