"""Ingestion helpers.

Defensive coercion of raw store values (coordinates, ids, timestamps).
"""

__all__: list[str] = []
