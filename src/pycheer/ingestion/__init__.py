"""Ingestion layer.

Helpers that turn raw backend rows into validated records before they reach
the store.
"""

__all__: list[str] = []
