"""Ingestion layer.

This package contains adapters that turn data received from the remote
store into normalized items and reducer actions.
"""

__all__: list[str] = []
