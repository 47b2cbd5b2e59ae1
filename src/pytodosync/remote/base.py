"""Remote list store contract.

The bridge depends on this structural interface rather than on a specific
backend, so tests can pass in-memory doubles and production code can use
the realtime-database implementation.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

SnapshotCallback = Callable[[Mapping[str, Any] | None], None]
"""Receives the full keyed collection (``None`` when it is empty)."""


class Subscription(Protocol):
    """Handle for an open full-collection subscription."""

    def close(self) -> None: ...


class RemoteListStore(Protocol):
    """Keyed collection service backing the shared list.

    Keys are generated by the store on :meth:`add` and are unrelated to
    the logical ``id`` field carried inside each record.
    """

    def subscribe_all(self, on_snapshot: SnapshotCallback) -> Subscription | None:
        """Start delivering full-collection snapshots to *on_snapshot*.

        Returns a handle that stops delivery, or ``None`` for stores whose
        subscription lives as long as the store itself.

        Must be called while an event loop is running.  Snapshots arrive
        on the store's own schedule: once initially and after every
        change made by any client.
        """
        ...

    async def query_by_field(self, field: str, value: Any) -> list[str]:
        """Return the keys of all records whose *field* equals *value*."""
        ...

    async def remove_by_key(self, key: str) -> None: ...

    async def add(self, record: Mapping[str, Any]) -> str:
        """Store *record* under a newly generated key and return the key."""
        ...
