"""In-process remote list store.

Behaves like the realtime database as seen by one process: generated keys
preserve insertion order and every subscriber receives a full snapshot
after each change.  Snapshots are delivered via ``loop.call_soon`` so that
subscribers never run inside the mutating call.
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import logging
from collections.abc import Mapping
from typing import Any

from pytodosync.remote.base import SnapshotCallback

_logger = logging.getLogger(__name__)


class _MemorySubscription:
    def __init__(self, store: InMemoryListStore, callback: SnapshotCallback) -> None:
        self._store = store
        self._callback = callback

    def close(self) -> None:
        self._store._unsubscribe(self._callback)  # noqa: SLF001


class InMemoryListStore:
    """Dict-backed implementation of :class:`~pytodosync.remote.base.RemoteListStore`."""

    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._subscribers: list[SnapshotCallback] = []
        self._counter = itertools.count(1)
        for key, record in (records or {}).items():
            self._records[key] = dict(record)

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    @property
    def records(self) -> dict[str, dict[str, Any]]:
        """Deep copy of the stored records, keyed by remote key."""
        return copy.deepcopy(self._records)

    def snapshot(self) -> dict[str, Any] | None:
        if not self._records:
            return None
        return copy.deepcopy(self._records)

    # ------------------------------------------------------------------
    # RemoteListStore
    # ------------------------------------------------------------------

    def subscribe_all(self, on_snapshot: SnapshotCallback) -> _MemorySubscription:
        self._subscribers.append(on_snapshot)
        asyncio.get_running_loop().call_soon(self._deliver, on_snapshot, self.snapshot())
        return _MemorySubscription(self, on_snapshot)

    async def query_by_field(self, field: str, value: Any) -> list[str]:
        return [key for key, record in self._records.items() if record.get(field) == value]

    async def remove_by_key(self, key: str) -> None:
        if self._records.pop(key, None) is not None:
            self._notify()

    async def add(self, record: Mapping[str, Any]) -> str:
        key = self._next_key()
        self._records[key] = dict(record)
        self._notify()
        return key

    # ------------------------------------------------------------------
    # Writes made by "other clients"
    # ------------------------------------------------------------------

    def put(self, key: str, record: Mapping[str, Any]) -> None:
        """Store *record* under an explicit *key* and notify subscribers."""
        self._records[key] = dict(record)
        self._notify()

    def delete(self, key: str) -> None:
        if self._records.pop(key, None) is not None:
            self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_key(self) -> str:
        while True:
            key = f"-K{next(self._counter):08d}"
            if key not in self._records:
                return key

    def _unsubscribe(self, callback: SnapshotCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify(self) -> None:
        loop = asyncio.get_running_loop()
        for callback in list(self._subscribers):
            loop.call_soon(self._deliver, callback, self.snapshot())

    def _deliver(self, callback: SnapshotCallback, snapshot: dict[str, Any] | None) -> None:
        if callback not in self._subscribers:
            return
        try:
            callback(snapshot)
        except Exception:
            _logger.debug("Snapshot subscriber failed", exc_info=True)
