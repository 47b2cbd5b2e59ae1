"""Snapshot ingestion helpers.

This module translates full-collection snapshots delivered by the remote
store into :class:`~pytodosync.state.actions.LoadItems` actions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pytodosync.exceptions import MalformedSnapshotError
from pytodosync.models.item import TodoItem
from pytodosync.state.actions import LoadItems

_logger = logging.getLogger(__name__)


def items_from_snapshot(snapshot: Mapping[str, Any] | None) -> list[TodoItem]:
    """Flatten a keyed snapshot into an ordered item list.

    Order follows the snapshot's iteration order.  Malformed records and
    records repeating an id already seen earlier in the snapshot are
    skipped, so the result never contains two items with the same id.
    """
    if not snapshot:
        return []
    if not isinstance(snapshot, Mapping):
        _logger.debug("Ignoring non-object snapshot of type %s", type(snapshot).__name__)
        return []

    items: list[TodoItem] = []
    seen: set[str] = set()
    for key, record in snapshot.items():
        try:
            item = TodoItem.from_record(record, key=str(key))
        except MalformedSnapshotError:
            _logger.debug("Skipping malformed record key=%s", key, exc_info=True)
            continue
        if item.id in seen:
            _logger.debug("Skipping duplicate item id=%s key=%s", item.id, key)
            continue
        seen.add(item.id)
        items.append(item)
    return items


def build_load_action(snapshot: Mapping[str, Any] | None) -> LoadItems:
    """Build the full-replace action for a snapshot."""
    return LoadItems(items=tuple(items_from_snapshot(snapshot)))
