"""Server-sent events decoding and realtime-database mirror updates.

The realtime database streams ``put`` and ``patch`` events, each carrying
``{"path": ..., "data": ...}``.  The stream reader keeps a local mirror of
the collection and applies each event to it, so that a full snapshot can
be handed to subscribers after every change.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any

_logger = logging.getLogger(__name__)

KEEP_ALIVE_EVENT = "keep-alive"
CANCEL_EVENT = "cancel"
AUTH_REVOKED_EVENT = "auth_revoked"


@dataclass(frozen=True)
class SseEvent:
    """One decoded server-sent event."""

    event: str
    data: str


@dataclass
class SseDecoder:
    """Incremental line-oriented SSE decoder."""

    _event: str = ""
    _data: list[str] = field(default_factory=list)

    def feed_line(self, line: str) -> SseEvent | None:
        """Consume one line (without trailing newline).

        Returns the completed event when *line* is the blank line that
        terminates it, otherwise ``None``.
        """
        if not line:
            if not self._event and not self._data:
                return None
            event = SseEvent(event=self._event or "message", data="\n".join(self._data))
            self._event = ""
            self._data = []
            return event

        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None


def _split_path(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def _set_path(node: Any, segments: list[str], value: Any) -> Any:
    """Return a copy of *node* with *value* set at *segments*.

    ``None`` deletes; parents left empty by a delete are removed too.
    """
    if not segments:
        return copy.deepcopy(value)
    head, *rest = segments
    base: dict[str, Any] = dict(node) if isinstance(node, dict) else {}
    child = _set_path(base.get(head), rest, value)
    if child is None or child == {}:
        base.pop(head, None)
    else:
        base[head] = child
    return base or None


def apply_stream_event(mirror: dict[str, Any] | None, event: str, payload: Any) -> dict[str, Any] | None:
    """Apply a ``put`` or ``patch`` payload to the collection mirror.

    Unknown events and malformed payloads leave the mirror unchanged.
    """
    if not isinstance(payload, dict):
        _logger.debug("Ignoring %s event with non-object payload", event)
        return mirror

    path = payload.get("path", "/")
    if not isinstance(path, str):
        return mirror
    segments = _split_path(path)
    data = payload.get("data")

    if event == "put":
        result = _set_path(mirror, segments, data)
    elif event == "patch":
        if not isinstance(data, dict):
            return mirror
        result = mirror
        for sub_path, value in data.items():
            result = _set_path(result, segments + _split_path(str(sub_path)), value)
    else:
        return mirror

    if result is not None and not isinstance(result, dict):
        _logger.debug("Collection root is not an object after %s; treating as empty", event)
        return None
    return result


def decode_event_payload(event: SseEvent) -> Any:
    """JSON-decode the event data; ``None`` when it is empty or invalid."""
    if not event.data or event.data == "null":
        return None
    try:
        return json.loads(event.data)
    except json.JSONDecodeError:
        _logger.debug("Invalid JSON in %s event: %s", event.event, event.data[:200])
        return None
