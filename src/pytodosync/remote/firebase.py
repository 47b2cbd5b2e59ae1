"""Realtime-database REST backend for the shared list.

One-shot calls (add, query, remove) use plain REST requests; the
full-collection subscription uses the database's server-sent event
stream and keeps a local mirror that is handed to the subscriber as a
complete snapshot after every change.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import aiohttp

from pytodosync._redact import redact_params
from pytodosync.config import TodoSyncConfig
from pytodosync.exceptions import RemoteUnavailableError, TodoSyncConfigError
from pytodosync.remote._sse import (
    AUTH_REVOKED_EVENT,
    CANCEL_EVENT,
    KEEP_ALIVE_EVENT,
    SseDecoder,
    apply_stream_event,
    decode_event_payload,
)
from pytodosync.remote.base import SnapshotCallback

_logger = logging.getLogger(__name__)

# 4xx statuses that can clear up on their own.
_TRANSIENT_CLIENT_STATUSES = frozenset({408, 429})


def _is_rejection(status: int) -> bool:
    """Whether *status* means the server refused the request outright."""
    return 400 <= status < 500 and status not in _TRANSIENT_CLIENT_STATUSES


class _StreamSubscription:
    """Handle owning the long-lived stream task."""

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def task(self) -> asyncio.Task[None]:
        return self._task

    def close(self) -> None:
        if not self._task.done():
            self._task.cancel()


class FirebaseListStore:
    """Remote list store backed by a realtime database over REST.

    Usage::

        async with aiohttp.ClientSession() as http:
            store = FirebaseListStore(config, http)
            key = await store.add(item.to_record())
    """

    def __init__(self, config: TodoSyncConfig, http_session: aiohttp.ClientSession) -> None:
        if not config.database_url:
            raise TodoSyncConfigError("database_url is required for FirebaseListStore")
        self._config = config
        self._http = http_session

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    def _collection_url(self, key: str | None = None) -> str:
        path = self._config.collection_path
        if key is not None:
            path = f"{path}/{quote(key, safe='')}"
        return f"{self._config.database_url}/{path}.json"

    def _params(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        params: dict[str, str] = dict(extra or {})
        if self._config.auth_token:
            params["auth"] = self._config.auth_token
        return params

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self._config.request_timeout or None)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        payload: Any = None,
    ) -> Any:
        """Send one REST request and return the decoded JSON body."""
        query = self._params(params)
        _logger.debug("%s %s params=%s", method, url, redact_params(query))

        try:
            async with self._http.request(
                method,
                url,
                params=query,
                json=payload,
                timeout=self._timeout(),
            ) as resp:
                text = await resp.text()
                if resp.status < 200 or resp.status >= 300:
                    raise RemoteUnavailableError(
                        f"HTTP {resp.status} from {method} {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except RemoteUnavailableError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise RemoteUnavailableError(
                f"{method} {url} failed: {exc}",
                endpoint=url,
            ) from exc

        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise RemoteUnavailableError(
                f"Invalid JSON from {method} {url}: {text[:200]}",
                endpoint=url,
            ) from exc

    # ------------------------------------------------------------------
    # RemoteListStore
    # ------------------------------------------------------------------

    async def add(self, record: Mapping[str, Any]) -> str:
        url = self._collection_url()
        body = await self._request("POST", url, payload=dict(record))
        key = body.get("name") if isinstance(body, dict) else None
        if not isinstance(key, str) or not key:
            raise RemoteUnavailableError(f"Add response missing generated key: {body!r}", endpoint=url)
        _logger.debug("Added record key=%s", key)
        return key

    async def query_by_field(self, field: str, value: Any) -> list[str]:
        url = self._collection_url()
        body = await self._request(
            "GET",
            url,
            params={"orderBy": json.dumps(field), "equalTo": json.dumps(value)},
        )
        if body is None:
            return []
        if not isinstance(body, dict):
            raise RemoteUnavailableError(f"Query response is not an object: {type(body).__name__}", endpoint=url)
        return [str(key) for key in body]

    async def remove_by_key(self, key: str) -> None:
        await self._request("DELETE", self._collection_url(key))
        _logger.debug("Removed record key=%s", key)

    def subscribe_all(self, on_snapshot: SnapshotCallback) -> _StreamSubscription:
        task = asyncio.get_running_loop().create_task(self._run_stream(on_snapshot))
        return _StreamSubscription(task)

    # ------------------------------------------------------------------
    # Snapshot stream
    # ------------------------------------------------------------------

    async def _run_stream(self, on_snapshot: SnapshotCallback) -> None:
        delay = self._config.stream_retry_delay
        while True:
            try:
                finished = await self._stream_once(on_snapshot)
            except RemoteUnavailableError as exc:
                if exc.status_code is not None and _is_rejection(exc.status_code):
                    _logger.warning("Snapshot stream rejected: %s; retrying in %.1fs", exc, delay)
                else:
                    _logger.debug("Snapshot stream failed; reconnecting in %.1fs", delay, exc_info=True)
            except (aiohttp.ClientError, TimeoutError):
                _logger.debug("Snapshot stream failed; reconnecting in %.1fs", delay, exc_info=True)
            else:
                if finished:
                    return
                _logger.debug("Snapshot stream closed by server; reconnecting in %.1fs", delay)
            await asyncio.sleep(delay)

    async def _stream_once(self, on_snapshot: SnapshotCallback) -> bool:
        """Consume one stream connection.

        Returns ``True`` when the server ended the subscription for good
        (``cancel`` or ``auth_revoked``), ``False`` when the connection
        simply closed.
        """
        url = self._collection_url()
        query = self._params()
        _logger.debug("STREAM %s params=%s", url, redact_params(query))

        decoder = SseDecoder()
        mirror: dict[str, Any] | None = None
        async with self._http.get(
            url,
            params=query,
            headers={"Accept": "text/event-stream"},
            timeout=aiohttp.ClientTimeout(total=None, sock_read=None),
        ) as resp:
            if resp.status != 200:
                text = await resp.text()
                raise RemoteUnavailableError(
                    f"HTTP {resp.status} opening stream {url}: {text[:200]}",
                    status_code=resp.status,
                    endpoint=url,
                )

            async for raw_line in resp.content:
                event = decoder.feed_line(raw_line.decode("utf-8", errors="replace").rstrip("\r\n"))
                if event is None or event.event == KEEP_ALIVE_EVENT:
                    continue
                if event.event in (CANCEL_EVENT, AUTH_REVOKED_EVENT):
                    _logger.warning("Snapshot stream ended by server: %s %s", event.event, event.data)
                    return True
                payload = decode_event_payload(event)
                updated = apply_stream_event(mirror, event.event, payload)
                if updated is mirror and event.event not in ("put", "patch"):
                    continue
                mirror = updated
                self._deliver(on_snapshot, mirror)
        return False

    @staticmethod
    def _deliver(on_snapshot: SnapshotCallback, mirror: dict[str, Any] | None) -> None:
        try:
            on_snapshot(copy.deepcopy(mirror))
        except Exception:
            _logger.debug("Snapshot subscriber failed", exc_info=True)
