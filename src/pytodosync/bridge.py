"""Bridge between the remote list store and the local state store.

Owns:
- the single long-lived full-collection subscription
- translating snapshots into ``LoadItems`` actions
- optimistic local dispatch paired with detached remote writes

Optimistic writes are not reconciled against later snapshots.  A snapshot
that arrives while a remote add is still in flight replaces the list and
the optimistic item is transiently absent until the next snapshot that
includes it; likewise a removed item can briefly reappear.  The most
recently applied action wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Mapping
from typing import Any

from pytodosync.config import DEFAULT_EDIT_DENIED_MESSAGE, DEFAULT_REMOVE_DENIED_MESSAGE
from pytodosync.exceptions import AuthorizationDeniedError
from pytodosync.ingestion.snapshot import build_load_action
from pytodosync.models.item import TodoItem
from pytodosync.remote.base import RemoteListStore, Subscription
from pytodosync.state.actions import Action, Insert, Remove
from pytodosync.state.policy import can_mutate
from pytodosync.state.store import AppState

_logger = logging.getLogger(__name__)

RemoteErrorCallback = Callable[[str, BaseException], None]


class SyncBridge:
    """Keeps a :class:`~pytodosync.state.store.StateStore` in sync with a remote list.

    The bridge holds no list state of its own.  It reads the current state
    through *get_state* and proposes transitions through *dispatch*.
    """

    def __init__(
        self,
        remote: RemoteListStore,
        *,
        dispatch: Callable[[Action], Any],
        get_state: Callable[[], AppState],
        on_remote_error: RemoteErrorCallback | None = None,
        remove_denied_message: str = DEFAULT_REMOVE_DENIED_MESSAGE,
        edit_denied_message: str = DEFAULT_EDIT_DENIED_MESSAGE,
        id_field: str = "id",
    ) -> None:
        self._remote = remote
        self._dispatch = dispatch
        self._get_state = get_state
        self._on_remote_error = on_remote_error
        self._remove_denied_message = remove_denied_message
        self._edit_denied_message = edit_denied_message
        self._id_field = id_field
        self._started = False
        self._subscription: Subscription | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def pending_writes(self) -> int:
        """Number of remote calls still in flight."""
        return sum(1 for task in self._tasks if not task.done())

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Open the full-collection subscription (once)."""
        if self._started:
            _logger.debug("Subscription already open; start() ignored")
            return
        self._subscription = self._remote.subscribe_all(self._on_snapshot)
        self._started = True
        _logger.debug("Subscribed to remote collection")

    def _on_snapshot(self, snapshot: Mapping[str, Any] | None) -> None:
        action = build_load_action(snapshot)
        _logger.debug("Snapshot received items=%d", len(action.items))
        self._dispatch(action)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def insert(self, item: TodoItem) -> None:
        """Append *item* locally now and add it remotely in the background."""
        if self._get_state().find(item.id) is not None:
            _logger.debug("Insert of existing id=%s ignored", item.id)
            return
        self._dispatch(Insert(item=item))
        self._spawn(self._remote.add(item.to_record()), f"add id={item.id}")

    def remove(self, item_id: str, requested_by: str) -> None:
        """Remove *item_id* locally now and delete every matching remote record.

        Raises
        ------
        AuthorizationDeniedError
            If the current session is not *requested_by*.  Nothing is
            dispatched and no remote call is made.
        """
        session = self._get_state().session
        if not can_mutate(session, requested_by):
            _logger.debug("Remove of id=%s denied for owner=%s", item_id, requested_by)
            raise AuthorizationDeniedError(
                self._remove_denied_message,
                item_id=item_id,
                owner_id=requested_by,
                requested_by=session.session_id if session is not None else None,
            )
        self._spawn(self._remove_remote(item_id), f"remove id={item_id}")
        self._dispatch(Remove(id=item_id))

    def check_can_edit(self, owner_id: str) -> None:
        """Raise :class:`AuthorizationDeniedError` unless the session owns *owner_id*."""
        session = self._get_state().session
        if not can_mutate(session, owner_id):
            raise AuthorizationDeniedError(
                self._edit_denied_message,
                owner_id=owner_id,
                requested_by=session.session_id if session is not None else None,
            )

    async def _remove_remote(self, item_id: str) -> None:
        # The remote key is unrelated to the logical id, so look it up first.
        keys = await self._remote.query_by_field(self._id_field, item_id)
        _logger.debug("Removing id=%s remote keys=%s", item_id, keys)
        for key in keys:
            await self._remote.remove_by_key(key)

    # ------------------------------------------------------------------
    # Detached tasks
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        task.set_name(description)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        _logger.warning("Remote %s failed: %s", task.get_name(), exc, exc_info=exc)
        if self._on_remote_error is not None:
            try:
                self._on_remote_error(task.get_name(), exc)
            except Exception:
                _logger.debug("on_remote_error callback failed", exc_info=True)

    async def wait_idle(self) -> None:
        """Wait until every detached remote call has finished."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def close(self) -> None:
        """Close the subscription and cancel in-flight remote calls."""
        subscription = self._subscription
        self._subscription = None
        self._started = False
        if subscription is not None:
            subscription.close()
        for task in list(self._tasks):
            task.cancel()
