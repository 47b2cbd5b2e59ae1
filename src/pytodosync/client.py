"""High-level async client for the shared todo list."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pytodosync.bridge import RemoteErrorCallback, SyncBridge
from pytodosync.config import TodoSyncConfig
from pytodosync.exceptions import TodoSyncError
from pytodosync.models.item import TodoItem
from pytodosync.remote.base import RemoteListStore
from pytodosync.remote.firebase import FirebaseListStore
from pytodosync.session import Session, SessionProvider
from pytodosync.state.actions import Edit, Login, Logout, Toggle
from pytodosync.state.store import AppState, StateListener, StateStore

_logger = logging.getLogger(__name__)

#: Owner recorded on items inserted without an active session.
ANONYMOUS_OWNER = ""


class TodoSyncClient:
    """Async client keeping a local view of a shared todo list.

    Usage::

        async with TodoSyncClient(TodoSyncConfig.from_env()) as client:
            client.login("user-1")
            item = client.add_todo("buy milk")
            client.toggle(item.id)
            client.remove(item.id, item.owner_id)

    When *remote* is omitted the client talks to the realtime database
    named by ``config.database_url``.
    """

    def __init__(
        self,
        config: TodoSyncConfig,
        *,
        remote: RemoteListStore | None = None,
        store: StateStore | None = None,
        http_session: aiohttp.ClientSession | None = None,
        session_provider: SessionProvider | None = None,
        on_remote_error: RemoteErrorCallback | None = None,
    ) -> None:
        self._config = config
        self._remote = remote
        self._store = store if store is not None else StateStore()
        self._external_session = http_session is not None
        self._http_session = http_session
        self._session_provider = session_provider
        self._on_remote_error = on_remote_error
        self._bridge: SyncBridge | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TodoSyncClient:
        if self._remote is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._remote = FirebaseListStore(self._config, self._http_session)
        self._bridge = SyncBridge(
            self._remote,
            dispatch=self._store.dispatch,
            get_state=lambda: self._store.state,
            on_remote_error=self._on_remote_error,
            remove_denied_message=self._config.remove_denied_message,
            edit_denied_message=self._config.edit_denied_message,
        )
        self._bridge.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._bridge is not None:
            self._bridge.close()
            self._bridge = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_bridge(self) -> SyncBridge:
        if self._bridge is None:
            raise TodoSyncError("Client not initialized. Use 'async with TodoSyncClient(...) as client:'")
        return self._bridge

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def state(self) -> AppState:
        return self._store.state

    @property
    def items(self) -> tuple[TodoItem, ...]:
        return self._store.state.items

    @property
    def session(self) -> Session | None:
        return self._store.state.session

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns an unsubscribe callable."""
        return self._store.subscribe(listener)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, session_id: str) -> Session:
        """Make *session_id* the active session."""
        state = self._store.dispatch(Login(session_id=session_id))
        assert state.session is not None  # noqa: S101
        _logger.debug("Logged in session=%s", state.session.session_id)
        return state.session

    async def login_from_provider(self) -> Session | None:
        """Adopt the session reported by the configured provider.

        A provider reporting no session logs the client out.
        """
        if self._session_provider is None:
            raise TodoSyncError("No session provider configured")
        session_id = await self._session_provider.current_session_id()
        if session_id is None:
            self.logout()
            return None
        return self.login(session_id)

    def logout(self) -> None:
        self._store.dispatch(Logout())

    # ------------------------------------------------------------------
    # List intents
    # ------------------------------------------------------------------

    def insert(self, item: TodoItem) -> None:
        """Add *item* (shown immediately; written remotely in the background)."""
        self._require_bridge().insert(item)

    def add_todo(self, text: str) -> TodoItem:
        """Create and insert a new item owned by the current session."""
        session = self.session
        owner = session.session_id if session is not None else ANONYMOUS_OWNER
        item = TodoItem.create(text, owner)
        self.insert(item)
        return item

    def remove(self, item_id: str, requested_by: str) -> None:
        """Remove an item owned by *requested_by*.

        Raises :class:`~pytodosync.exceptions.AuthorizationDeniedError`
        when the active session is not *requested_by*.
        """
        self._require_bridge().remove(item_id, requested_by)

    def toggle(self, item_id: str) -> None:
        self._store.dispatch(Toggle(id=item_id))

    def edit(self, item_id: str, text: str) -> None:
        self._store.dispatch(Edit(id=item_id, text=text))

    def enter_edit_mode(self, item: TodoItem, requested_by: str) -> TodoItem:
        """Check that *requested_by* may edit *item* and return it for editing."""
        self._require_bridge().check_can_edit(requested_by)
        return item

    async def wait_idle(self) -> None:
        """Wait for in-flight remote writes."""
        await self._require_bridge().wait_idle()
