"""Deterministic in-memory state store.

This is the only component allowed to change the local list view.
:func:`apply` is a pure reducer; :class:`StateStore` holds the current
:class:`AppState` and applies dispatched actions to it one at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from pytodosync.models.item import TodoItem
from pytodosync.session import Session
from pytodosync.state.actions import Action, Edit, Insert, LoadItems, Login, Logout, Remove, Toggle

_logger = logging.getLogger(__name__)


class AppState(BaseModel):
    """Complete local view: the active session and the ordered item list."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    session: Session | None = None
    items: tuple[TodoItem, ...] = ()

    def find(self, item_id: str) -> TodoItem | None:
        """Return the item with *item_id*, if present."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None


StateListener = Callable[[AppState, Action], None]


def apply(state: AppState, action: Action) -> AppState:
    """Return the state that results from applying *action* to *state*.

    Total and side-effect free: unknown actions, and toggle/edit/remove
    of ids that are not present, return *state* unchanged.
    """
    if isinstance(action, LoadItems):
        return state.model_copy(update={"items": tuple(action.items)})

    if isinstance(action, Login):
        return state.model_copy(update={"session": Session(session_id=action.session_id)})

    if isinstance(action, Logout):
        return state.model_copy(update={"session": None})

    if isinstance(action, Insert):
        if state.find(action.item.id) is not None:
            return state
        return state.model_copy(update={"items": (*state.items, action.item)})

    if isinstance(action, Remove):
        remaining = tuple(item for item in state.items if item.id != action.id)
        if len(remaining) == len(state.items):
            return state
        return state.model_copy(update={"items": remaining})

    if isinstance(action, Toggle):
        return _replace_item(state, action.id, lambda item: item.model_copy(update={"checked": not item.checked}))

    if isinstance(action, Edit):
        return _replace_item(state, action.id, lambda item: item.model_copy(update={"text": action.text}))

    return state


def _replace_item(state: AppState, item_id: str, fn: Callable[[TodoItem], TodoItem]) -> AppState:
    if state.find(item_id) is None:
        return state
    items = tuple(fn(item) if item.id == item_id else item for item in state.items)
    return state.model_copy(update={"items": items})


class StateStore:
    """Holder of the authoritative :class:`AppState`.

    Actions are applied synchronously in dispatch order; listeners are
    notified after each applied action with the new state.
    """

    def __init__(self, initial: AppState | None = None) -> None:
        self._state = initial if initial is not None else AppState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> AppState:
        """Apply *action* and notify listeners."""
        self._state = apply(self._state, action)
        _logger.debug("Applied %s (items=%d)", action.type, len(self._state.items))
        for listener in list(self._listeners):
            try:
                listener(self._state, action)
            except Exception:
                _logger.debug("State listener failed", exc_info=True)
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
