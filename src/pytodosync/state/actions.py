"""Reducer actions.

Every change to the local list view is expressed as one of these
actions.  Only the state/store layer is allowed to apply them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pytodosync.models.item import TodoItem


class ActionType(StrEnum):
    LOAD_ITEMS = "load_items"
    LOGIN = "login"
    LOGOUT = "logout"
    INSERT = "insert"
    REMOVE = "remove"
    TOGGLE = "toggle"
    EDIT = "edit"


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class LoadItems(_Action):
    """Replace the whole item list with a remote snapshot."""

    type: Literal[ActionType.LOAD_ITEMS] = ActionType.LOAD_ITEMS
    items: tuple[TodoItem, ...] = ()


class Login(_Action):
    type: Literal[ActionType.LOGIN] = ActionType.LOGIN
    session_id: str = Field(..., min_length=1)


class Logout(_Action):
    type: Literal[ActionType.LOGOUT] = ActionType.LOGOUT


class Insert(_Action):
    """Append a new item (optimistic; the remote write runs separately)."""

    type: Literal[ActionType.INSERT] = ActionType.INSERT
    item: TodoItem


class Remove(_Action):
    type: Literal[ActionType.REMOVE] = ActionType.REMOVE
    id: str


class Toggle(_Action):
    type: Literal[ActionType.TOGGLE] = ActionType.TOGGLE
    id: str


class Edit(_Action):
    type: Literal[ActionType.EDIT] = ActionType.EDIT
    id: str
    text: str


Action = LoadItems | Login | Logout | Insert | Remove | Toggle | Edit
