"""Todo item model."""

from __future__ import annotations

import secrets
from collections.abc import Mapping
from typing import Any

from pydantic import Field, ValidationError, field_validator

from pytodosync.exceptions import MalformedSnapshotError
from pytodosync.models._base import TodoBaseModel


def new_item_id() -> str:
    """Generate a random item id for locally created items."""
    return secrets.token_hex(8)


class TodoItem(TodoBaseModel):
    """One entry of the shared list.

    ``id`` and ``owner_id`` never change after creation; ``text`` and
    ``checked`` are replaced through :meth:`pydantic.BaseModel.model_copy`.
    """

    id: str = Field(..., min_length=1)
    owner_id: str
    text: str
    checked: bool

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_numeric_id(cls, value: Any) -> Any:
        # Older clients stored numeric counters as ids.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def create(cls, text: str, owner_id: str, *, item_id: str | None = None) -> TodoItem:
        """Build a new unchecked item with a generated id."""
        return cls(id=item_id or new_item_id(), owner_id=owner_id, text=text, checked=False)

    @classmethod
    def from_record(cls, record: Any, *, key: str | None = None) -> TodoItem:
        """Parse one remote record.

        When the record carries no ``id`` of its own, the remote ``key`` is
        used instead.

        Raises
        ------
        MalformedSnapshotError
            If *record* is not a mapping or lacks required fields.
        """
        if not isinstance(record, Mapping):
            raise MalformedSnapshotError(
                f"Record {key!r} is not an object: {type(record).__name__}",
                key=key,
            )
        data: dict[str, Any] = dict(record)
        if data.get("id") is None and key is not None:
            data["id"] = key
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise MalformedSnapshotError(f"Record {key!r} is malformed: {exc}", key=key) from exc
