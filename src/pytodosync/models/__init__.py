"""Data models for remote list records."""

from pytodosync.models._base import TodoBaseModel
from pytodosync.models.item import TodoItem, new_item_id

__all__ = [
    "TodoBaseModel",
    "TodoItem",
    "new_item_id",
]
