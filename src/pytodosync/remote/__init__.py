"""Remote list store implementations."""

from pytodosync.remote.base import RemoteListStore, SnapshotCallback, Subscription
from pytodosync.remote.firebase import FirebaseListStore
from pytodosync.remote.memory import InMemoryListStore

__all__ = [
    "FirebaseListStore",
    "InMemoryListStore",
    "RemoteListStore",
    "SnapshotCallback",
    "Subscription",
]
