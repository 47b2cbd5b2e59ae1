"""pytodosync - Async client-side sync layer for a shared todo list."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pytodosync")
except PackageNotFoundError:
    __version__ = "0+local"
from pytodosync.bridge import SyncBridge
from pytodosync.client import TodoSyncClient
from pytodosync.config import TodoSyncConfig
from pytodosync.exceptions import (
    AuthorizationDeniedError,
    MalformedSnapshotError,
    RemoteUnavailableError,
    TodoSyncConfigError,
    TodoSyncError,
)
from pytodosync.models import TodoItem
from pytodosync.remote import FirebaseListStore, InMemoryListStore, RemoteListStore
from pytodosync.session import Session, SessionProvider, StaticSessionProvider
from pytodosync.state.actions import Edit, Insert, LoadItems, Login, Logout, Remove, Toggle
from pytodosync.state.policy import can_mutate
from pytodosync.state.store import AppState, StateStore, apply

__all__ = [
    "__version__",
    "AppState",
    "AuthorizationDeniedError",
    "Edit",
    "FirebaseListStore",
    "InMemoryListStore",
    "Insert",
    "LoadItems",
    "Login",
    "Logout",
    "MalformedSnapshotError",
    "RemoteListStore",
    "RemoteUnavailableError",
    "Remove",
    "Session",
    "SessionProvider",
    "StateStore",
    "StaticSessionProvider",
    "SyncBridge",
    "Toggle",
    "TodoItem",
    "TodoSyncClient",
    "TodoSyncConfig",
    "TodoSyncConfigError",
    "TodoSyncError",
    "apply",
    "can_mutate",
]
