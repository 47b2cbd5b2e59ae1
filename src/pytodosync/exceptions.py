"""Custom exception hierarchy for pytodosync."""

from __future__ import annotations


class TodoSyncError(Exception):
    """Base exception for all pytodosync errors."""


class TodoSyncConfigError(TodoSyncError):
    """Invalid or missing configuration."""


class AuthorizationDeniedError(TodoSyncError):
    """Remove/edit attempted by a session that does not own the item.

    Also raised when no session is active at all.  The message is meant
    to be shown to the user as-is.
    """

    def __init__(
        self,
        message: str,
        *,
        item_id: str | None = None,
        owner_id: str | None = None,
        requested_by: str | None = None,
    ) -> None:
        self.item_id = item_id
        self.owner_id = owner_id
        self.requested_by = requested_by
        super().__init__(message)


class RemoteUnavailableError(TodoSyncError):
    """Remote store failure (network, non-2xx, invalid JSON, stream cancelled)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MalformedSnapshotError(TodoSyncError):
    """A remote record is missing required fields or has the wrong shape.

    The snapshot flattener catches this per record and skips the record,
    so a single bad entry never drops the whole snapshot.
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)
