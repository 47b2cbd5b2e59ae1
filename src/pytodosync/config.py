"""Client configuration for pytodosync."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pytodosync.exceptions import TodoSyncConfigError

DEFAULT_REMOVE_DENIED_MESSAGE = "You can only delete your own todo items."
DEFAULT_EDIT_DENIED_MESSAGE = "You can only edit your own todo items."


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise TodoSyncConfigError(f"{key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class TodoSyncConfig:
    """Client configuration.

    Parameters
    ----------
    database_url : str
        Base URL of the remote realtime database
        (e.g. ``"https://my-app-default-rtdb.firebaseio.com"``).
        Empty when only an in-memory store is used.
    collection_path : str
        Path of the shared list collection inside the database.
    auth_token : str or None
        Optional database auth token, sent as the ``auth`` query parameter.
    stream_retry_delay : float
        Seconds to wait before re-opening the snapshot stream after a
        transport failure.
    request_timeout : float
        Total timeout in seconds for one-shot REST calls (add, query,
        remove).  ``0`` disables the timeout.
    remove_denied_message : str
        User-visible message when a remove is rejected by ownership.
    edit_denied_message : str
        User-visible message when entering edit mode is rejected.
    """

    database_url: str = ""
    collection_path: str = "todolist"
    auth_token: str | None = None
    stream_retry_delay: float = 5.0
    request_timeout: float = 30.0
    remove_denied_message: str = DEFAULT_REMOVE_DENIED_MESSAGE
    edit_denied_message: str = DEFAULT_EDIT_DENIED_MESSAGE

    def __post_init__(self) -> None:
        path = self.collection_path.strip().strip("/")
        if not path:
            raise TodoSyncConfigError("collection_path must be non-empty")
        object.__setattr__(self, "collection_path", path)
        object.__setattr__(self, "database_url", self.database_url.strip().rstrip("/"))
        if self.stream_retry_delay < 0:
            raise TodoSyncConfigError("stream_retry_delay must be >= 0")
        if self.request_timeout < 0:
            raise TodoSyncConfigError("request_timeout must be >= 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> TodoSyncConfig:
        """Create configuration from environment variables.

        Reads ``TODOSYNC_DATABASE_URL``, ``TODOSYNC_COLLECTION_PATH``,
        ``TODOSYNC_AUTH_TOKEN``, ``TODOSYNC_STREAM_RETRY_DELAY`` and
        ``TODOSYNC_REQUEST_TIMEOUT``.  Explicit keyword arguments override
        environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "TODOSYNC_DATABASE_URL": "database_url",
            "TODOSYNC_COLLECTION_PATH": "collection_path",
            "TODOSYNC_AUTH_TOKEN": "auth_token",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric fields, handled separately
        retry = _env_float(env, "TODOSYNC_STREAM_RETRY_DELAY")
        if retry is not None and "stream_retry_delay" not in overrides:
            config_kwargs["stream_retry_delay"] = retry

        timeout = _env_float(env, "TODOSYNC_REQUEST_TIMEOUT")
        if timeout is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = timeout

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
