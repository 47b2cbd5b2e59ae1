from __future__ import annotations

import pytest

from pytodosync.config import DEFAULT_REMOVE_DENIED_MESSAGE, TodoSyncConfig
from pytodosync.exceptions import TodoSyncConfigError


def test_defaults() -> None:
    config = TodoSyncConfig()
    assert config.collection_path == "todolist"
    assert config.database_url == ""
    assert config.auth_token is None
    assert config.remove_denied_message == DEFAULT_REMOVE_DENIED_MESSAGE


def test_paths_are_normalized() -> None:
    config = TodoSyncConfig(database_url=" https://db.example.com/ ", collection_path="/lists/shared/")
    assert config.database_url == "https://db.example.com"
    assert config.collection_path == "lists/shared"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"collection_path": "/"},
        {"stream_retry_delay": -1.0},
        {"request_timeout": -0.5},
    ],
)
def test_invalid_values_rejected(kwargs: dict) -> None:
    with pytest.raises(TodoSyncConfigError):
        TodoSyncConfig(**kwargs)


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TODOSYNC_DATABASE_URL", "https://env.example.com")
    monkeypatch.setenv("TODOSYNC_COLLECTION_PATH", "groceries")
    monkeypatch.setenv("TODOSYNC_AUTH_TOKEN", "tok")
    monkeypatch.setenv("TODOSYNC_STREAM_RETRY_DELAY", "2.5")
    monkeypatch.setenv("TODOSYNC_REQUEST_TIMEOUT", "10")

    config = TodoSyncConfig.from_env()

    assert config.database_url == "https://env.example.com"
    assert config.collection_path == "groceries"
    assert config.auth_token == "tok"
    assert config.stream_retry_delay == 2.5
    assert config.request_timeout == 10.0


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TODOSYNC_DATABASE_URL", "https://env.example.com")
    monkeypatch.setenv("TODOSYNC_STREAM_RETRY_DELAY", "2.5")

    config = TodoSyncConfig.from_env(database_url="https://explicit.example.com", stream_retry_delay=0.0)

    assert config.database_url == "https://explicit.example.com"
    assert config.stream_retry_delay == 0.0


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TODOSYNC_REQUEST_TIMEOUT", "soon")
    with pytest.raises(TodoSyncConfigError):
        TodoSyncConfig.from_env()
