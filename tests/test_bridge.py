from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pytodosync.bridge import SyncBridge
from pytodosync.exceptions import AuthorizationDeniedError, RemoteUnavailableError
from pytodosync.models.item import TodoItem
from pytodosync.remote.base import SnapshotCallback
from pytodosync.state.actions import Login
from pytodosync.state.store import AppState, StateStore


@dataclass
class _Handle:
    remote: FakeRemote
    callback: SnapshotCallback
    closed: bool = False

    def close(self) -> None:
        self.closed = True
        self.remote.subscribers.remove(self.callback)


@dataclass
class FakeRemote:
    records: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    subscribers: list[SnapshotCallback] = field(default_factory=list)
    subscribe_calls: int = 0
    add_gate: asyncio.Event | None = None
    add_error: Exception | None = None
    query_error: Exception | None = None
    _next_key: int = 0

    def subscribe_all(self, on_snapshot: SnapshotCallback) -> _Handle:
        self.subscribe_calls += 1
        self.subscribers.append(on_snapshot)
        return _Handle(self, on_snapshot)

    def emit(self, snapshot: Mapping[str, Any] | None) -> None:
        for callback in list(self.subscribers):
            callback(snapshot)

    async def add(self, record: Mapping[str, Any]) -> str:
        self.calls.append(("add", dict(record)))
        if self.add_gate is not None:
            await self.add_gate.wait()
        if self.add_error is not None:
            raise self.add_error
        self._next_key += 1
        key = f"-K{self._next_key}"
        self.records[key] = dict(record)
        return key

    async def query_by_field(self, field_name: str, value: Any) -> list[str]:
        self.calls.append(("query", field_name, value))
        if self.query_error is not None:
            raise self.query_error
        return [key for key, record in self.records.items() if record.get(field_name) == value]

    async def remove_by_key(self, key: str) -> None:
        self.calls.append(("remove", key))
        self.records.pop(key, None)


def _record(item_id: str, owner: str = "u1", text: str = "a", checked: bool = False) -> dict[str, Any]:
    return {"id": item_id, "ownerId": owner, "text": text, "checked": checked}


def _make(
    remote: FakeRemote,
    initial: AppState | None = None,
    errors: list[tuple[str, BaseException]] | None = None,
) -> tuple[SyncBridge, StateStore]:
    store = StateStore(initial)
    bridge = SyncBridge(
        remote,
        dispatch=store.dispatch,
        get_state=lambda: store.state,
        on_remote_error=(lambda op, exc: errors.append((op, exc))) if errors is not None else None,
    )
    return bridge, store


# ------------------------------------------------------------------
# Subscription
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_start_subscribes_once_and_loads_snapshots_in_order() -> None:
    remote = FakeRemote()
    bridge, store = _make(remote)

    bridge.start()
    bridge.start()
    assert remote.subscribe_calls == 1
    assert bridge.is_started

    remote.emit({"-K1": _record("1"), "-K2": _record("2")})
    assert [item.id for item in store.state.items] == ["1", "2"]

    remote.emit({"-K2": _record("2", text="changed")})
    assert [(item.id, item.text) for item in store.state.items] == [("2", "changed")]

    remote.emit(None)
    assert store.state.items == ()


@dataclass
class HandlelessRemote(FakeRemote):
    def subscribe_all(self, on_snapshot: SnapshotCallback) -> None:  # type: ignore[override]
        self.subscribe_calls += 1
        self.subscribers.append(on_snapshot)
        return None


@pytest.mark.asyncio
async def test_start_is_idempotent_when_remote_returns_no_handle() -> None:
    remote = HandlelessRemote()
    bridge, store = _make(remote)

    bridge.start()
    bridge.start()

    assert remote.subscribe_calls == 1
    assert bridge.is_started
    remote.emit({"-K1": _record("1")})
    assert [item.id for item in store.state.items] == ["1"]

    bridge.close()
    assert not bridge.is_started


@pytest.mark.asyncio
async def test_malformed_records_do_not_drop_snapshot() -> None:
    remote = FakeRemote()
    bridge, store = _make(remote)
    bridge.start()

    remote.emit({"-K1": {"id": "bad"}, "-K2": _record("2")})

    assert [item.id for item in store.state.items] == ["2"]


@pytest.mark.asyncio
async def test_close_releases_subscription() -> None:
    remote = FakeRemote()
    bridge, _store = _make(remote)
    bridge.start()

    bridge.close()

    assert remote.subscribers == []
    assert not bridge.is_started


# ------------------------------------------------------------------
# Insert
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_insert_is_visible_before_remote_add_completes() -> None:
    remote = FakeRemote(add_gate=asyncio.Event())
    bridge, store = _make(remote)
    item = TodoItem(id="2", owner_id="u1", text="b", checked=False)

    bridge.insert(item)

    assert store.state.items == (item,)
    assert remote.records == {}
    assert bridge.pending_writes == 1

    assert remote.add_gate is not None
    remote.add_gate.set()
    await bridge.wait_idle()

    assert list(remote.records.values()) == [_record("2", text="b")]
    assert bridge.pending_writes == 0


@pytest.mark.asyncio
async def test_insert_duplicate_id_skips_remote_write() -> None:
    remote = FakeRemote()
    item = TodoItem(id="1", owner_id="u1", text="a", checked=False)
    bridge, store = _make(remote, AppState(items=(item,)))

    bridge.insert(item.model_copy(update={"text": "other"}))
    await bridge.wait_idle()

    assert store.state.items == (item,)
    assert remote.calls == []


@pytest.mark.asyncio
async def test_snapshot_supersedes_pending_optimistic_insert() -> None:
    remote = FakeRemote(add_gate=asyncio.Event())
    bridge, store = _make(remote)
    bridge.start()
    remote.emit({"-K0": _record("1")})

    bridge.insert(TodoItem(id="2", owner_id="u1", text="b", checked=False))
    assert [item.id for item in store.state.items] == ["1", "2"]

    # A change by another client lands before our add does.
    remote.emit({"-K0": _record("1"), "-X9": _record("3", owner="u2")})
    assert [item.id for item in store.state.items] == ["1", "3"]

    assert remote.add_gate is not None
    remote.add_gate.set()
    await bridge.wait_idle()
    remote.emit(remote.records | {"-X9": _record("3", owner="u2")})
    assert sorted(item.id for item in store.state.items) == ["2", "3"]


@pytest.mark.asyncio
async def test_failed_add_is_logged_and_reported_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    errors: list[tuple[str, BaseException]] = []
    remote = FakeRemote(add_error=RemoteUnavailableError("offline"))
    bridge, store = _make(remote, errors=errors)

    bridge.insert(TodoItem(id="2", owner_id="u1", text="b", checked=False))
    await bridge.wait_idle()

    # Optimistic item stays until the next snapshot reconciles it away.
    assert [item.id for item in store.state.items] == ["2"]
    assert len(errors) == 1
    assert errors[0][0] == "add id=2"
    assert isinstance(errors[0][1], RemoteUnavailableError)
    assert "Remote add id=2 failed" in caplog.text


# ------------------------------------------------------------------
# Remove
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_remove_denied_without_session_then_allowed_after_login() -> None:
    item = TodoItem(id="1", owner_id="u1", text="a", checked=False)
    remote = FakeRemote(records={"-K1": _record("1"), "-K2": _record("1"), "-K3": _record("9")})
    bridge, store = _make(remote, AppState(items=(item,)))

    with pytest.raises(AuthorizationDeniedError) as excinfo:
        bridge.remove("1", "u1")
    assert str(excinfo.value) == "You can only delete your own todo items."
    assert excinfo.value.requested_by is None
    assert store.state.items == (item,)
    await bridge.wait_idle()
    assert remote.calls == []

    store.dispatch(Login(session_id="u1"))
    bridge.remove("1", "u1")

    assert store.state.items == ()
    await bridge.wait_idle()
    assert remote.calls == [("query", "id", "1"), ("remove", "-K1"), ("remove", "-K2")]
    assert list(remote.records) == ["-K3"]


@pytest.mark.asyncio
async def test_remove_denied_for_other_session() -> None:
    item = TodoItem(id="1", owner_id="u1", text="a", checked=False)
    remote = FakeRemote(records={"-K1": _record("1")})
    bridge, store = _make(remote, AppState(items=(item,)))
    store.dispatch(Login(session_id="u2"))

    with pytest.raises(AuthorizationDeniedError) as excinfo:
        bridge.remove("1", "u1")

    assert excinfo.value.requested_by == "u2"
    assert excinfo.value.owner_id == "u1"
    assert store.state.items == (item,)
    assert remote.calls == []


@pytest.mark.asyncio
async def test_local_remove_applies_before_remote_delete() -> None:
    item = TodoItem(id="1", owner_id="u1", text="a", checked=False)
    remote = FakeRemote(records={"-K1": _record("1")})
    bridge, store = _make(remote, AppState(items=(item,)))
    store.dispatch(Login(session_id="u1"))

    bridge.remove("1", "u1")

    assert store.state.items == ()
    assert "-K1" in remote.records
    await bridge.wait_idle()
    assert remote.records == {}


@pytest.mark.asyncio
async def test_remove_of_unknown_id_is_harmless() -> None:
    remote = FakeRemote()
    bridge, store = _make(remote)
    store.dispatch(Login(session_id="u1"))

    bridge.remove("missing", "u1")
    await bridge.wait_idle()

    assert store.state.items == ()
    assert remote.calls == [("query", "id", "missing")]


@pytest.mark.asyncio
async def test_failed_remote_remove_keeps_local_removal() -> None:
    errors: list[tuple[str, BaseException]] = []
    item = TodoItem(id="1", owner_id="u1", text="a", checked=False)
    remote = FakeRemote(query_error=RemoteUnavailableError("offline"))
    bridge, store = _make(remote, AppState(items=(item,)), errors=errors)
    store.dispatch(Login(session_id="u1"))

    bridge.remove("1", "u1")
    await bridge.wait_idle()

    assert store.state.items == ()
    assert [op for op, _exc in errors] == ["remove id=1"]


# ------------------------------------------------------------------
# Edit mode
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_check_can_edit() -> None:
    bridge, store = _make(FakeRemote())

    with pytest.raises(AuthorizationDeniedError, match="edit your own"):
        bridge.check_can_edit("u1")

    store.dispatch(Login(session_id="u1"))
    bridge.check_can_edit("u1")

    with pytest.raises(AuthorizationDeniedError):
        bridge.check_can_edit("u2")
