#!/usr/bin/env python3
"""Watch a shared todo list and print every snapshot.

Connection settings come from ``TODOSYNC_*`` environment variables
(see :meth:`pytodosync.TodoSyncConfig.from_env`); command-line flags
override them.

Optionally adds one item before watching (``--add``), logged in as
``--session`` so the item is owned by that session.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pytodosync import AppState, TodoSyncClient, TodoSyncConfig, TodoSyncError  # noqa: E402
from pytodosync.state.actions import Action, LoadItems  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--database-url", help="Realtime database base URL")
    parser.add_argument("--collection", help="Collection path (default: todolist)")
    parser.add_argument("--session", help="Session id to log in with")
    parser.add_argument("--add", metavar="TEXT", help="Insert one item before watching")
    parser.add_argument("--duration", type=float, default=0.0, help="Seconds to watch (0 = until Ctrl-C)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def _print_state(state: AppState, action: Action) -> None:
    if not isinstance(action, LoadItems):
        return
    who = state.session.session_id if state.session is not None else "<anonymous>"
    print(f"--- snapshot ({len(state.items)} items, session={who})")
    for item in state.items:
        mark = "x" if item.checked else " "
        print(f"[{mark}] {item.text}  (id={item.id} owner={item.owner_id or '-'})")


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, str] = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.collection:
        overrides["collection_path"] = args.collection
    config = TodoSyncConfig.from_env(**overrides)
    if not config.database_url:
        print("No database URL (set TODOSYNC_DATABASE_URL or pass --database-url)", file=sys.stderr)
        return 2

    def _on_remote_error(operation: str, exc: BaseException) -> None:
        print(f"remote {operation} failed: {exc}", file=sys.stderr)

    async with TodoSyncClient(config, on_remote_error=_on_remote_error) as client:
        client.subscribe(_print_state)
        if args.session:
            client.login(args.session)
        if args.add:
            item = client.add_todo(args.add)
            print(f"added id={item.id}")
        if args.duration > 0:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()
        await client.wait_idle()
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 0
    except TodoSyncError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
