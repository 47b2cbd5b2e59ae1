"""Ownership policy for destructive and edit operations.

This module intentionally contains no state; it is consulted before any
remove or edit-mode transition is dispatched.  Toggle and insert are
not gated.
"""

from __future__ import annotations

from pytodosync.session import Session


def can_mutate(session: Session | None, owner_id: str) -> bool:
    """Whether *session* may remove or edit an item owned by *owner_id*.

    Anonymous use (``session is None``) is never allowed.
    """
    if session is None:
        return False
    return session.session_id == owner_id
