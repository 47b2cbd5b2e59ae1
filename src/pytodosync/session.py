"""Session identity for ownership checks."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, field_validator


class Session(BaseModel):
    """Identity of the currently authenticated user.

    Parameters
    ----------
    session_id : str
        Opaque identifier issued by the session provider.  Items created
        while logged in carry this value as their ``owner_id``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    session_id: str

    @field_validator("session_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("session_id must be non-empty")
        return value


class SessionProvider(Protocol):
    """Source of session identifiers.

    Credential issuance lives outside this library; a provider only
    reports the identifier of a successful authentication, or ``None``.
    """

    async def current_session_id(self) -> str | None: ...


class StaticSessionProvider:
    """Provider that always returns a fixed identifier (or ``None``)."""

    def __init__(self, session_id: str | None = None) -> None:
        self._session_id = session_id

    async def current_session_id(self) -> str | None:
        return self._session_id
