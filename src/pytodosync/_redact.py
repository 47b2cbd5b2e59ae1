"""Masking of credentials in request parameters before they are logged."""

from __future__ import annotations

from collections.abc import Mapping

# Query parameters the realtime database accepts as credentials.
_CREDENTIAL_PARAMS: frozenset[str] = frozenset({"auth", "access_token"})


def redact_params(params: Mapping[str, str]) -> dict[str, str]:
    """Return *params* with credential values replaced by ``<redacted>``."""
    return {key: "<redacted>" if key in _CREDENTIAL_PARAMS else value for key, value in params.items()}
