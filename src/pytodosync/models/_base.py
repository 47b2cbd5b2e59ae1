"""Base model for records stored in the remote list.

Every record model inherits from :class:`TodoBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase record keys map
  automatically to snake_case fields (``ownerId`` -> ``owner_id``).
* ``frozen=True`` so state transitions always build new instances.
* A ``model_validator(mode="before")`` that drops ``None`` values and
  surrounding whitespace on keys, so missing and null fields behave the
  same way.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class TodoBaseModel(BaseModel):
    """Base for remote record models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            cleaned[str(key).strip()] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_record_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return TodoBaseModel._clean_dict(values)

    def to_record(self) -> dict[str, Any]:
        """Dump to the camelCase mapping stored remotely."""
        return self.model_dump(by_alias=True)
