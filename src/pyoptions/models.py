"""Pydantic models for command records and load-time migrations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OptionEntry(BaseModel):
    """One record of a ``set_options`` command.

    ``reply`` marks entries whose caller flushes the hooks itself right
    after applying, so no debounced flush is scheduled for them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str | list[str] = Field(..., description="Dotted key or list of path segments")
    value: Any = None
    reply: bool = False

    @field_validator("key")
    @classmethod
    def _non_empty_key(cls, value: str | list[str]) -> str | list[str]:
        if isinstance(value, str):
            if not value.strip():
                raise ValueError("key must be non-empty")
            return value
        if not value or not all(segment for segment in value):
            raise ValueError("key must have at least one non-empty segment")
        return value


class MigrationRule(BaseModel):
    """Replace a stored value that still equals an old default.

    On load, if the stored value of ``key`` deep-equals ``legacy`` it is
    swapped for the current default, which the store then strips.  The
    rule stops matching once that has happened, so it never re-triggers.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    legacy: Any
