# src/core/models.py
"""Shared Pydantic domain models: Attribute, Resource and status codes.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from reconjob.core.locations import to_local_file

# === STATUS CODES ===
# Worker-reported codes are opaque; only these two belong to the controller.

STATUS_NOT_STARTED = -1
STATUS_ERROR = 4


# === ATTRIBUTES ===


class AttributeKind(IntEnum):
    """Editor kind of an attribute; also decides the accepted value type."""

    TEXT = 0
    NUMERIC = 1
    COMBO = 2
    PAIR_SELECTOR = 3


def coerce_value(kind: AttributeKind, value: Any) -> Any:
    """Return *value* normalized for *kind*, or raise ValueError.

    NUMERIC accepts int/float (never bool), TEXT and COMBO accept str,
    PAIR_SELECTOR accepts a two-item sequence of str (stored as a list).
    """
    if kind == AttributeKind.NUMERIC:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"numeric attribute expects a number, got {value!r}")
        return value
    if kind in (AttributeKind.TEXT, AttributeKind.COMBO):
        if not isinstance(value, str):
            raise ValueError(f"{kind.name.lower()} attribute expects a string, got {value!r}")
        return value
    if kind == AttributeKind.PAIR_SELECTOR:
        if (
            not isinstance(value, (list, tuple))
            or len(value) != 2
            or not all(isinstance(v, str) for v in value)
        ):
            raise ValueError(f"pair attribute expects two strings, got {value!r}")
        return list(value)
    raise ValueError(f"unknown attribute kind: {kind!r}")


class Attribute(BaseModel):
    """A single typed, named parameter of a pipeline step."""

    key: str
    name: str = ""
    kind: AttributeKind
    value: Any = None
    options: list[str] = Field(default_factory=list)
    minimum: float | None = None
    maximum: float | None = None
    step: float | None = None

    @model_validator(mode="after")
    def validate_value_kind(self) -> Attribute:
        self.value = coerce_value(self.kind, self.value)
        return self

    def accepts(self, value: Any) -> bool:
        """Whether *value* has the runtime type this attribute's kind requires."""
        try:
            coerce_value(self.kind, value)
        except ValueError:
            return False
        return True

    def assign(self, value: Any) -> bool:
        """Set the value; returns True if it changed.

        Raises:
            ValueError: If the value does not match the attribute kind.
        """
        value = coerce_value(self.kind, value)
        if value == self.value:
            return False
        self.value = value
        return True


# === RESOURCES ===


class Resource(BaseModel):
    """Reference to one input file (an image) by local location."""

    location: str

    @field_validator("location", mode="before")
    @classmethod
    def normalize_location(cls, v: Any) -> Any:
        if isinstance(v, (str, Path)):
            return to_local_file(v)
        return v
