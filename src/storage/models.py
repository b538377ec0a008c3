# src/storage/models.py
"""Descriptor schema: the content of job.json."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class DescriptorPaths(BaseModel):
    """Convenience paths computed on write for the worker; never read back."""

    build: str
    match: str


class JobDescriptor(BaseModel):
    """Persisted (non-transient) job state.

    Every field is optional on read so partial or older descriptors still
    load. Metadata and per-step entries are typed loosely: a retired step or
    a mistyped value is dropped by the Job when applied, not here. Status
    and completion are never part of it.
    """

    model_config = ConfigDict(extra="ignore")

    date: Any = None
    user: Any = None
    name: Any = None
    paths: DescriptorPaths | None = None
    resources: list[str] = Field(default_factory=list)
    steps: dict[str, Any] = Field(default_factory=dict)

    @field_validator("paths", mode="wrap")
    @classmethod
    def drop_malformed_paths(cls, v: Any, handler: Any) -> DescriptorPaths | None:
        # Recomputed on write; an unusable value is discarded.
        try:
            return handler(v)
        except ValidationError:
            return None
