# src/logging/context.py
"""Contextual logging support: attach the job name and lifecycle phase to records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

_job: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "phase", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    job: str | None = None
    phase: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(job=_job.get(), phase=_phase.get())


def set_job_context(job: str, phase: str | None = None) -> None:
    """Set job-level context (called when a lifecycle operation begins)."""
    _job.set(job)
    _phase.set(phase)


def set_phase_context(phase: str | None) -> None:
    """Set the lifecycle phase (save, start, refresh, ...)."""
    _phase.set(phase)


def clear_context() -> None:
    """Reset all context variables."""
    _job.set(None)
    _phase.set(None)


@contextmanager
def job_context(job: str, phase: str | None = None) -> Iterator[None]:
    """Scope job/phase context to a block, restoring the previous values."""
    job_token = _job.set(job)
    phase_token = _phase.set(phase)
    try:
        yield
    finally:
        _phase.reset(phase_token)
        _job.reset(job_token)
