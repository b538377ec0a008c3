# src/jobs/binding.py
"""Contract of the presentation-layer collection a Job reports into.

The collection owns its rows; a Job only keeps a non-owning reference and
the row index, and pushes transient state (status, completion, thumbnail)
through ``set_data``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol, runtime_checkable


class JobRole(str, Enum):
    """Which piece of transient job state an update carries."""

    STATUS = "status"
    COMPLETION = "completion"
    THUMBNAIL = "thumbnail"


@runtime_checkable
class JobModel(Protocol):
    """Anything that can receive per-row job updates."""

    def set_data(self, index: Any, value: Any, role: JobRole) -> bool:
        ...
