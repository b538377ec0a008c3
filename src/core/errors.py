# src/core/errors.py
"""Exception taxonomy for descriptor I/O and worker execution.

Lower layers (storage, worker) raise these; the Job controller catches them
at its boundary and turns them into boolean results or status codes.
"""

from __future__ import annotations


class ReconJobError(Exception):
    """Base class for all reconjob errors."""


# === Descriptor ===


class DescriptorError(ReconJobError):
    """The job descriptor could not be read, parsed or written."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


# === Worker processes ===


class WorkerError(ReconJobError):
    """An external worker program could not complete."""

    def __init__(self, command: object, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"{reason} ({command})")


class WorkerLaunchError(WorkerError):
    """The worker program is missing or not executable."""


class WorkerTimeoutError(WorkerError):
    """The worker program exceeded its allotted time and was killed."""


# === Status reports ===


class StatusReportError(ReconJobError):
    """The status worker's stdout is not a usable report."""


class StatusParseError(StatusReportError):
    """stdout is not a JSON object."""


class StatusFieldsError(StatusReportError):
    """The JSON object lacks `completion`/`status` or carries wrong types."""
