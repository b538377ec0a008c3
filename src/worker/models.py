# src/worker/models.py
"""Worker process results and the status report contract."""

from __future__ import annotations

import json

from pydantic import BaseModel, StrictFloat, StrictInt, ValidationError, field_validator

from reconjob.core.errors import StatusFieldsError, StatusParseError


class ProcessResult(BaseModel):
    """Outcome of one worker invocation."""

    command: str
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def normal_exit(self) -> bool:
        """Exited on its own with status 0."""
        return self.returncode == 0

    @property
    def signaled(self) -> bool:
        """Terminated by a signal (negative return code on POSIX)."""
        return self.returncode is not None and self.returncode < 0


class StatusReport(BaseModel):
    """Progress reported by the status worker on stdout.

    Extra keys are tolerated; ``completion`` (0-1) and ``status`` are required.
    An integral float status (``2.0``) is read as the integer code.
    """

    completion: StrictFloat | StrictInt
    status: StrictInt | StrictFloat

    @field_validator("status")
    @classmethod
    def integral_status(cls, v: int | float) -> int:
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError(f"status must be an integer, got {v}")
            return int(v)
        return v

    @classmethod
    def parse(cls, stdout: str) -> StatusReport:
        """Parse worker stdout.

        Raises:
            StatusParseError: stdout is not a JSON object.
            StatusFieldsError: ``completion``/``status`` missing or mistyped.
        """
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise StatusParseError(f"invalid response - parse error ({e.msg})") from e
        if not isinstance(data, dict):
            raise StatusParseError("invalid response - not a JSON object")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            missing = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise StatusFieldsError(
                f"invalid response - missing values ({', '.join(missing)})"
            ) from e
