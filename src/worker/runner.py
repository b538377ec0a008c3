# src/worker/runner.py
"""Launch external worker programs as asyncio subprocesses.

Each invocation passes exactly one argument, the absolute path of the job
descriptor, captures stdout/stderr and waits for exit within a timeout.
A program that outlives its timeout is killed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from reconjob.core.errors import WorkerLaunchError, WorkerTimeoutError
from reconjob.worker.models import ProcessResult

logger = logging.getLogger(__name__)


class WorkerRunner:
    """Runs worker programs; swap in a fake for tests."""

    async def run(
        self,
        command: Path,
        descriptor: Path,
        timeout: float | None = None,
    ) -> ProcessResult:
        """Run ``command <descriptor>`` and collect its output.

        Args:
            command: Worker executable.
            descriptor: Absolute path of job.json, the sole argument.
            timeout: Seconds to wait before killing the process (None = forever).

        Returns:
            ProcessResult with return code and decoded output.

        Raises:
            WorkerLaunchError: If the program cannot be executed.
            WorkerTimeoutError: If the program did not exit in time.
        """
        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                str(command),
                str(descriptor),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise WorkerLaunchError(command, f"failed to launch: {e.strerror or e}") from e

        logger.debug("Launched %s (pid %s) for %s", command, proc.pid, descriptor)
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise WorkerTimeoutError(command, f"no exit after {timeout}s, killed") from e

        return ProcessResult(
            command=str(command),
            returncode=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_seconds=time.monotonic() - start,
        )
