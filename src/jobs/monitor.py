# src/jobs/monitor.py
"""Periodic status polling for a set of jobs."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from reconjob.jobs.job import Job

logger = logging.getLogger(__name__)


class JobMonitor:
    """Refresh every started job at a fixed interval until stopped.

    Each job serializes its own status checks, so a slow status worker
    only delays that job's next report.
    """

    def __init__(self, jobs: Iterable[Job], interval: float = 5.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._jobs = list(jobs)
        self._interval = interval
        self._stop = asyncio.Event()
        self._cycles = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def jobs(self) -> list[Job]:
        return self._jobs

    @property
    def cycles(self) -> int:
        return self._cycles

    def add(self, job: Job) -> None:
        if job not in self._jobs:
            self._jobs.append(job)

    def stop(self) -> None:
        self._stop.set()

    async def refresh_all(self) -> None:
        """One polling cycle: refresh all jobs and wait for their reports."""
        tasks = [task for job in self._jobs if (task := job.refresh()) is not None]
        if tasks:
            await asyncio.gather(*tasks)
        self._cycles += 1

    async def run(self, max_cycles: int | None = None) -> None:
        """Poll until stop() is called or *max_cycles* cycles have run."""
        logger.info("Monitoring %d job(s) every %.1fs", len(self._jobs), self._interval)
        while not self._stop.is_set():
            await self.refresh_all()
            if max_cycles is not None and self._cycles >= max_cycles:
                break
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue
