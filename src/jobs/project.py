# src/jobs/project.py
"""Project: the directory that owns reconstruction jobs."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from reconjob.config.settings import WorkerConfig
from reconjob.jobs.job import Job
from reconjob.storage import layout
from reconjob.worker.runner import WorkerRunner

logger = logging.getLogger(__name__)


class Project:
    """A project directory; jobs live under ``reconstructions/``."""

    def __init__(
        self,
        path: str | Path,
        worker: WorkerConfig | None = None,
        runner: WorkerRunner | None = None,
    ) -> None:
        self._path = Path(path).expanduser()
        self._worker = worker
        self._runner = runner

    def __repr__(self) -> str:
        return f"Project({str(self._path)!r})"

    @property
    def path(self) -> Path:
        return self._path

    @property
    def reconstructions_dir(self) -> Path:
        return layout.reconstructions_dir(self._path)

    def create_job(self, timestamp: datetime | None = None) -> Job:
        """New unsaved job with the default template; nothing is written yet."""
        return Job(self._path, worker=self._worker, runner=self._runner, timestamp=timestamp)

    def jobs(self) -> list[Job]:
        """Load every job stored in the project, oldest first.

        Directories without a readable descriptor are skipped.
        """
        root = self.reconstructions_dir
        if not root.is_dir():
            return []
        jobs: list[Job] = []
        for job_path in sorted(p for p in root.iterdir() if p.is_dir()):
            if not layout.descriptor_path(job_path).is_file():
                logger.debug("Skipping %s: no descriptor", job_path)
                continue
            job = Job.open(job_path, worker=self._worker, runner=self._runner)
            if job is None:
                logger.warning("Skipping %s: unreadable descriptor", job_path)
                continue
            jobs.append(job)
        return jobs
