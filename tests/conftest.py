# tests/conftest.py
"""Shared test fixtures for unit and integration tests.

Provides a fake worker runner, a recording presentation model, worker
script factories and ready-made jobs. All filesystem I/O goes to tmp_path.
"""

from __future__ import annotations

import asyncio
import json
import stat
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import pytest

from reconjob.config.settings import WorkerConfig
from reconjob.jobs.binding import JobRole
from reconjob.jobs.job import Job
from reconjob.worker.models import ProcessResult
from reconjob.worker.runner import WorkerRunner

JOB_TIMESTAMP = datetime(2026, 2, 7, 14, 0, 0)


class FakeRunner(WorkerRunner):
    """Worker runner returning queued outcomes instead of spawning processes.

    An outcome is a ProcessResult to return or an exception to raise. When
    ``gate`` is set, every call blocks on it before producing its outcome.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path, float | None]] = []
        self.outcomes: list[ProcessResult | Exception] = []
        self.default = ProcessResult(command="fake", returncode=0)
        self.gate: asyncio.Event | None = None

    def queue(self, *outcomes: ProcessResult | Exception) -> None:
        self.outcomes.extend(outcomes)

    def queue_exit(self, returncode: int | None = 0, stdout: str = "", stderr: str = "") -> None:
        self.queue(ProcessResult(command="fake", returncode=returncode, stdout=stdout, stderr=stderr))

    def queue_status(self, completion: float, status: int) -> None:
        self.queue_exit(stdout=json.dumps({"completion": completion, "status": status}))

    async def run(
        self,
        command: Path,
        descriptor: Path,
        timeout: float | None = None,
    ) -> ProcessResult:
        self.calls.append((Path(command), Path(descriptor), timeout))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingModel:
    """Presentation collection stand-in recording every pushed update."""

    def __init__(self) -> None:
        self.updates: list[tuple[Any, Any, JobRole]] = []

    def set_data(self, index: Any, value: Any, role: JobRole) -> bool:
        self.updates.append((index, value, role))
        return True

    def last(self, role: JobRole) -> Any:
        for _, value, r in reversed(self.updates):
            if r == role:
                return value
        raise LookupError(role)


# === FIXTURES: Worker ===


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def worker_config(tmp_path: Path) -> WorkerConfig:
    """Worker config pointing at (possibly nonexistent) scripts in tmp_path."""
    return WorkerConfig(
        start_command=tmp_path / "bin" / "job_start.py",
        status_command=tmp_path / "bin" / "job_status.py",
        start_timeout=5.0,
        status_timeout=5.0,
    )


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing an executable /bin/sh script into tmp_path/bin."""

    def _make(name: str, body: str) -> Path:
        path = tmp_path / "bin" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


# === FIXTURES: Jobs ===


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def job(project_dir: Path, worker_config: WorkerConfig, fake_runner: FakeRunner) -> Job:
    """Unsaved job with the default template and no resources."""
    return Job(project_dir, worker=worker_config, runner=fake_runner, timestamp=JOB_TIMESTAMP)


@pytest.fixture
def images(tmp_path: Path) -> list[Path]:
    """Three small fake image files."""
    folder = tmp_path / "images"
    folder.mkdir()
    paths = []
    for i in range(1, 4):
        p = folder / f"{i}.jpg"
        p.write_bytes(b"\xff\xd8\xff")
        paths.append(p)
    return paths


@pytest.fixture
def startable_job(job: Job, images: list[Path]) -> Job:
    """Saved job with two resources (auto-saved by add_resource)."""
    job.add_resource(images[0])
    job.add_resource(images[1])
    return job


@pytest.fixture
def started_job(startable_job: Job) -> Job:
    """Job that looks started on disk: job.json plus build/."""
    startable_job.build_path.mkdir(parents=True)
    assert startable_job.is_started()
    return startable_job


@pytest.fixture
def recording_model() -> RecordingModel:
    return RecordingModel()
