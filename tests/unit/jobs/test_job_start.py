# tests/unit/jobs/test_job_start.py
"""Tests for jobs/job.py: start orchestration and rollback."""

from __future__ import annotations

import pytest

from reconjob.core.errors import WorkerLaunchError, WorkerTimeoutError
from reconjob.core.models import STATUS_ERROR, STATUS_NOT_STARTED


class TestStartable:
    def test_no_resources(self, job, caplog):
        with caplog.at_level("ERROR"):
            assert not job.is_startable()
        assert "insufficient number of sources" in caplog.text

    def test_needs_two_resources(self, job, images, caplog):
        job.add_resource(images[0])
        with caplog.at_level("ERROR"):
            assert not job.is_startable()
        assert "insufficient number of sources" in caplog.text

    def test_two_resources_enough(self, startable_job):
        assert startable_job.is_startable()


class TestStart:
    @pytest.mark.asyncio
    async def test_success(self, startable_job, fake_runner, worker_config):
        fake_runner.queue_exit(0)
        fake_runner.queue_status(0.25, 1)

        assert await startable_job.start() is True
        await startable_job.wait_refreshed()

        assert startable_job.is_started()
        assert startable_job.build_path.is_dir()
        assert startable_job.status == 1
        assert startable_job.completion == 0.25

        start_call, status_call = fake_runner.calls
        assert start_call == (
            worker_config.start_command,
            startable_job.descriptor_path.resolve(),
            worker_config.start_timeout,
        )
        assert status_call[0] == worker_config.status_command
        assert status_call[1].is_absolute()

    @pytest.mark.asyncio
    async def test_no_resources(self, job, fake_runner):
        assert await job.start() is False
        assert job.is_stored_on_disk()
        assert not job.build_path.exists()
        assert not job.is_started()
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_too_few_resources(self, job, images, fake_runner):
        job.add_resource(images[0])
        assert await job.start() is False
        assert job.is_stored_on_disk()
        assert not job.build_path.exists()
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_non_zero_exit_rolls_back(self, startable_job, fake_runner, caplog):
        fake_runner.queue_exit(2, stderr="no GPU found")
        with caplog.at_level("ERROR"):
            assert await startable_job.start() is False
        assert not startable_job.build_path.exists()
        assert not startable_job.is_started()
        assert startable_job.is_stored_on_disk()
        assert "no GPU found" in caplog.text
        assert len(fake_runner.calls) == 1

    @pytest.mark.asyncio
    async def test_crash_rolls_back(self, startable_job, fake_runner):
        fake_runner.queue_exit(-11)
        assert await startable_job.start() is False
        assert not startable_job.build_path.exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            WorkerLaunchError("job_start.py", "failed to launch: No such file or directory"),
            WorkerTimeoutError("job_start.py", "no exit after 30.0s, killed"),
        ],
    )
    async def test_worker_failure_rolls_back(self, startable_job, fake_runner, error):
        fake_runner.queue(error)
        assert await startable_job.start() is False
        assert not startable_job.build_path.exists()
        assert startable_job.status == STATUS_NOT_STARTED

    @pytest.mark.asyncio
    async def test_already_started(self, started_job, fake_runner):
        assert await started_job.start() is False
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_save_failure_aborts(self, startable_job, fake_runner, monkeypatch):
        monkeypatch.setattr(startable_job, "save", lambda: False)
        assert await startable_job.start() is False
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_descriptor_frozen_after_start(self, startable_job, fake_runner):
        fake_runner.queue_exit(0)
        fake_runner.queue_status(0.0, 1)
        await startable_job.start()
        await startable_job.wait_refreshed()
        before = startable_job.descriptor_path.read_text(encoding="utf-8")

        startable_job.set_attribute("meshing", "scale", 9)
        assert startable_job.descriptor_path.read_text(encoding="utf-8") == before

    @pytest.mark.asyncio
    async def test_status_failure_after_start(self, startable_job, fake_runner):
        fake_runner.queue_exit(0)
        fake_runner.queue_exit(1, stderr="boom")
        assert await startable_job.start() is True
        await startable_job.wait_refreshed()
        assert startable_job.status == STATUS_ERROR
