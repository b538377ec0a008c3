# tests/unit/worker/test_unit_runner.py
"""Tests for worker/runner.py: subprocess launch, capture and timeout."""

from __future__ import annotations

import pytest

from reconjob.core.errors import WorkerError, WorkerLaunchError, WorkerTimeoutError
from reconjob.worker.runner import WorkerRunner


class TestWorkerRunner:
    @pytest.mark.asyncio
    async def test_passes_descriptor_and_captures_output(self, make_script, tmp_path):
        script = make_script("echo.sh", 'echo "arg=$1"\necho "oops" >&2')
        descriptor = tmp_path / "job.json"
        result = await WorkerRunner().run(script, descriptor, timeout=5)
        assert result.normal_exit
        assert result.stdout.strip() == f"arg={descriptor}"
        assert result.stderr.strip() == "oops"
        assert result.command == str(script)
        assert result.duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, make_script, tmp_path):
        script = make_script("fail.sh", "exit 3")
        result = await WorkerRunner().run(script, tmp_path / "job.json", timeout=5)
        assert result.returncode == 3
        assert not result.normal_exit

    @pytest.mark.asyncio
    async def test_missing_program(self, tmp_path):
        with pytest.raises(WorkerLaunchError, match="failed to launch"):
            await WorkerRunner().run(tmp_path / "absent.sh", tmp_path / "job.json")

    @pytest.mark.asyncio
    async def test_not_executable(self, tmp_path):
        script = tmp_path / "plain.sh"
        script.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
        with pytest.raises(WorkerLaunchError):
            await WorkerRunner().run(script, tmp_path / "job.json")

    @pytest.mark.asyncio
    async def test_timeout_kills(self, make_script, tmp_path):
        script = make_script("slow.sh", "exec sleep 10")
        with pytest.raises(WorkerTimeoutError) as exc_info:
            await WorkerRunner().run(script, tmp_path / "job.json", timeout=0.2)
        assert isinstance(exc_info.value, WorkerError)
        assert exc_info.value.command == script
