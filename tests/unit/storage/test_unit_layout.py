# tests/unit/storage/test_unit_layout.py
"""Tests for storage/layout.py: project and job directory paths."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from reconjob.storage.layout import (
    build_dir,
    descriptor_path,
    job_dir,
    job_dirname,
    matches_dir,
    project_of,
    reconstructions_dir,
)


class TestLayout:
    def test_job_dirname(self):
        assert job_dirname(datetime(2026, 2, 7, 9, 5, 3)) == "20260207_090503"

    def test_job_dirname_defaults_to_now(self):
        name = job_dirname()
        assert len(name) == 15
        assert name[8] == "_"

    def test_reconstructions_dir(self):
        assert reconstructions_dir(Path("/p")) == Path("/p/reconstructions")

    def test_job_dir(self):
        assert job_dir(Path("/p"), "20260207_140000") == Path("/p/reconstructions/20260207_140000")

    def test_job_files(self):
        jp = Path("/p/reconstructions/j")
        assert descriptor_path(jp) == jp / "job.json"
        assert build_dir(jp) == jp / "build"
        assert matches_dir(jp) == jp / "build" / "matches"

    def test_project_of_inverts_job_dir(self):
        assert project_of(job_dir(Path("/p"), "j")) == Path("/p")
