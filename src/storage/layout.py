# src/storage/layout.py
"""On-disk layout of projects and jobs.

    {project}/
        reconstructions/
            {yyyymmdd_hhmmss}/      <- job storage location
                job.json            <- descriptor
                build/              <- created on start
                    matches/        <- worker output, path only
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

RECONSTRUCTIONS_DIR = "reconstructions"
DESCRIPTOR_NAME = "job.json"
BUILD_DIR = "build"
MATCHES_DIR = "matches"

JOB_DIRNAME_FORMAT = "%Y%m%d_%H%M%S"


def job_dirname(timestamp: datetime | None = None) -> str:
    """Timestamp-derived job directory name: yyyymmdd_hhmmss."""
    ts = timestamp or datetime.now()
    return ts.strftime(JOB_DIRNAME_FORMAT)


def reconstructions_dir(project_path: Path) -> Path:
    """Return the directory holding all jobs of a project."""
    return project_path / RECONSTRUCTIONS_DIR


def job_dir(project_path: Path, dirname: str) -> Path:
    """Return a job storage location inside a project."""
    return reconstructions_dir(project_path) / dirname


def descriptor_path(job_path: Path) -> Path:
    return job_path / DESCRIPTOR_NAME


def build_dir(job_path: Path) -> Path:
    return job_path / BUILD_DIR


def matches_dir(job_path: Path) -> Path:
    return build_dir(job_path) / MATCHES_DIR


def project_of(job_path: Path) -> Path:
    """Inverse of job_dir(): the project owning a job storage location."""
    return job_path.parent.parent
