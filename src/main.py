# src/main.py
"""CLI entry point: create, start, status, erase and list commands.

Usage:
    reconjob create <project> [-i IMAGE ...] [--name NAME]
    reconjob start <job_dir>
    reconjob status <job_dir> [--watch]
    reconjob erase <job_dir>
    reconjob list <project>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from reconjob.version import __version__

if TYPE_CHECKING:
    from reconjob.jobs.job import Job

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        _setup_logging(args.verbose)
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="reconjob",
        description=f"reconjob v{__version__} - reconstruction job controller",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- create ---
    p_create = subparsers.add_parser("create", help="Create and save a new job")
    p_create.add_argument("project", type=Path, help="Project directory")
    p_create.add_argument(
        "-i", "--image", dest="images", action="append", type=Path, default=[],
        help="Input image (repeatable)",
    )
    p_create.add_argument("--name", default=None, help="Job name (default: timestamp)")
    p_create.set_defaults(func=_cmd_create)

    # --- start ---
    p_start = subparsers.add_parser("start", help="Launch the worker for a job")
    p_start.add_argument("job_dir", type=Path, help="Job storage directory")
    p_start.set_defaults(func=_cmd_start)

    # --- status ---
    p_status = subparsers.add_parser("status", help="Query job progress")
    p_status.add_argument("job_dir", type=Path, help="Job storage directory")
    p_status.add_argument(
        "--watch", action="store_true",
        help="Keep polling at RECONJOB_REFRESH_INTERVAL",
    )
    p_status.set_defaults(func=_cmd_status)

    # --- erase ---
    p_erase = subparsers.add_parser("erase", help="Delete a job directory")
    p_erase.add_argument("job_dir", type=Path, help="Job storage directory")
    p_erase.set_defaults(func=_cmd_erase)

    # --- list ---
    p_list = subparsers.add_parser("list", help="List the jobs of a project")
    p_list.add_argument("project", type=Path, help="Project directory")
    p_list.set_defaults(func=_cmd_list)

    return parser


async def _cmd_create(args: argparse.Namespace) -> int:
    """Create a job, register its images and save it."""
    from reconjob.config.settings import load_settings
    from reconjob.jobs.project import Project

    settings = load_settings()
    project = Project(args.project, worker=settings.worker_config())
    job = project.create_job()
    with job.suspended_auto_save():
        if args.name:
            job.name = args.name
        for image in args.images:
            if not image.is_file():
                logger.warning("Image not found, registered anyway: %s", image)
            job.add_resource(image.resolve())
    if not job.save():
        return 1
    print(job.storage_location)
    return 0


async def _cmd_start(args: argparse.Namespace) -> int:
    """Load and start a job."""
    job = _open_job(args.job_dir)
    if job is None:
        return 1
    if not await job.start():
        return 1
    await job.wait_refreshed()
    _print_status(job)
    return 0


async def _cmd_status(args: argparse.Namespace) -> int:
    """Print one status report, or keep polling with --watch."""
    from reconjob.config.settings import load_settings
    from reconjob.jobs.monitor import JobMonitor

    job = _open_job(args.job_dir)
    if job is None:
        return 1
    if not args.watch:
        task = job.refresh()
        if task is not None:
            await task
        _print_status(job)
        return 0

    monitor = JobMonitor([job], interval=load_settings().refresh_interval)
    while True:
        await monitor.refresh_all()
        _print_status(job)
        if not job.is_started() or job.completion >= 1.0:
            return 0
        await asyncio.sleep(monitor.interval)


async def _cmd_erase(args: argparse.Namespace) -> int:
    """Delete a job directory."""
    job = _open_job(args.job_dir)
    if job is None:
        return 1
    return 0 if job.erase() else 1


async def _cmd_list(args: argparse.Namespace) -> int:
    """List jobs stored in a project."""
    from reconjob.jobs.project import Project

    project = Project(args.project)
    if not project.path.is_dir():
        logger.error("Not a directory: %s", project.path)
        return 1
    jobs = project.jobs()
    for job in jobs:
        state = "started" if job.is_started() else "saved"
        print(f"{job.name}\t{state}\t{len(job.resources)} image(s)\t{job.storage_location}")
    print(f"\n{len(jobs)} job(s) in {project.reconstructions_dir}")
    return 0


def _open_job(job_dir: Path) -> Job | None:
    """Load a job for a CLI command; None (logged) if unusable."""
    from reconjob.config.settings import load_settings
    from reconjob.jobs.job import Job

    if not job_dir.is_dir():
        logger.error("Not a directory: %s", job_dir)
        return None
    job = Job.open(job_dir.resolve(), worker=load_settings().worker_config())
    if job is None:
        logger.error("No valid job descriptor in %s", job_dir)
    return job


def _print_status(job: Job) -> None:
    """Print the transient state of a job as one JSON line."""
    print(json.dumps({
        "name": job.name,
        "started": job.is_started(),
        "status": job.status,
        "completion": job.completion,
    }))


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage from settings."""
    from reconjob.config.settings import load_settings
    from reconjob.logging.logger import setup_logging

    settings = load_settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
