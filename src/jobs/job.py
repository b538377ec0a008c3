# src/jobs/job.py
"""Reconstruction job lifecycle controller.

A Job owns the pipeline steps, the input resources and the job metadata,
keeps job.json in sync with them, launches the external start worker and
ingests the status worker's progress reports.

Lifecycle:
    Unsaved -> Saved (job.json written) -> Started (build/ exists)
    Once started the descriptor is frozen; status refinements (running,
    done, error...) come from the status worker and live in memory only.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Iterator, Mapping
from contextlib import contextmanager, suppress
from datetime import datetime
from pathlib import Path
from typing import Any

from reconjob.config.settings import WorkerConfig, load_settings
from reconjob.core.errors import (
    DescriptorError,
    StatusFieldsError,
    StatusParseError,
    WorkerError,
)
from reconjob.core.locations import is_well_formed, to_local_file
from reconjob.core.models import STATUS_ERROR, STATUS_NOT_STARTED, Resource
from reconjob.jobs.binding import JobModel, JobRole
from reconjob.logging.context import job_context
from reconjob.pipeline.resources import ResourceCollection
from reconjob.pipeline.step import Step
from reconjob.pipeline.template import INITIAL_PAIR_KEY, SFM_STEP, build_default_steps
from reconjob.storage import layout
from reconjob.storage.descriptor import read_descriptor, write_descriptor
from reconjob.storage.models import DescriptorPaths, JobDescriptor
from reconjob.worker.models import ProcessResult, StatusReport
from reconjob.worker.runner import WorkerRunner

logger = logging.getLogger(__name__)

# The reconstruction needs a baseline of at least two images.
MIN_RESOURCES = 2


class Job:
    """One reconstruction job: parameters, inputs, descriptor and status."""

    def __init__(
        self,
        project_path: str | Path,
        *,
        worker: WorkerConfig | None = None,
        runner: WorkerRunner | None = None,
        steps: list[Step] | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        """Create an unsaved job inside a project.

        Args:
            project_path: Directory of the owning project.
            worker: Resolved worker programs; read from Settings if omitted.
            runner: Process launcher (tests inject a fake).
            steps: Pipeline template; the fixed default template if omitted.
            timestamp: Creation time; now if omitted.
        """
        self._project_path = Path(project_path)
        self._date = (timestamp or datetime.now()).replace(microsecond=0)
        self._user = os.environ.get("USER", "")
        self._name = layout.job_dirname(self._date)
        self._url = layout.job_dir(self._project_path, self._name)

        self._steps: dict[str, Step] = {}
        for step in steps if steps is not None else build_default_steps():
            self._steps[step.name] = step
        self._resources = ResourceCollection()

        self._worker = worker or load_settings().worker_config()
        self._runner = runner or WorkerRunner()

        # Transient, worker-reported state
        self._completion = 0.0
        self._status = STATUS_NOT_STARTED
        self._thumbnail: str | None = None
        self._model: JobModel | None = None
        self._model_index: Any = None

        self._auto_save = False
        self._refresh_task: asyncio.Task[None] | None = None
        self._refresh_pending = False

        for step in self._steps.values():
            step.subscribe(self._on_step_changed)
        self._resources.subscribe(self._on_resources_changed)
        self.auto_save_on()

    def __repr__(self) -> str:
        return f"Job({self._name!r}, url={str(self._url)!r}, status={self._status})"

    @classmethod
    def open(cls, location: str | Path, **kwargs: Any) -> Job | None:
        """Build a job for an existing storage location and load it.

        Returns:
            The loaded job, or None if the location holds no valid descriptor.
        """
        path = Path(to_local_file(location))
        job = cls(layout.project_of(path), **kwargs)
        if not job.load(path):
            return None
        return job

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def project_path(self) -> Path:
        return self._project_path

    @property
    def storage_location(self) -> Path:
        return self._url

    @storage_location.setter
    def storage_location(self, value: str | Path) -> None:
        path = Path(to_local_file(value))
        if path == self._url:
            return
        self._url = path
        self.notify_changed()

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if value == self._name:
            return
        self._name = value
        self.notify_changed()

    @property
    def user(self) -> str:
        return self._user

    @user.setter
    def user(self, value: str) -> None:
        if value == self._user:
            return
        self._user = value
        self.notify_changed()

    @property
    def date(self) -> datetime:
        return self._date

    @date.setter
    def date(self, value: datetime) -> None:
        if value == self._date:
            return
        self._date = value
        self.notify_changed()

    @property
    def descriptor_path(self) -> Path:
        return layout.descriptor_path(self._url)

    @property
    def build_path(self) -> Path:
        return layout.build_dir(self._url)

    # ------------------------------------------------------------------
    # Steps and resources
    # ------------------------------------------------------------------

    @property
    def steps(self) -> Mapping[str, Step]:
        return self._steps

    @property
    def resources(self) -> ResourceCollection:
        return self._resources

    def step(self, name: str) -> Step | None:
        return self._steps.get(name)

    def add_resource(self, location: str | Path) -> Resource:
        """Register an input image (auto-saves, updates the thumbnail)."""
        return self._resources.add(location)

    def set_attribute(self, step_name: str, key: str, value: Any) -> bool:
        """Edit one attribute value; returns True if it changed.

        Raises:
            KeyError: Unknown step or attribute.
            ValueError: Value does not match the attribute kind.
        """
        return self._steps[step_name].set_value(key, value)

    # ------------------------------------------------------------------
    # Transient state and presentation binding
    # ------------------------------------------------------------------

    @property
    def status(self) -> int:
        return self._status

    @property
    def completion(self) -> float:
        return self._completion

    @property
    def thumbnail(self) -> str | None:
        return self._thumbnail

    def bind(self, model: JobModel | None, index: Any = None) -> None:
        """Attach (or detach with None) the collection row reporting this job."""
        self._model = model
        self._model_index = index

    def _push(self, role: JobRole, value: Any) -> None:
        if self._model is not None:
            self._model.set_data(self._model_index, value, role)

    def _set_status(self, status: int) -> None:
        self._status = status
        self._push(JobRole.STATUS, status)

    def _set_completion(self, completion: float) -> None:
        self._completion = min(max(float(completion), 0.0), 1.0)
        self._push(JobRole.COMPLETION, self._completion)

    def _set_thumbnail(self, thumbnail: str | None) -> None:
        self._thumbnail = thumbnail
        self._push(JobRole.THUMBNAIL, thumbnail)

    def select_thumbnail(self) -> None:
        """Point the thumbnail at the first resource, if any."""
        first = self._resources.first()
        if first is not None:
            self._set_thumbnail(first.location)

    # ------------------------------------------------------------------
    # Auto-persistence
    # ------------------------------------------------------------------

    @property
    def auto_save_enabled(self) -> bool:
        return self._auto_save

    def auto_save_on(self) -> None:
        self._auto_save = True

    def auto_save_off(self) -> None:
        self._auto_save = False

    @contextmanager
    def suspended_auto_save(self) -> Iterator[Job]:
        """Disable auto-save for a block, restoring the prior setting."""
        previous = self._auto_save
        self.auto_save_off()
        try:
            yield self
        finally:
            if previous:
                self.auto_save_on()

    def notify_changed(self) -> None:
        """Single hook for every tracked mutation: persist unless suspended."""
        if self._auto_save:
            self.save()

    def _on_step_changed(self, step: Step, key: str) -> None:
        logger.debug("%s: %s.%s changed", self._name, step.name, key)
        self.notify_changed()

    def _on_resources_changed(self, count: int) -> None:
        self.select_thumbnail()
        self.notify_changed()

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_stored_on_disk(self) -> bool:
        return self.descriptor_path.is_file()

    def is_started(self) -> bool:
        return self.build_path.is_dir() and self.is_stored_on_disk()

    def is_startable(self) -> bool:
        if len(self._resources) < MIN_RESOURCES:
            logger.error(
                "%s: insufficient number of sources (%d, need %d)",
                self._name, len(self._resources), MIN_RESOURCES,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Initial pair queries
    # ------------------------------------------------------------------

    def _initial_pair(self) -> list[Any] | None:
        step = self._steps.get(SFM_STEP)
        if step is None:
            return None
        attribute = step.get(INITIAL_PAIR_KEY)
        if attribute is None or not isinstance(attribute.value, (list, tuple)):
            return None
        return list(attribute.value)

    def is_pair_a(self, url: str | Path) -> bool:
        """Whether *url* is the first image of the sfm initial pair."""
        pair = self._initial_pair()
        return (
            pair is not None
            and len(pair) > 0
            and is_well_formed(url)
            and pair[0] == to_local_file(url)
        )

    def is_pair_b(self, url: str | Path) -> bool:
        """Whether *url* is the second image of the sfm initial pair."""
        pair = self._initial_pair()
        return (
            pair is not None
            and len(pair) > 1
            and is_well_formed(url)
            and pair[1] == to_local_file(url)
        )

    def is_pair_valid(self) -> bool:
        pair = self._initial_pair()
        return (
            pair is not None
            and len(pair) > 1
            and is_well_formed(pair[0])
            and is_well_formed(pair[1])
        )

    # ------------------------------------------------------------------
    # Descriptor mapping
    # ------------------------------------------------------------------

    def serialize(self) -> JobDescriptor:
        """Snapshot the persisted state as a descriptor."""
        return JobDescriptor(
            date=self._date.isoformat(timespec="seconds"),
            user=self._user,
            name=self._name,
            paths=DescriptorPaths(
                build=str(layout.build_dir(self._url)),
                match=str(layout.matches_dir(self._url)),
            ),
            resources=self._resources.locations(),
            steps={name: step.to_dict() for name, step in self._steps.items()},
        )

    def deserialize(self, descriptor: JobDescriptor | Mapping[str, Any]) -> None:
        """Apply a descriptor onto this job without triggering saves.

        Resources are appended to the current collection. Only steps and
        attributes of the template are read; everything else is ignored.
        Mistyped metadata and step entries are skipped with a warning and
        the current values are kept.
        """
        if not isinstance(descriptor, JobDescriptor):
            descriptor = JobDescriptor.model_validate(descriptor)
        with self.suspended_auto_save():
            if self._accepts_text("user", descriptor.user):
                self.user = descriptor.user
            if self._accepts_text("name", descriptor.name):
                self.name = descriptor.name
            self._resources.extend(descriptor.resources)
            for name, step in self._steps.items():
                values = descriptor.steps.get(name)
                if values is None:
                    continue
                if not isinstance(values, Mapping):
                    logger.warning(
                        "%s: skipping step %r, expected an object, got %r",
                        self._name, name, values,
                    )
                    continue
                step.apply_values(values)

    def _accepts_text(self, key: str, value: Any) -> bool:
        if value is None:
            return False
        if not isinstance(value, str):
            logger.warning("%s: skipping %r, value %r is not a string", self._name, key, value)
            return False
        return True

    def copy_from(self, other: Job) -> None:
        """Take over another job's resources, attribute values and thumbnail."""
        with self.suspended_auto_save():
            self._resources.clear()
            self._resources.extend(r.model_copy() for r in other.resources)
            for name, step in self._steps.items():
                source = other.steps.get(name)
                if source is not None:
                    step.apply_values(source.to_dict())
            self._set_thumbnail(other.thumbnail)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Write job.json; refused once the job is started.

        Returns:
            True if the descriptor was written.
        """
        with job_context(self._name, "save"):
            if self.is_started():
                logger.warning("%s: job already started, descriptor left untouched", self._name)
                return False
            descriptor = self.serialize()
            created = not self._url.exists()
            try:
                self._url.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error("%s: unable to create the job directory (%s)", self._name, e)
                return False
            try:
                write_descriptor(self._url, descriptor)
            except DescriptorError as e:
                logger.error("%s: %s", self._name, e)
                if created:
                    with suppress(OSError):
                        self._url.rmdir()
                return False
            logger.debug("%s: saved to %s", self._name, self.descriptor_path)
            return True

    def load(self, location: str | Path) -> bool:
        """Replace this job's persisted state with the descriptor at *location*.

        On failure nothing changes, including the storage location.
        """
        path = Path(to_local_file(location))
        with job_context(self._name, "load"):
            if not path.is_dir():
                logger.error("%s: malformed or empty URL '%s'", self._name, path)
                return False
            try:
                descriptor = read_descriptor(path)
            except DescriptorError as e:
                logger.warning("%s: %s", self._name, e)
                return False
            with self.suspended_auto_save():
                self._url = path
                self.deserialize(descriptor)
            logger.debug("%s: loaded from %s", self._name, path)
            return True

    def erase(self) -> bool:
        """Delete the whole storage directory, whatever the job state.

        A worker still running against it is not stopped.
        """
        with job_context(self._name, "erase"):
            if not self._url.exists():
                return True
            try:
                shutil.rmtree(self._url)
            except OSError as e:
                logger.error("%s: unable to erase %s (%s)", self._name, self._url, e)
                return False
            logger.info("%s: erased %s", self._name, self._url)
            return True

    # ------------------------------------------------------------------
    # Worker orchestration
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Save, validate, create build/ and run the start worker to completion.

        Any launch failure, non-zero exit or timeout removes build/ again.
        On success a status refresh is scheduled.
        """
        with job_context(self._name, "start"):
            if not self.save():
                return False
            if not self.is_startable():
                return False
            build = self.build_path
            try:
                build.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error("%s: unable to create the build directory (%s)", self._name, e)
                return False

            command = self._worker.start_command
            result: ProcessResult | None = None
            try:
                result = await self._runner.run(
                    command, self.descriptor_path.resolve(), timeout=self._worker.start_timeout,
                )
            except WorkerError as e:
                logger.error("%s: unable to start job (%s)", self._name, e)
            else:
                if not result.normal_exit:
                    logger.error(
                        "%s: unable to start job (%s exited with %s)",
                        self._name, command, result.returncode,
                    )
                    if result.stderr.strip():
                        logger.error("%s: %s", self._name, result.stderr.strip())

            if result is None or not result.normal_exit:
                shutil.rmtree(build, ignore_errors=True)
                return False

            logger.info("%s: job started", self._name)
            self.refresh()
            return True

    def refresh(self) -> asyncio.Task[None] | None:
        """Ask the status worker for progress.

        Not started: status becomes NOT_STARTED immediately and None is
        returned. Started: a status check is scheduled on the running event
        loop and its task returned. While a check is in flight further
        requests are coalesced into one follow-up check, so reports are
        applied in order. Outside a running event loop nothing can be
        scheduled: the request is logged and None is returned.
        """
        if not self.is_started():
            self._set_status(STATUS_NOT_STARTED)
            return None
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_pending = True
            return self._refresh_task
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("%s: status refresh requested outside the event loop", self._name)
            return None
        self._refresh_task = loop.create_task(
            self._refresh_loop(), name=f"refresh-{self._name}",
        )
        return self._refresh_task

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def wait_refreshed(self) -> None:
        """Wait for the in-flight status check (and its follow-up), if any."""
        if self._refresh_task is not None:
            await self._refresh_task

    async def _refresh_loop(self) -> None:
        while True:
            self._refresh_pending = False
            try:
                await self._poll_status()
            except Exception:
                logger.exception("%s: status refresh failed", self._name)
                self._set_status(STATUS_ERROR)
            if not self._refresh_pending:
                break

    async def _poll_status(self) -> None:
        with job_context(self._name, "refresh"):
            command = self._worker.status_command
            try:
                result = await self._runner.run(
                    command, self.descriptor_path.resolve(), timeout=self._worker.status_timeout,
                )
            except WorkerError as e:
                logger.error("%s: unable to update job status (%s)", self._name, e)
                self._set_status(STATUS_ERROR)
                return
            self.handle_status_result(result)

    def handle_status_result(self, result: ProcessResult) -> None:
        """Apply one status worker outcome to completion/status."""
        if not result.normal_exit:
            logger.error(
                "%s: status worker exited with %s: %s",
                self._name, result.returncode, result.stderr.strip(),
            )
            self._set_status(STATUS_ERROR)
            return
        try:
            report = StatusReport.parse(result.stdout)
        except StatusParseError as e:
            logger.error("%s: %s", self._name, e)
            self._set_status(STATUS_ERROR)
            return
        except StatusFieldsError as e:
            logger.error("%s: %s", self._name, e)
            return
        self._set_completion(report.completion)
        self._set_status(report.status)
