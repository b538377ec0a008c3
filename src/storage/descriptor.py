# src/storage/descriptor.py
"""Read and write job.json.

Writes go to a temporary file in the job directory which then replaces the
descriptor, so a failed write never leaves a truncated job.json behind.
Keys are sorted and indented by four spaces, the layout workers expect.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from reconjob.core.errors import DescriptorError
from reconjob.storage import layout
from reconjob.storage.models import JobDescriptor

logger = logging.getLogger(__name__)


def render_descriptor(descriptor: JobDescriptor) -> str:
    """Serialize a descriptor to its on-disk text."""
    data = descriptor.model_dump(exclude_none=True)
    return json.dumps(data, indent=4, sort_keys=True, ensure_ascii=False) + "\n"


def parse_descriptor(text: str | bytes, source: object = "<memory>") -> JobDescriptor:
    """Parse descriptor text.

    Raises:
        DescriptorError: If the text is not a JSON object matching the schema.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DescriptorError(source, f"malformed JSON file ({e})") from e
    if not isinstance(data, dict):
        raise DescriptorError(source, "descriptor is not a JSON object")
    try:
        return JobDescriptor.model_validate(data)
    except ValidationError as e:
        raise DescriptorError(source, f"invalid descriptor ({e.error_count()} errors)") from e


def read_descriptor(job_path: Path) -> JobDescriptor:
    """Load job.json from a job storage location.

    Raises:
        DescriptorError: If the file is missing, unreadable or malformed.
    """
    path = layout.descriptor_path(job_path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise DescriptorError(path, f"unable to read the job descriptor file ({e.strerror})") from e
    return parse_descriptor(raw, source=path)


def write_descriptor(job_path: Path, descriptor: JobDescriptor) -> Path:
    """Atomically write job.json into an existing job directory.

    Raises:
        DescriptorError: If the temporary file cannot be written or moved.
    """
    path = layout.descriptor_path(job_path)
    content = render_descriptor(descriptor)
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=job_path,
            prefix=f".{layout.DESCRIPTOR_NAME}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise DescriptorError(path, f"unable to write the job descriptor file ({e.strerror})") from e
    logger.debug("Wrote %s (%d bytes)", path, len(content))
    return path
