"""Exception types shared by the transcription and assembly phases."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class PipelineError(Exception):
    pass


# --- RunPod job lifecycle ---

class JobError(PipelineError):
    """A single transcription job could not be driven to a result."""


class TransportError(JobError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class JobFailedError(JobError):
    def __init__(self, job_id: str, status: str, diagnostic: Any = None):
        detail = f": {diagnostic}" if diagnostic else ""
        super().__init__(f"Job {job_id} ended with status {status}{detail}")
        self.job_id = job_id
        self.status = status
        self.diagnostic = diagnostic


class JobTimeoutError(JobError):
    def __init__(self, job_id: str, status: str, attempts: int, elapsed_s: float):
        super().__init__(
            f"Job {job_id} still {status} after {attempts} polls ({elapsed_s:.1f}s)"
        )
        self.job_id = job_id
        self.status = status
        self.attempts = attempts
        self.elapsed_s = elapsed_s


# --- Record assembly ---

class AssemblyError(PipelineError):
    """A record's documents lack a required structural field."""


class MalformedMetadataError(AssemblyError):
    def __init__(self, field: str, detail: str = "missing or not the expected type"):
        super().__init__(f"Metadata field '{field}' {detail}")
        self.field = field


class MalformedTranscriptionError(AssemblyError):
    def __init__(self, field: str, detail: str = "missing or not the expected type"):
        super().__init__(f"Transcription field '{field}' {detail}")
        self.field = field


class MissingMediaReferenceError(AssemblyError):
    def __init__(self, field: str = "assets[0].mp4_s3_path"):
        super().__init__(f"Metadata has no media reference at {field}")
        self.field = field


# --- Record storage ---

class RecordReadError(PipelineError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot read '{path}': {reason}")
        self.path = path


class RecordNotFoundError(RecordReadError):
    def __init__(self, path: Path):
        super().__init__(path, "file does not exist")
