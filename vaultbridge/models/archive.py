"""Archival workflow models - archives, retrieval jobs and their states."""
from typing import Optional
from pydantic import BaseModel
import enum


class JobStatus(enum.Enum):
    """Status of a retrieval job as reported by the archival store."""
    IN_PROGRESS = "InProgress"  # Store is still staging the archive
    SUCCEEDED = "Succeeded"     # Output is ready to fetch
    FAILED = "Failed"           # Job ended without output

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.IN_PROGRESS


class ArchiveState(enum.Enum):
    """Where an archive is in the retrieval workflow, as observed locally."""
    UPLOADED = "uploaded"
    JOB_REQUESTED = "job_requested"
    JOB_PENDING = "job_pending"
    JOB_SUCCEEDED = "job_succeeded"
    JOB_FAILED = "job_failed"
    FETCHED = "fetched"
    DELETING = "deleting"
    DELETED = "deleted"


# States with a retrieval job still outstanding
ACTIVE_JOB_STATES = frozenset({
    ArchiveState.JOB_REQUESTED,
    ArchiveState.JOB_PENDING,
    ArchiveState.JOB_SUCCEEDED,
})


class ArchiveDescriptor(BaseModel):
    """One item submitted to cold storage."""

    archive_id: str
    """Identifier assigned by the store on upload"""

    checksum: str
    """Client-computed hex digest sent with the upload"""

    description: str
    """Caller-supplied archive description"""

    size: int = 0
    """Number of bytes uploaded"""

    location: Optional[str] = None
    """Store-reported location of the archive, when provided"""


class RetrievalJob(BaseModel):
    """One in-flight or completed retrieval request against cold storage."""

    job_id: str
    """Identifier assigned by the store when the job is initiated"""

    archive_id: str
    """Archive being retrieved"""

    status: JobStatus = JobStatus.IN_PROGRESS
    """Last status observed by polling"""

    status_message: Optional[str] = None
    """Store-supplied detail, usually set when the job failed"""

    observed: bool = False
    """Whether status came from a poll in this process"""

    fetched: bool = False
    """Output already consumed; jobs are single-use"""


class JobDescription(BaseModel):
    """Job details returned by a cold storage backend."""

    job_id: str
    """Job identifier"""

    archive_id: Optional[str] = None
    """Archive the job retrieves"""

    status: JobStatus
    """Current status"""

    status_message: Optional[str] = None
    """Store-supplied detail"""
