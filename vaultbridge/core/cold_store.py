"""
Cold store client - the archival upload and retrieval workflow.

Archives are uploaded with a client-computed checksum that the store
verifies. Reading an archive back takes three steps, each a separate call:

    job_id = cold.initiate_retrieval(archive_id)
    while cold.poll_status(job_id) is JobStatus.IN_PROGRESS:
        ...  # caller decides the cadence, see core.polling
    data = cold.fetch_output(job_id)

Each archive moves through a local state machine:

    UPLOADED -> JOB_REQUESTED -> JOB_PENDING -> JOB_SUCCEEDED -> FETCHED
                      |               |
                      +---------------+--> JOB_FAILED

and DELETING -> DELETED from UPLOADED, JOB_FAILED or FETCHED. DELETING holds
the archive during the store call and reverts if it fails. The store owns
the real job progress; these states only record what this client has
observed, and they are what rejects out-of-order calls before anything
reaches the store.
"""
import io
import logging
import threading
from dataclasses import dataclass
from typing import BinaryIO, Callable, Dict, Optional

from vaultbridge.errors import InvalidArgumentError, InvalidStateTransitionError
from vaultbridge.models import (ACTIVE_JOB_STATES, ArchiveDescriptor, ArchiveState, JobStatus,
                                RetrievalJob)
from vaultbridge.storage.base import ColdStorageBackend
from .hashing import compute_checksum

logger = logging.getLogger(__name__)

# Bounded read size when draining job output
OUTPUT_CHUNK_SIZE = 1024 * 1024

_STATE_FOR_STATUS = {
    JobStatus.IN_PROGRESS: ArchiveState.JOB_PENDING,
    JobStatus.SUCCEEDED: ArchiveState.JOB_SUCCEEDED,
    JobStatus.FAILED: ArchiveState.JOB_FAILED,
}


@dataclass
class ArchiveItem:
    """Local view of one archive."""
    archive_id: str
    state: ArchiveState
    descriptor: Optional[ArchiveDescriptor] = None
    job_id: Optional[str] = None


def _require_id(value: str, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{label} cannot be empty")
    return value


def _stream_size(stream: BinaryIO) -> int:
    position = stream.tell()
    size = stream.seek(0, io.SEEK_END)
    stream.seek(position)
    return size


class ColdStore:
    """
    Archival storage client.

    Safe to share between threads. Tracking tables are guarded by a lock that
    is never held during a store call. No call is retried here; every store
    failure reaches the caller.
    """

    def __init__(
        self,
        backend: ColdStorageBackend,
        hasher: Callable[[BinaryIO], str] = compute_checksum,
    ):
        """
        Args:
            backend: Archival store transport
            hasher: Checksum function for uploads; must match what the store verifies
        """
        self.backend = backend
        self.hasher = hasher
        self._archives: Dict[str, ArchiveItem] = {}
        self._jobs: Dict[str, RetrievalJob] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def archive_upload(self, description: str, stream: BinaryIO) -> str:
        """
        Upload an archive with its checksum.

        The stream is hashed first and rewound, then handed to the store,
        which verifies the checksum on ingest.

        Args:
            description: Archive description kept by the store
            stream: Seekable binary stream with the archive content

        Returns:
            Archive ID assigned by the store

        Raises:
            InvalidArgumentError: If description is missing or stream is not seekable
            IntegrityFailureError: If the store rejects the checksum
        """
        if description is None:
            raise InvalidArgumentError("description is required")

        checksum = self.hasher(stream)
        size = _stream_size(stream)

        result = self.backend.upload_archive(description, stream, checksum)
        descriptor = ArchiveDescriptor(
            archive_id=result['archive_id'],
            checksum=checksum,
            description=description,
            size=size,
            location=result.get('location'),
        )

        with self._lock:
            self._archives[descriptor.archive_id] = ArchiveItem(
                archive_id=descriptor.archive_id,
                state=ArchiveState.UPLOADED,
                descriptor=descriptor,
            )

        logger.info(f"Archived {size} bytes as {descriptor.archive_id} (checksum {checksum[:12]}...)")
        return descriptor.archive_id

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def initiate_retrieval(self, archive_id: str) -> str:
        """
        Ask the store to stage an archive for download. Does not wait.

        Archive IDs this client has not seen (uploaded by an earlier process)
        are accepted.

        Returns:
            Job ID to poll

        Raises:
            InvalidStateTransitionError: If the archive was deleted or already
                has a retrieval job outstanding
        """
        _require_id(archive_id, "archive_id")

        with self._lock:
            item = self._archives.get(archive_id)
            if item is None:
                item = ArchiveItem(archive_id=archive_id, state=ArchiveState.UPLOADED)
                self._archives[archive_id] = item
            if item.state in (ArchiveState.DELETING, ArchiveState.DELETED):
                raise InvalidStateTransitionError(f"Archive {archive_id} was deleted", current=item.state)
            if item.state in ACTIVE_JOB_STATES:
                raise InvalidStateTransitionError(
                    f"Archive {archive_id} already has retrieval job {item.job_id} outstanding",
                    current=item.state,
                )
            previous_state = item.state
            # Reserve the archive so a concurrent call cannot start a second job
            item.state = ArchiveState.JOB_REQUESTED
            item.job_id = None

        try:
            job_id = self.backend.initiate_retrieval_job(archive_id)
        except Exception:
            with self._lock:
                item.state = previous_state
            raise

        with self._lock:
            self._jobs[job_id] = RetrievalJob(job_id=job_id, archive_id=archive_id)
            item.job_id = job_id

        logger.info(f"Initiated retrieval job {job_id} for archive {archive_id}")
        return job_id

    def resume_job(self, job_id: str) -> RetrievalJob:
        """
        Start tracking a job initiated elsewhere (e.g. by another process).

        The job's status is looked up but not treated as observed: poll_status
        must still report SUCCEEDED before fetch_output is allowed. The job
        takes over its archive's state like one started by initiate_retrieval.

        Returns:
            Copy of the tracked job

        Raises:
            InvalidStateTransitionError: If the archive was deleted or another
                retrieval job for it is outstanding
        """
        _require_id(job_id, "job_id")

        with self._lock:
            existing = self._jobs.get(job_id)
            if existing is not None:
                return existing.model_copy()

        description = self.backend.describe_job(job_id)
        if not description.archive_id:
            raise InvalidStateTransitionError(f"Job {job_id} is not an archive retrieval job")

        archive_id = description.archive_id
        with self._lock:
            existing = self._jobs.get(job_id)
            if existing is not None:
                return existing.model_copy()

            item = self._archives.get(archive_id)
            if item is None:
                item = ArchiveItem(archive_id=archive_id, state=ArchiveState.UPLOADED)
                self._archives[archive_id] = item
            if item.state in (ArchiveState.DELETING, ArchiveState.DELETED):
                raise InvalidStateTransitionError(
                    f"Archive {archive_id} of job {job_id} was deleted", current=item.state
                )
            if item.state in ACTIVE_JOB_STATES:
                raise InvalidStateTransitionError(
                    f"Archive {archive_id} already has retrieval job {item.job_id} outstanding",
                    current=item.state,
                )

            job = RetrievalJob(job_id=job_id, archive_id=archive_id, status_message=description.status_message)
            self._jobs[job_id] = job
            item.state = ArchiveState.JOB_REQUESTED
            item.job_id = job_id
            return job.model_copy()

    def poll_status(self, job_id: str) -> JobStatus:
        """
        Read the current status of a retrieval job.

        Non-blocking apart from the store round trip, idempotent, and safe to
        call concurrently for the same job. A FAILED job is terminal: start
        over with initiate_retrieval.

        Raises:
            InvalidStateTransitionError: If job_id is not known to this client
        """
        _require_id(job_id, "job_id")

        with self._lock:
            if job_id not in self._jobs:
                raise InvalidStateTransitionError(f"Unknown retrieval job {job_id}")

        description = self.backend.describe_job(job_id)

        with self._lock:
            job = self._jobs[job_id]
            # Never regress once a terminal status has been observed
            if not (job.observed and job.status.is_terminal):
                job.status = description.status
                job.status_message = description.status_message
            job.observed = True

            item = self._archives.get(job.archive_id)
            if (item is not None and item.job_id == job_id and not job.fetched
                    and item.state in ACTIVE_JOB_STATES):
                item.state = _STATE_FOR_STATUS[job.status]
                if job.status is JobStatus.FAILED:
                    item.job_id = None
            status = job.status

        logger.debug(f"Job {job_id} status: {status.value}")
        return status

    def fetch_output(self, job_id: str) -> bytes:
        """
        Download the output of a succeeded job into memory.

        The whole archive is materialized; use fetch_output_to for large
        archives. The job is single-use and closed afterwards.

        Raises:
            InvalidStateTransitionError: If the job is unknown, has not been
                observed as SUCCEEDED by poll_status, or was already fetched
        """
        buffer = bytearray()
        self._drain(job_id, buffer.extend)
        return bytes(buffer)

    def fetch_output_to(self, job_id: str, sink: BinaryIO) -> int:
        """
        Stream the output of a succeeded job into sink, chunk by chunk.

        Same state rules as fetch_output.

        Returns:
            Number of bytes written
        """
        if sink is None:
            raise InvalidArgumentError("sink is required")
        return self._drain(job_id, sink.write)

    def _drain(self, job_id: str, write: Callable[[bytes], object]) -> int:
        _require_id(job_id, "job_id")

        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise InvalidStateTransitionError(f"Unknown retrieval job {job_id}")
            if job.fetched:
                raise InvalidStateTransitionError(f"Output of job {job_id} was already fetched",
                                                  current=ArchiveState.FETCHED)
            if not job.observed or job.status is not JobStatus.SUCCEEDED:
                current = job.status if job.observed else None
                raise InvalidStateTransitionError(
                    f"Job {job_id} has not been observed as {JobStatus.SUCCEEDED.value}",
                    current=current,
                )
            # Claim the output so concurrent fetches cannot both consume it
            job.fetched = True

        total = 0
        try:
            body = self.backend.get_job_output(job_id)
            try:
                while True:
                    chunk = body.read(OUTPUT_CHUNK_SIZE)
                    if not chunk:
                        break
                    write(chunk)
                    total += len(chunk)
            finally:
                body.close()
        except Exception:
            with self._lock:
                job.fetched = False
            raise

        with self._lock:
            item = self._archives.get(job.archive_id)
            if item is not None and item.job_id == job_id:
                item.state = ArchiveState.FETCHED
                item.job_id = None

        logger.info(f"Fetched {total} bytes from job {job_id} (archive {job.archive_id})")
        return total

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, archive_id: str) -> int:
        """
        Delete an archive. Irreversible.

        Returns:
            Status code from the store (204 on success); store-side policy
            such as vault locks is reported through errors or this code

        Raises:
            InvalidStateTransitionError: If the archive was already deleted or
                a retrieval job is outstanding
        """
        _require_id(archive_id, "archive_id")

        with self._lock:
            item = self._archives.get(archive_id)
            if item is None:
                previous_state = None
                item = ArchiveItem(archive_id=archive_id, state=ArchiveState.DELETING)
                self._archives[archive_id] = item
            else:
                if item.state in (ArchiveState.DELETING, ArchiveState.DELETED):
                    raise InvalidStateTransitionError(f"Archive {archive_id} was already deleted",
                                                      current=item.state)
                if item.state in ACTIVE_JOB_STATES:
                    raise InvalidStateTransitionError(
                        f"Archive {archive_id} has retrieval job {item.job_id} outstanding",
                        current=item.state,
                    )
                previous_state = item.state
                # Hold the archive so initiate_retrieval cannot start a job on it meanwhile
                item.state = ArchiveState.DELETING

        try:
            status_code = self.backend.delete_archive(archive_id)
        except Exception:
            with self._lock:
                if previous_state is None:
                    self._archives.pop(archive_id, None)
                else:
                    item.state = previous_state
            raise

        with self._lock:
            item.state = ArchiveState.DELETED
            item.job_id = None

        logger.info(f"Deleted archive {archive_id} (status {status_code})")
        return status_code

    # ------------------------------------------------------------------
    # Tracked state
    # ------------------------------------------------------------------

    def archive_state(self, archive_id: str) -> Optional[ArchiveState]:
        with self._lock:
            item = self._archives.get(archive_id)
            return item.state if item is not None else None

    def describe_archive(self, archive_id: str) -> Optional[ArchiveDescriptor]:
        """Descriptor of an archive uploaded by this client, if any."""
        with self._lock:
            item = self._archives.get(archive_id)
            if item is None or item.descriptor is None:
                return None
            return item.descriptor.model_copy()

    def get_job(self, job_id: str) -> Optional[RetrievalJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy() if job is not None else None
