"""
Filesystem-backed archival vault for development and tests.

Behaves like a job-based archival store: uploads are verified against the
supplied checksum, and archives can only be read back through retrieval jobs.
A job reports success once retrieval_delay seconds have passed since it was
initiated, so polling never changes the vault.

Layout:
    {base}/vault/archives/{archive_id}        archive content
    {base}/vault/archives/{archive_id}.json   description, checksum, size
    {base}/vault/jobs/{job_id}.json           archive_id, initiated_at
"""
import json
import logging
import time
import uuid
from pathlib import Path
from typing import BinaryIO, Callable

from vaultbridge.core.hashing import compute_checksum
from vaultbridge.errors import IntegrityFailureError, InvalidArgumentError, ObjectNotFoundError, TransportError
from vaultbridge.models import JobDescription, JobStatus
from .base import ColdStorageBackend

logger = logging.getLogger(__name__)


class FilesystemVault(ColdStorageBackend):

    def __init__(
        self,
        base_path: str = '.vaultbridge',
        retrieval_delay: float = 0.0,
        hasher: Callable[[BinaryIO], str] = compute_checksum,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            base_path: Base directory; the vault lives in base_path/vault
            retrieval_delay: Seconds from job initiation until it succeeds
            hasher: Checksum function uploads are verified with
            clock: Time source in seconds
        """
        self.vault_path = Path(base_path) / 'vault'
        self.archives_path = self.vault_path / 'archives'
        self.jobs_path = self.vault_path / 'jobs'
        self.archives_path.mkdir(parents=True, exist_ok=True)
        self.jobs_path.mkdir(parents=True, exist_ok=True)
        self.retrieval_delay = retrieval_delay
        self.hasher = hasher
        self.clock = clock

    def _check_id(self, identifier: str) -> str:
        if not identifier or not identifier.isalnum():
            raise InvalidArgumentError(f"Invalid identifier: {identifier!r}")
        return identifier

    def _archive_path(self, archive_id: str) -> Path:
        return self.archives_path / self._check_id(archive_id)

    def _job_path(self, job_id: str) -> Path:
        return self.jobs_path / f"{self._check_id(job_id)}.json"

    def _read_job(self, job_id: str) -> dict:
        path = self._job_path(job_id)
        if not path.is_file():
            raise ObjectNotFoundError(f"describe job {job_id}", "no such job", code='ResourceNotFoundException')
        return json.loads(path.read_text())

    def upload_archive(self, description: str, stream: BinaryIO, checksum: str) -> dict:
        actual = self.hasher(stream)
        if actual != checksum:
            raise IntegrityFailureError(
                f"Checksum mismatch: expected {checksum}, computed {actual}",
                expected=checksum,
                actual=actual,
            )

        archive_id = uuid.uuid4().hex
        path = self._archive_path(archive_id)
        try:
            content = stream.read()
            path.write_bytes(content)
            path.with_suffix('.json').write_text(json.dumps({
                'description': description,
                'checksum': checksum,
                'size': len(content),
                'created_at': self.clock(),
            }))
        except OSError as e:
            raise TransportError("write archive to vault", str(e)) from e

        return {
            'archive_id': archive_id,
            'checksum': checksum,
            'location': path.absolute().as_uri(),
        }

    def initiate_retrieval_job(self, archive_id: str) -> str:
        if not self._archive_path(archive_id).is_file():
            raise ObjectNotFoundError(
                f"initiate retrieval of archive {archive_id}", "no such archive", code='ResourceNotFoundException'
            )

        job_id = uuid.uuid4().hex
        try:
            self._job_path(job_id).write_text(json.dumps({
                'job_id': job_id,
                'archive_id': archive_id,
                'initiated_at': self.clock(),
            }))
        except OSError as e:
            raise TransportError(f"initiate retrieval of archive {archive_id}", str(e)) from e
        return job_id

    def describe_job(self, job_id: str) -> JobDescription:
        job = self._read_job(job_id)

        if not self._archive_path(job['archive_id']).is_file():
            return JobDescription(
                job_id=job_id,
                archive_id=job['archive_id'],
                status=JobStatus.FAILED,
                status_message="Archive was deleted before the job completed",
            )

        if self.clock() - job['initiated_at'] >= self.retrieval_delay:
            return JobDescription(job_id=job_id, archive_id=job['archive_id'],
                                  status=JobStatus.SUCCEEDED, status_message="Succeeded")

        return JobDescription(job_id=job_id, archive_id=job['archive_id'], status=JobStatus.IN_PROGRESS)

    def get_job_output(self, job_id: str) -> BinaryIO:
        description = self.describe_job(job_id)
        if description.status is not JobStatus.SUCCEEDED:
            raise TransportError(
                f"get output of job {job_id}",
                f"job is {description.status.value}",
                code='InvalidParameterValueException',
            )

        try:
            return self._archive_path(description.archive_id).open('rb')
        except OSError as e:
            raise TransportError(f"get output of job {job_id}", str(e)) from e

    def delete_archive(self, archive_id: str) -> int:
        path = self._archive_path(archive_id)
        if not path.is_file():
            raise ObjectNotFoundError(
                f"delete archive {archive_id}", "no such archive", code='ResourceNotFoundException'
            )

        try:
            path.unlink()
            path.with_suffix('.json').unlink(missing_ok=True)
        except OSError as e:
            raise TransportError(f"delete archive {archive_id}", str(e)) from e
        return 204
