import logging
from typing import BinaryIO, Optional

from botocore.exceptions import BotoCoreError, ClientError

from vaultbridge.config import Config
from vaultbridge.errors import IntegrityFailureError, InvalidArgumentError
from vaultbridge.models import JobDescription, JobStatus
from .aws import error_code, error_message, make_client, translate_error
from .base import ColdStorageBackend

logger = logging.getLogger(__name__)

RETRIEVAL_TIERS = ('Expedited', 'Standard', 'Bulk')


class GlacierStorage(ColdStorageBackend):
    """
    Archival storage in an Amazon S3 Glacier vault.

    The vault verifies the checksum sent with each upload and rejects the
    archive on mismatch. Reads go through archive-retrieval jobs, which
    typically take hours at the Standard tier.
    """

    def __init__(
        self,
        vault: Optional[str] = None,
        client=None,
        tier: Optional[str] = None,
    ):
        """
        Initialize Glacier storage.

        Args:
            vault: Vault name (default: Config.GLACIER_VAULT)
            client: boto3 Glacier client to use instead of building one from Config
            tier: Retrieval tier for new jobs (default: Config.GLACIER_RETRIEVAL_TIER)
        """
        self.vault = vault or Config.GLACIER_VAULT
        if not self.vault:
            raise InvalidArgumentError("Glacier vault name is required")
        self.tier = tier or Config.GLACIER_RETRIEVAL_TIER
        if self.tier not in RETRIEVAL_TIERS:
            raise InvalidArgumentError(f"Unknown retrieval tier '{self.tier}', expected one of {', '.join(RETRIEVAL_TIERS)}")
        self.glacier_client = client or make_client('glacier')

    def upload_archive(self, description: str, stream: BinaryIO, checksum: str) -> dict:
        """
        Upload an archive in a single request.

        Args:
            description: Archive description stored by the vault
            stream: Archive content
            checksum: SHA-256 tree hash of the content, hex encoded

        Returns:
            Dict with 'archive_id', 'checksum' and 'location'
        """
        try:
            response = self.glacier_client.upload_archive(
                vaultName=self.vault,
                archiveDescription=description,
                checksum=checksum,
                body=stream,
            )
        except ClientError as e:
            if error_code(e) == 'InvalidParameterValueException' and 'checksum' in error_message(e).lower():
                raise IntegrityFailureError(
                    f"Vault {self.vault} rejected archive checksum: {error_message(e)}",
                    expected=checksum,
                ) from e
            raise translate_error(f"upload archive to vault {self.vault}", e) from e
        except BotoCoreError as e:
            raise translate_error(f"upload archive to vault {self.vault}", e) from e

        return {
            'archive_id': response['archiveId'],
            'checksum': response.get('checksum', checksum),
            'location': response.get('location'),
        }

    def initiate_retrieval_job(self, archive_id: str) -> str:
        """Start an archive-retrieval job at the configured tier."""
        try:
            response = self.glacier_client.initiate_job(
                vaultName=self.vault,
                jobParameters={
                    'Type': 'archive-retrieval',
                    'ArchiveId': archive_id,
                    'Tier': self.tier,
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"initiate retrieval of archive {archive_id}", e) from e
        return response['jobId']

    def describe_job(self, job_id: str) -> JobDescription:
        try:
            response = self.glacier_client.describe_job(vaultName=self.vault, jobId=job_id)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"describe job {job_id}", e) from e

        return JobDescription(
            job_id=response.get('JobId', job_id),
            archive_id=response.get('ArchiveId'),
            status=JobStatus(response['StatusCode']),
            status_message=response.get('StatusMessage'),
        )

    def get_job_output(self, job_id: str) -> BinaryIO:
        """
        Open the output of a succeeded retrieval job.

        Returns:
            botocore StreamingBody over the archive content
        """
        try:
            response = self.glacier_client.get_job_output(vaultName=self.vault, jobId=job_id)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"get output of job {job_id}", e) from e
        return response['body']

    def delete_archive(self, archive_id: str) -> int:
        try:
            response = self.glacier_client.delete_archive(vaultName=self.vault, archiveId=archive_id)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"delete archive {archive_id}", e) from e
        return response.get('ResponseMetadata', {}).get('HTTPStatusCode', 204)
