from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Dict, Optional

from vaultbridge.models import JobDescription


class HotStorageBackend(ABC):
    """
    Abstract base class for key-addressed object stores.
    Implementations can use S3, the local filesystem, or any other store.
    """

    @abstractmethod
    def put(
        self,
        key: str,
        content: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
        public: bool = False,
    ) -> None:
        """
        Store content under key, replacing any existing object.

        Args:
            key: Storage key
            content: Binary content to store
            content_type: MIME type recorded with the object
            cache_control: Cache-Control header value
            public: Whether unauthenticated readers may fetch the object
        """
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        """
        Retrieve content by key.

        Raises:
            ObjectNotFoundError: If no object exists under key
        """
        pass

    @abstractmethod
    def download(self, key: str, path: Path) -> None:
        """
        Write the object under key to a local file.

        Raises:
            ObjectNotFoundError: If no object exists under key
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete the object under key. Deleting a missing key is not an error."""
        pass

    @abstractmethod
    def list(self, prefix: str = '') -> Dict[str, str]:
        """
        List every object whose key starts with prefix.

        Returns:
            Dict of key -> ETag
        """
        pass

    @abstractmethod
    def copy(self, source_key: str, dest_key: str) -> None:
        """
        Copy an object within the store.

        Raises:
            ObjectNotFoundError: If source_key does not exist
        """
        pass

    @abstractmethod
    def get_uri(self, key: str) -> str:
        """Public URI of the object under key."""
        pass


class ColdStorageBackend(ABC):
    """
    Abstract base class for job-based archival stores.
    Archives are written directly but can only be read back through a
    retrieval job that the store completes asynchronously.
    """

    @abstractmethod
    def upload_archive(self, description: str, stream: BinaryIO, checksum: str) -> dict:
        """
        Upload an archive with its checksum for the store to verify.

        Args:
            description: Archive description
            stream: Archive content
            checksum: Hex digest of the content

        Returns:
            Dict with 'archive_id', 'checksum' and 'location' (may be None)

        Raises:
            IntegrityFailureError: If the store rejects the checksum
        """
        pass

    @abstractmethod
    def initiate_retrieval_job(self, archive_id: str) -> str:
        """
        Ask the store to stage an archive for download.

        Returns:
            Job ID
        """
        pass

    @abstractmethod
    def describe_job(self, job_id: str) -> JobDescription:
        """
        Read the current state of a job. Must not change anything in the store.
        """
        pass

    @abstractmethod
    def get_job_output(self, job_id: str) -> BinaryIO:
        """
        Open the output of a succeeded job.

        Returns:
            Readable binary stream over the archive content
        """
        pass

    @abstractmethod
    def delete_archive(self, archive_id: str) -> int:
        """
        Delete an archive.

        Returns:
            Status code reported by the store (204 on success)
        """
        pass
