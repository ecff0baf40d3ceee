import logging
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from vaultbridge.config import Config
from vaultbridge.errors import InvalidArgumentError
from .aws import make_client, translate_error
from .base import HotStorageBackend

logger = logging.getLogger(__name__)


class S3Storage(HotStorageBackend):
    """
    Key-addressed object storage in an S3 bucket.
    Works against AWS or any S3-compatible endpoint (MinIO, LocalStack).
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        client=None,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
    ):
        """
        Initialize S3 storage.

        Args:
            bucket: Bucket name (default: Config.S3_BUCKET)
            client: boto3 S3 client to use instead of building one from Config
            endpoint_url: S3-compatible endpoint (default: Config.S3_ENDPOINT_URL)
            region: Region used for public URIs (default: Config.AWS_REGION)
        """
        self.bucket = bucket or Config.S3_BUCKET
        if not self.bucket:
            raise InvalidArgumentError("S3 bucket name is required")
        self.endpoint_url = endpoint_url or Config.S3_ENDPOINT_URL
        self.region = region or Config.AWS_REGION
        self.s3_client = client or make_client('s3', endpoint_url=self.endpoint_url)

    def put(
        self,
        key: str,
        content: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
        public: bool = False,
    ) -> None:
        """
        Upload content to S3 under key.

        Args:
            key: Object key
            content: Binary content to store
            content_type: MIME type stored as the object's Content-Type
            cache_control: Cache-Control header value
            public: Apply the public-read canned ACL
        """
        extra_args = {}
        if cache_control:
            extra_args['CacheControl'] = cache_control
        if public:
            extra_args['ACL'] = 'public-read'

        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                **extra_args,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"upload {key} to S3", e) from e

        logger.debug(f"Stored s3://{self.bucket}/{key} ({len(content)} bytes, {content_type})")

    def get(self, key: str) -> bytes:
        """
        Retrieve content from S3 by key.

        Args:
            key: Object key

        Returns:
            Binary content
        """
        try:
            response = self.s3_client.get_object(Bucket=self.bucket, Key=key)
            return response['Body'].read()
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"retrieve {key} from S3", e) from e

    def download(self, key: str, path: Path) -> None:
        """
        Download an object straight to a local file.

        Uses the boto3 transfer manager, which streams large objects in parts.
        """
        try:
            self.s3_client.download_file(self.bucket, key, str(path))
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"download {key} from S3", e) from e

    def delete(self, key: str) -> None:
        """
        Delete an object from S3 by key.

        Args:
            key: Object key
        """
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"delete {key} from S3", e) from e

    def list(self, prefix: str = '') -> Dict[str, str]:
        """
        List objects under prefix, following pagination to the end.

        Returns:
            Dict of key -> ETag as reported by S3
        """
        objects = {}
        try:
            paginator = self.s3_client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get('Contents', []):
                    objects[obj['Key']] = obj['ETag']
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"list S3 objects under '{prefix}'", e) from e
        return objects

    def copy(self, source_key: str, dest_key: str) -> None:
        """Server-side copy within the bucket."""
        try:
            self.s3_client.copy_object(
                Bucket=self.bucket,
                Key=dest_key,
                CopySource={'Bucket': self.bucket, 'Key': source_key},
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(f"copy {source_key} to {dest_key} in S3", e) from e

    def get_uri(self, key: str) -> str:
        """
        Public URI of an object.

        Path-style under a custom endpoint, virtual-hosted style on AWS.
        """
        quoted = quote(key, safe='/')
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"
