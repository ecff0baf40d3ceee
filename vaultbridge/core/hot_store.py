"""Hot store client - upload, copy, delete, list and fetch objects by key."""
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from vaultbridge.errors import InvalidArgumentError
from vaultbridge.storage.base import HotStorageBackend
from .content_types import ContentTypeResolver, default_content_types
from .keys import StorageKey, TickClock, build_key

logger = logging.getLogger(__name__)

# 30 days
DEFAULT_MAX_AGE = 2592000


class HotStore:
    """
    Key-addressed object storage with generated keys.

    Every upload and copy gets a fresh ``{category}/{timestamp}/{name}`` key,
    so storing the same name twice never overwrites the earlier object.
    """

    def __init__(
        self,
        backend: HotStorageBackend,
        content_types: Optional[Mapping[str, str]] = None,
        clock: Optional[TickClock] = None,
        max_age: int = DEFAULT_MAX_AGE,
        public_base_url: Optional[str] = None,
    ):
        """
        Args:
            backend: Object store transport
            content_types: Extension -> MIME table (default: platform registry)
            clock: Timestamp source for keys
            max_age: Cache-Control max-age for uploaded objects, in seconds
            public_base_url: Base for get_uri; backend default when None
        """
        self.backend = backend
        self.resolver = ContentTypeResolver(
            content_types if content_types is not None else default_content_types()
        )
        self.clock = clock or TickClock()
        self.max_age = max_age
        self.public_base_url = public_base_url

    @property
    def cache_control(self) -> str:
        return f"max-age={self.max_age}, must-revalidate"

    def upload(self, category: Any, name: str, content: bytes, is_public: bool = False) -> StorageKey:
        """
        Upload content under a new key derived from category and name.

        Args:
            category: Classification tag, first key segment
            name: File name, last key segment; also picks the content type
            content: Non-empty bytes to store
            is_public: Allow unauthenticated reads

        Returns:
            The generated storage key

        Raises:
            InvalidArgumentError: If name is blank or content is empty
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("name cannot be empty")
        if content is None:
            raise InvalidArgumentError("content is required")
        if len(content) == 0:
            raise InvalidArgumentError("content cannot be empty")

        key = build_key(category, name, self.clock.now())
        content_type = self.resolver.resolve(name)

        self.backend.put(
            key,
            bytes(content),
            content_type=content_type,
            cache_control=self.cache_control,
            public=is_public,
        )
        logger.info(f"Uploaded {key} ({len(content)} bytes, {content_type}, public={is_public})")
        return key

    def copy(self, dest_category: Any, dest_name: str, source_key: StorageKey) -> StorageKey:
        """
        Copy an existing object to a new key derived from dest_category and dest_name.

        Returns:
            The generated destination key
        """
        if not isinstance(dest_name, str) or not dest_name.strip():
            raise InvalidArgumentError("dest_name cannot be empty")
        if not isinstance(source_key, str) or not source_key.strip():
            raise InvalidArgumentError("source_key cannot be empty")

        key = build_key(dest_category, dest_name, self.clock.now())
        self.backend.copy(source_key, key)
        logger.info(f"Copied {source_key} to {key}")
        return key

    def delete(self, key: StorageKey) -> None:
        if not isinstance(key, str) or not key.strip():
            raise InvalidArgumentError("key cannot be empty")
        self.backend.delete(key)
        logger.info(f"Deleted {key}")

    def list(self, prefix: str = '') -> Dict[StorageKey, str]:
        """All objects under prefix as key -> ETag."""
        objects = self.backend.list(prefix or '')
        logger.debug(f"Listed {len(objects)} objects under '{prefix}'")
        return objects

    def fetch(self, key: StorageKey) -> bytes:
        """Read an object into memory."""
        if not isinstance(key, str) or not key.strip():
            raise InvalidArgumentError("key cannot be empty")
        content = self.backend.get(key)
        logger.debug(f"Fetched {key} ({len(content)} bytes)")
        return content

    def fetch_to_path(self, key: StorageKey, path) -> Path:
        """
        Write an object to a local file, creating parent directories.

        Returns:
            The destination path
        """
        if not isinstance(key, str) or not key.strip():
            raise InvalidArgumentError("key cannot be empty")
        if path is None:
            raise InvalidArgumentError("path is required")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.backend.download(key, path)
        logger.debug(f"Fetched {key} to {path}")
        return path

    def get_uri(self, key: StorageKey) -> str:
        """Public URI for an object."""
        if not isinstance(key, str) or not key.strip():
            raise InvalidArgumentError("key cannot be empty")
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        return self.backend.get_uri(key)
