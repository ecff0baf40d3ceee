import hashlib
import json
import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Dict, Optional

from vaultbridge.errors import InvalidArgumentError, ObjectNotFoundError, TransportError
from .base import HotStorageBackend

logger = logging.getLogger(__name__)


class FilesystemStorage(HotStorageBackend):
    """
    Filesystem-based object storage.
    Stores objects under base/objects/<key> with per-object metadata in
    base/meta/<key>.json, mirroring what S3 records alongside an object.
    """

    def __init__(self, base_path: str = '.vaultbridge'):
        """
        Initialize filesystem storage.

        Args:
            base_path: Base directory for storing objects
        """
        self.base_path = Path(base_path)
        self.objects_path = self.base_path / 'objects'
        self.meta_path = self.base_path / 'meta'
        self.objects_path.mkdir(parents=True, exist_ok=True)
        self.meta_path.mkdir(parents=True, exist_ok=True)

    def _check_key(self, key: str) -> PurePosixPath:
        relative = PurePosixPath(key)
        if not key or relative.is_absolute() or any(part in ('', '..', '.') for part in key.split('/')):
            raise InvalidArgumentError(f"Invalid storage key: {key!r}")
        return relative

    def _make_path(self, key: str) -> Path:
        """Object path for key: base/objects/<key>"""
        return self.objects_path.joinpath(*self._check_key(key).parts)

    def _make_meta_path(self, key: str) -> Path:
        relative = self._check_key(key)
        return self.meta_path.joinpath(*relative.parent.parts, relative.name + '.json')

    def _etag(self, content: bytes) -> str:
        """MD5 in quotes, as S3 reports for single-part uploads"""
        return f'"{hashlib.md5(content).hexdigest()}"'

    def put(
        self,
        key: str,
        content: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
        public: bool = False,
    ) -> None:
        path = self._make_path(key)
        meta_path = self._make_meta_path(key)
        metadata = {
            'content_type': content_type,
            'cache_control': cache_control,
            'public': public,
            'etag': self._etag(content),
            'size': len(content),
        }

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
            meta_path.parent.mkdir(parents=True, exist_ok=True)
            meta_path.write_text(json.dumps(metadata))
        except OSError as e:
            raise TransportError(f"write {key} to filesystem", str(e)) from e

        logger.debug(f"Stored {path} ({len(content)} bytes, {content_type})")

    def get(self, key: str) -> bytes:
        path = self._make_path(key)
        if not path.is_file():
            raise ObjectNotFoundError(f"read {key} from filesystem", "no such key", code='NoSuchKey')

        try:
            return path.read_bytes()
        except OSError as e:
            raise TransportError(f"read {key} from filesystem", str(e)) from e

    def download(self, key: str, path: Path) -> None:
        source = self._make_path(key)
        if not source.is_file():
            raise ObjectNotFoundError(f"download {key} from filesystem", "no such key", code='NoSuchKey')

        try:
            shutil.copyfile(source, path)
        except OSError as e:
            raise TransportError(f"download {key} from filesystem", str(e)) from e

    def get_metadata(self, key: str) -> dict:
        """
        Metadata recorded when key was stored.

        Returns:
            Dict with content_type, cache_control, public, etag and size
        """
        meta_path = self._make_meta_path(key)
        if not meta_path.is_file():
            raise ObjectNotFoundError(f"read metadata of {key}", "no such key", code='NoSuchKey')
        return json.loads(meta_path.read_text())

    def delete(self, key: str) -> None:
        path = self._make_path(key)
        meta_path = self._make_meta_path(key)

        try:
            path.unlink(missing_ok=True)
            meta_path.unlink(missing_ok=True)
        except OSError as e:
            raise TransportError(f"delete {key} from filesystem", str(e)) from e

        # Remove empty parent directories
        for root, leaf in ((self.objects_path, path), (self.meta_path, meta_path)):
            parent = leaf.parent
            while parent != root:
                try:
                    parent.rmdir()
                except OSError:
                    break  # Directory not empty
                parent = parent.parent

    def list(self, prefix: str = '') -> Dict[str, str]:
        objects = {}
        for path in sorted(self.objects_path.rglob('*')):
            if not path.is_file():
                continue
            key = path.relative_to(self.objects_path).as_posix()
            if not key.startswith(prefix):
                continue
            try:
                objects[key] = self.get_metadata(key)['etag']
            except ObjectNotFoundError:
                objects[key] = self._etag(path.read_bytes())
        return objects

    def copy(self, source_key: str, dest_key: str) -> None:
        source = self._make_path(source_key)
        if not source.is_file():
            raise ObjectNotFoundError(f"copy {source_key} to {dest_key}", "no such key", code='NoSuchKey')

        dest = self._make_path(dest_key)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, dest)
            source_meta = self._make_meta_path(source_key)
            if source_meta.is_file():
                dest_meta = self._make_meta_path(dest_key)
                dest_meta.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source_meta, dest_meta)
        except OSError as e:
            raise TransportError(f"copy {source_key} to {dest_key}", str(e)) from e

    def get_uri(self, key: str) -> str:
        """file:// URI of the stored object"""
        return self._make_path(key).absolute().as_uri()
