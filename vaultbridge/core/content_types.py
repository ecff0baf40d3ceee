"""
Content-type resolution for uploads.

The extension -> MIME table is always passed in; nothing here reads a
process-wide registry at lookup time. Tables are normalized once (lower-case
keys with a leading dot) and kept read-only.
"""
import mimetypes
import re
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

from vaultbridge.errors import InvalidArgumentError

DEFAULT_CONTENT_TYPE = 'application/octet-stream'

_PATH_SEPARATORS = re.compile(r'[\\/]')


def normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    if not extension.startswith('.'):
        extension = '.' + extension
    return extension


def freeze_table(table: Mapping[str, str]) -> Mapping[str, str]:
    """Return a read-only copy of table with normalized extension keys."""
    return MappingProxyType({normalize_extension(ext): mime for ext, mime in table.items()})


def file_extension(file_name: str) -> Optional[str]:
    """
    Extension of the last path segment, lower-cased with a leading dot.

    Returns None when the name has no dot or ends with one.
    """
    base = _PATH_SEPARATORS.split(file_name)[-1]
    if '.' not in base:
        return None
    suffix = base.rsplit('.', 1)[1]
    if not suffix:
        return None
    return '.' + suffix.lower()


def resolve_content_type(file_name: str, table: Mapping[str, str]) -> str:
    """
    Look up the MIME type for file_name in table.

    Matching is case-insensitive on the extension. Unknown or missing
    extensions resolve to application/octet-stream.

    Raises:
        InvalidArgumentError: If file_name is None or not a string
    """
    if file_name is None or not isinstance(file_name, str):
        raise InvalidArgumentError("file_name is required")

    extension = file_extension(file_name)
    if extension is None:
        return DEFAULT_CONTENT_TYPE

    mime = table.get(extension)
    if mime is not None:
        return mime
    # Table not normalized by freeze_table
    for ext, value in table.items():
        if normalize_extension(ext) == extension:
            return value
    return DEFAULT_CONTENT_TYPE


class ContentTypeResolver:
    """Resolves MIME types against an injected, read-only table."""

    def __init__(self, table: Mapping[str, str]):
        self.table = freeze_table(table)

    def resolve(self, file_name: str) -> str:
        return resolve_content_type(file_name, self.table)


def load_content_types(yaml_content: str) -> Mapping[str, str]:
    """
    Parse a content-type table from YAML.

    The document must be a mapping of extension to MIME type, e.g.::

        .pdf: application/pdf
        png: image/png

    Raises:
        InvalidArgumentError: If the YAML is invalid or not a string mapping
    """
    try:
        data = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise InvalidArgumentError(f"Invalid YAML: {e}") from e

    if data is None:
        return MappingProxyType({})
    if not isinstance(data, dict):
        raise InvalidArgumentError("Content-type table must be a mapping of extension to MIME type")
    for ext, mime in data.items():
        if not isinstance(ext, str) or not isinstance(mime, str):
            raise InvalidArgumentError(f"Invalid content-type entry: {ext!r}: {mime!r}")
    return freeze_table(data)


def default_content_types() -> Mapping[str, str]:
    """Table built from the platform MIME registry (strict types only)."""
    registry = mimetypes.MimeTypes()
    return freeze_table(registry.types_map[True])
