"""Checksums for archival uploads.

Both stream hashers read from offset 0 and leave the stream rewound to offset
0, so the caller can pass the same stream straight to the upload call.
"""
import hashlib
from typing import BinaryIO, List

from vaultbridge.errors import InvalidArgumentError

CHUNK_SIZE = 64 * 1024

# Leaf size of the archival store's tree hash
TREE_HASH_CHUNK_SIZE = 1024 * 1024


def _require_seekable(stream: BinaryIO) -> None:
    if stream is None:
        raise InvalidArgumentError("stream is required")
    seekable = getattr(stream, 'seekable', None)
    if seekable is None or not seekable():
        raise InvalidArgumentError("stream must be seekable so it can be rewound after hashing")


def compute_checksum(stream: BinaryIO) -> str:
    """Compute the SHA-256 hex digest of a seekable binary stream.

    Args:
        stream: Seekable binary stream; hashed from the start

    Returns:
        64-character lowercase hex digest

    Raises:
        InvalidArgumentError: If stream is missing or not seekable
    """
    _require_seekable(stream)
    sha256 = hashlib.sha256()
    stream.seek(0)
    try:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            sha256.update(chunk)
    finally:
        stream.seek(0)
    return sha256.hexdigest()


def compute_bytes_checksum(content: bytes) -> str:
    """Compute SHA-256 hex digest of an in-memory buffer"""
    return hashlib.sha256(content).hexdigest()


def compute_tree_hash(stream: BinaryIO) -> str:
    """Compute the SHA-256 tree hash the archival store verifies uploads with.

    The content is split into 1 MiB leaves, each hashed with SHA-256; adjacent
    digests are then hashed together pairwise, level by level, an odd digest
    out being promoted unchanged, until one remains. For content of 1 MiB or
    less this equals compute_checksum.

    Args:
        stream: Seekable binary stream; hashed from the start

    Returns:
        64-character lowercase hex digest
    """
    _require_seekable(stream)
    level: List[bytes] = []
    stream.seek(0)
    try:
        for chunk in iter(lambda: stream.read(TREE_HASH_CHUNK_SIZE), b""):
            level.append(hashlib.sha256(chunk).digest())
    finally:
        stream.seek(0)

    if not level:
        return hashlib.sha256(b"").hexdigest()

    while len(level) > 1:
        parents = []
        for i in range(0, len(level) - 1, 2):
            parents.append(hashlib.sha256(level[i] + level[i + 1]).digest())
        if len(level) % 2:
            parents.append(level[-1])
        level = parents

    return level[0].hex()
