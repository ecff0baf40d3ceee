"""
Store factory - builds the hot and cold clients from configuration.

STORAGE_BACKEND selects the transports:
    s3          S3 bucket (hot) + Glacier vault (cold)
    filesystem  local directories under STORAGE_BASE_PATH
"""
import logging
from pathlib import Path

from .config import Config
from .core.cold_store import ColdStore
from .core.content_types import default_content_types, load_content_types
from .core.hashing import compute_checksum, compute_tree_hash
from .core.hot_store import HotStore
from .errors import ConfigError
from .storage import FilesystemStorage, FilesystemVault, GlacierStorage, S3Storage

logger = logging.getLogger(__name__)

BACKENDS = ('s3', 'filesystem')


def _backend_name(config) -> str:
    backend = (config.STORAGE_BACKEND or '').lower()
    if backend not in BACKENDS:
        raise ConfigError(f"Unknown STORAGE_BACKEND '{config.STORAGE_BACKEND}', expected one of {', '.join(BACKENDS)}")
    return backend


def load_configured_content_types(config=Config):
    """Content-type table from CONTENT_TYPES_FILE, or the platform defaults."""
    if not config.CONTENT_TYPES_FILE:
        return default_content_types()

    path = Path(config.CONTENT_TYPES_FILE)
    try:
        yaml_content = path.read_text()
    except OSError as e:
        raise ConfigError(f"Cannot read CONTENT_TYPES_FILE {path}: {e}") from e
    return load_content_types(yaml_content)


def make_hot_store(config=Config) -> HotStore:
    """
    Create the hot store client for the configured backend.

    Raises:
        ConfigError: If the backend is unknown or S3_BUCKET is missing
    """
    backend_name = _backend_name(config)

    if backend_name == 's3':
        if not config.S3_BUCKET:
            raise ConfigError("Set S3_BUCKET to use the s3 backend")
        backend = S3Storage(bucket=config.S3_BUCKET, endpoint_url=config.S3_ENDPOINT_URL,
                            region=config.AWS_REGION)
    else:
        backend = FilesystemStorage(base_path=config.STORAGE_BASE_PATH)

    logger.debug(f"Using {type(backend).__name__} for hot storage")
    return HotStore(
        backend,
        content_types=load_configured_content_types(config),
        max_age=config.CACHE_MAX_AGE,
        public_base_url=config.S3_PUBLIC_BASE_URL,
    )


def make_cold_store(config=Config) -> ColdStore:
    """
    Create the cold store client for the configured backend.

    Glacier verifies uploads against its SHA-256 tree hash, so that is the
    hasher used with the s3 backend.

    Raises:
        ConfigError: If the backend is unknown or GLACIER_VAULT is missing
    """
    backend_name = _backend_name(config)

    if backend_name == 's3':
        if not config.GLACIER_VAULT:
            raise ConfigError("Set GLACIER_VAULT to use the s3 backend for archives")
        backend = GlacierStorage(vault=config.GLACIER_VAULT, tier=config.GLACIER_RETRIEVAL_TIER)
        hasher = compute_tree_hash
    else:
        backend = FilesystemVault(base_path=config.STORAGE_BASE_PATH,
                                  retrieval_delay=config.VAULT_RETRIEVAL_DELAY)
        hasher = compute_checksum

    logger.debug(f"Using {type(backend).__name__} for cold storage")
    return ColdStore(backend, hasher=hasher)
