from .base import HotStorageBackend, ColdStorageBackend
from .s3_storage import S3Storage
from .glacier_storage import GlacierStorage
from .filesystem import FilesystemStorage
from .filesystem_vault import FilesystemVault

__all__ = ['HotStorageBackend', 'ColdStorageBackend', 'S3Storage', 'GlacierStorage',
           'FilesystemStorage', 'FilesystemVault']
