"""vaultbridge - one client for hot object storage and cold archival storage."""
from .core import (ColdStore, HotStore, build_key, compute_checksum, resolve_content_type,
                   wait_for_retrieval)
from .factory import make_cold_store, make_hot_store
from .models import ArchiveDescriptor, ArchiveState, JobStatus, RetrievalJob

__all__ = ['ColdStore', 'HotStore', 'build_key', 'compute_checksum', 'resolve_content_type',
           'wait_for_retrieval', 'make_cold_store', 'make_hot_store',
           'ArchiveDescriptor', 'ArchiveState', 'JobStatus', 'RetrievalJob']
