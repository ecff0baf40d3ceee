from .keys import StorageKey, TickClock, build_key
from .content_types import (ContentTypeResolver, DEFAULT_CONTENT_TYPE, default_content_types,
                            load_content_types, resolve_content_type)
from .hashing import compute_bytes_checksum, compute_checksum, compute_tree_hash
from .hot_store import HotStore
from .cold_store import ColdStore
from .polling import wait_for_retrieval

__all__ = ['StorageKey', 'TickClock', 'build_key', 'ContentTypeResolver', 'DEFAULT_CONTENT_TYPE',
           'default_content_types', 'load_content_types', 'resolve_content_type',
           'compute_bytes_checksum', 'compute_checksum', 'compute_tree_hash',
           'HotStore', 'ColdStore', 'wait_for_retrieval']
