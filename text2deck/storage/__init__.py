"""Shared key/value storage.

Public API:
    KeyValueBackend          - Abstract put/get-with-TTL capability
    RedisKeyValueBackend     - Redis-backed production store
    InMemoryKeyValueBackend  - Dict-backed store for dev/testing
    get_kv_backend           - Factory: selects backend from settings
"""

from text2deck.storage.backend import (
    InMemoryKeyValueBackend,
    KeyValueBackend,
    RedisKeyValueBackend,
    get_kv_backend,
)

__all__ = [
    "KeyValueBackend",
    "RedisKeyValueBackend",
    "InMemoryKeyValueBackend",
    "get_kv_backend",
]
