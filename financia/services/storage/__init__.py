"""
Storage Services Package

Provides the key-value storage interface and its implementations.
The JSON file backend is the default; the in-memory one backs tests.
"""

from financia.services.storage.interface import (
    CollectionKind,
    KeyValueStore,
    StorageError,
    StorageReadError,
    StorageWriteError,
    collection_key,
)
from financia.services.storage.json_file import JsonFileKeyValueStore
from financia.services.storage.memory import InMemoryKeyValueStore

__all__ = [
    # Interface
    "CollectionKind",
    "KeyValueStore",
    "collection_key",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
