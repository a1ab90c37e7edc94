"""Services package."""

from financia.services.auth import (
    AuthError,
    InvalidCredentialsError,
    User,
    UserAlreadyExistsError,
    UserDirectory,
)
from financia.services.storage import (
    CollectionKind,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    StorageError,
    StorageReadError,
    StorageWriteError,
    collection_key,
)

__all__ = [
    # Accounts
    "AuthError",
    "InvalidCredentialsError",
    "User",
    "UserAlreadyExistsError",
    "UserDirectory",
    # Storage services
    "CollectionKind",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "collection_key",
]
