"""
Abstract Key-Value Storage Interface

DESIGN DECISION: Persistence is a plain key-value store of JSON documents.
This allows us to:
1. Keep every collection of every user under its own key
2. Use in-memory storage for testing
3. Swap the file backend for something else later
4. Keep business logic decoupled from storage implementation

Keys are namespaced per user: `collection_key("ana@x.com", TRANSACTIONS)`
is "tx_ana@x.com". Each key is written independently; there is no
transaction spanning keys.

A value that cannot be decoded is treated as absent. Corrupted data must
degrade to an empty collection, never crash the session.
"""

import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

import structlog


class CollectionKind(str, Enum):
    """Per-user collections, with the key prefix each is stored under."""
    TRANSACTIONS = "tx"
    INVESTMENTS = "inv"
    TAXES = "tax"
    CHAT = "chat"
    AUDIT = "audit"


def collection_key(user_email: str, kind: CollectionKind) -> str:
    """Storage key for one user's collection. Emails are case-insensitive."""
    return f"{kind.value}_{user_email.strip().lower()}"


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """The backend could not be read at all."""
    pass


class StorageWriteError(StorageError):
    """A value could not be written."""
    pass


class KeyValueStore(ABC):
    """
    Abstract interface for key-value persistence.

    Implementations only move raw strings; encoding, decoding and the
    corrupted-value fallback live here.
    """

    def __init__(self):
        self._logger = structlog.get_logger(__name__)

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """
        Raw stored payload for a key.

        Returns:
            The payload, or None if the key is absent

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def _write(self, key: str, payload: str) -> None:
        """
        Store a raw payload under a key, replacing any previous value.

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All stored keys."""
        pass

    def get(self, key: str, default: Any = None) -> Any:
        """
        Decoded value for a key.

        Returns `default` when the key is absent or its payload is not
        valid JSON; the latter is logged, never raised.
        """
        payload = self._read(key)
        if payload is None:
            return default
        try:
            return json.loads(payload)
        except (json.JSONDecodeError, TypeError) as e:
            self._logger.warning(
                "storage_value_corrupted",
                key=key,
                error=str(e),
            )
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Encode and store a value.

        Raises:
            StorageWriteError: If the value is not JSON-serializable
                               or the write fails
        """
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageWriteError(f"Value for {key} is not serializable: {e}")
        self._write(key, payload)

    def get_collection(self, user_email: str, kind: CollectionKind) -> list:
        """
        A user's collection, or [] when missing or malformed.

        A stored value that decodes to something other than a list
        counts as malformed.
        """
        key = collection_key(user_email, kind)
        value = self.get(key, default=[])
        if not isinstance(value, list):
            self._logger.warning(
                "storage_collection_malformed",
                key=key,
                found=type(value).__name__,
            )
            return []
        return value

    def set_collection(
        self,
        user_email: str,
        kind: CollectionKind,
        items: list,
    ) -> None:
        self.set(collection_key(user_email, kind), items)

    def clear_user(self, user_email: str) -> int:
        """Delete every collection of a user. Returns how many keys existed."""
        return sum(
            1 for kind in CollectionKind
            if self.delete(collection_key(user_email, kind))
        )
