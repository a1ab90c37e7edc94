"""In-memory key-value store (tests and throwaway sessions)."""

from typing import Optional

from financia.services.storage.interface import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """
    Keeps serialized payloads in a dict.

    Values are stored as JSON text, exactly like the file backend, so
    decoding and corruption handling behave the same in tests.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        super().__init__()
        self._data: dict[str, str] = dict(initial or {})

    def _read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write(self, key: str, payload: str) -> None:
        self._data[key] = payload

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)
