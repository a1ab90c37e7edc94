"""
JSON File Storage Implementation

DESIGN DECISION: A directory of small JSON files is the default backend
because:
1. Data stays on the user's machine, like the browser storage it replaces
2. No database setup required
3. Users can inspect or back up their data by copying a folder

TRADEOFFS:
- One file per key; no cross-key transactions (none are needed)
- Whole collections are rewritten on every change (fine for personal use)

Writes go to a temporary file that is then renamed over the target, so a
reader never sees a half-written collection.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, unquote

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from financia.services.storage.interface import (
    KeyValueStore,
    StorageReadError,
    StorageWriteError,
)


SUFFIX = ".json"
TMP_PREFIX = ".tmp-"


def key_to_filename(key: str) -> str:
    """
    Filesystem-safe file name for a key.

    Percent-encoding keeps distinct keys in distinct files and can be
    reversed by filename_to_key(). A leading dot is encoded too, so no
    key is mistaken for a hidden or temporary file.
    """
    name = quote(key, safe="@+")
    if name.startswith("."):
        name = "%2E" + name[1:]
    return name + SUFFIX


def filename_to_key(filename: str) -> str:
    return unquote(filename[: -len(SUFFIX)])


class JsonFileKeyValueStore(KeyValueStore):
    """
    Stores each key as `<directory>/<key>.json`.

    Failed writes (OSError) are retried with exponential backoff
    before giving up with StorageWriteError.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        write_attempts: int = 3,
    ):
        super().__init__()
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._write_attempts = write_attempts

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / key_to_filename(key)

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            # Undecodable bytes are corruption, handled like bad JSON
            self._logger.warning("storage_file_undecodable", key=key, error=str(e))
            return ""
        except OSError as e:
            raise StorageReadError(f"Failed to read {path}: {e}")

    def _replace_file(self, path: Path, payload: str) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory,
            prefix=TMP_PREFIX,
            suffix=SUFFIX,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _write(self, key: str, payload: str) -> None:
        path = self._path(key)
        retrying = Retrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.1, max=1),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            retrying(self._replace_file, path, payload)
        except OSError as e:
            raise StorageWriteError(f"Failed to write {path}: {e}")

    def delete(self, key: str) -> bool:
        try:
            self._path(key).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Failed to delete {key}: {e}")

    def keys(self) -> list[str]:
        return sorted(
            filename_to_key(path.name)
            for path in self._directory.glob(f"*{SUFFIX}")
            if not path.name.startswith(TMP_PREFIX)
        )
