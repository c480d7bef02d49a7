"""
Key/value storage areas.

Each storage area holds one JSON document mapping keys to JSON values.
Snippet domains and the embedding cache each live in their own area.
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from snippet_vault.core.exceptions import StorageDecodeError, StorageFailureError
from snippet_vault.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path


class KeyValueStore(ABC):
    """Asynchronous key/value storage area."""

    name: str

    @abstractmethod
    async def get(self, keys: Sequence[str]) -> dict[str, Any]:
        """
        Read values for the given keys.

        Keys that are not stored are absent from the result.
        """
        ...

    @abstractmethod
    async def set(self, mapping: Mapping[str, Any]) -> None:
        """Write all values in the mapping, replacing existing values."""
        ...


def _encoded_size(document: Mapping[str, Any]) -> int:
    return len(json.dumps(document, separators=(",", ":")).encode("utf-8"))


class InMemoryKeyValueStore(KeyValueStore):
    """
    Process-local storage area.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, name: str, quota_bytes: int | None = None) -> None:
        self.name = name
        self.quota_bytes = quota_bytes
        self._data: dict[str, Any] = {}

    async def get(self, keys: Sequence[str]) -> dict[str, Any]:
        return {key: copy.deepcopy(self._data[key]) for key in keys if key in self._data}

    async def set(self, mapping: Mapping[str, Any]) -> None:
        updated = {**self._data, **copy.deepcopy(dict(mapping))}
        if self.quota_bytes is not None:
            size = _encoded_size(updated)
            if size > self.quota_bytes:
                raise StorageFailureError(
                    f"Storage write failed: {self.name} storage quota exceeded",
                    {"area": self.name, "size_bytes": size, "quota_bytes": self.quota_bytes},
                    error="quota_exceeded",
                )
        self._data = updated


class JsonFileKeyValueStore(KeyValueStore):
    """
    File-backed storage area.

    The whole area is stored as a single JSON document. Writes go to a
    temporary file first and replace the document atomically. File I/O
    runs in a worker thread.
    """

    def __init__(self, name: str, path: Path, quota_bytes: int | None) -> None:
        self.name = name
        self.path = path
        self.quota_bytes = quota_bytes
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open(encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageDecodeError(
                f"Storage read failed: {self.name} storage is not valid JSON",
                {"area": self.name, "path": str(self.path), "reason": str(e)},
            ) from e
        except OSError as e:
            raise StorageFailureError(
                f"Storage read failed: {e}",
                {"area": self.name, "path": str(self.path)},
            ) from e

        if not isinstance(document, dict):
            raise StorageDecodeError(
                f"Storage read failed: {self.name} storage must be a JSON object",
                {"area": self.name, "path": str(self.path)},
            )
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        payload = json.dumps(document, separators=(",", ":"))
        size = len(payload.encode("utf-8"))
        if self.quota_bytes is not None and size > self.quota_bytes:
            raise StorageFailureError(
                f"Storage write failed: {self.name} storage quota exceeded",
                {"area": self.name, "size_bytes": size, "quota_bytes": self.quota_bytes},
                error="quota_exceeded",
            )

        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            get_logger(__name__).error(
                "Storage write failed",
                extra={"area": self.name, "path": str(self.path), "error": str(e)},
            )
            raise StorageFailureError(
                f"Storage write failed: {e}",
                {"area": self.name, "path": str(self.path)},
            ) from e

    def _get_sync(self, keys: Sequence[str]) -> dict[str, Any]:
        document = self._read_document()
        return {key: document[key] for key in keys if key in document}

    def _set_sync(self, mapping: Mapping[str, Any]) -> None:
        document = self._read_document()
        document.update(mapping)
        self._write_document(document)

    async def get(self, keys: Sequence[str]) -> dict[str, Any]:
        return await asyncio.to_thread(self._get_sync, list(keys))

    async def set(self, mapping: Mapping[str, Any]) -> None:
        # Snapshot on the loop thread; callers may mutate their objects while the write runs
        await asyncio.to_thread(self._set_sync, copy.deepcopy(dict(mapping)))
