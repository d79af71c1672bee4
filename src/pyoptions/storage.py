"""Key/value persistence backends for the options map."""

from __future__ import annotations

import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Protocol

from pyoptions.exceptions import OptionsStorageError


class OptionsStorage(Protocol):
    """Minimal backend interface: read and write single keys."""

    async def get_one(self, key: str) -> Any | None: ...

    async def set_one(self, key: str, value: Any) -> None: ...


class MemoryStorage:
    """Dict-backed storage; every write is recorded in :attr:`writes`."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self.writes: list[tuple[str, Any]] = []

    async def get_one(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set_one(self, key: str, value: Any) -> None:
        value = copy.deepcopy(value)
        self._data[key] = value
        self.writes.append((key, value))


class JsonFileStorage:
    """All keys kept in one JSON document on disk.

    File I/O runs in the loop's default executor.  Writes replace the
    document atomically through a temporary sibling file.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise OptionsStorageError(f"Cannot read {self._path}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise OptionsStorageError(f"{self._path} is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise OptionsStorageError(f"{self._path} does not hold a JSON object")
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        tmp = self._path.with_name(f".{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            raise OptionsStorageError(f"Cannot write {self._path}: {exc}") from exc

    def _set_one_sync(self, key: str, value: Any) -> None:
        document = self._read_document()
        document[key] = value
        self._write_document(document)

    async def get_one(self, key: str) -> Any | None:
        loop = asyncio.get_running_loop()
        document = await loop.run_in_executor(None, self._read_document)
        return document.get(key)

    async def set_one(self, key: str, value: Any) -> None:
        loop = asyncio.get_running_loop()
        async with self._lock:
            try:
                await loop.run_in_executor(None, self._set_one_sync, key, value)
            except OptionsStorageError as exc:
                exc.key = key
                raise
