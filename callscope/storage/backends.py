"""
callscope/storage/backends.py
==============================
Key/Value Backends - CallScope Storage Layer

Responsibility:
    - Provide the origin-scoped string → string store that
      NamespacedStorage writes into
    - MemoryBackend:   process-local dict
    - JsonFileBackend: one JSON document on disk, rewritten on every mutation

Any ``MutableMapping[str, str]`` can be used as a backend. Backends raise on
failure (OSError, ValueError, ...); absorbing failures is the job of
NamespacedStorage, not of the backend.
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterator, MutableMapping

logger = logging.getLogger("callscope.storage.backends")


class MemoryBackend(dict):
    """In-memory backend. Contents are lost when the process exits."""
    pass


class JsonFileBackend(MutableMapping):
    """
    File-backed backend.

    The whole store lives in a single JSON object. Every read loads the
    file, every write replaces it atomically (temp file + ``os.replace``),
    so several app instances pointed at the same path see each other's
    writes.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)

    # -- file I/O -----------------------------------------------------------

    def _load(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} does not hold a JSON object")
        return data

    def _dump(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.debug("Storage file %s written (%d keys).", self.path, len(data))

    # -- MutableMapping -----------------------------------------------------

    def __getitem__(self, key: str) -> str:
        return self._load()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def __delitem__(self, key: str) -> None:
        data = self._load()
        del data[key]
        self._dump(data)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._load()))

    def __len__(self) -> int:
        return len(self._load())

    def __repr__(self) -> str:
        return f"JsonFileBackend(path={self.path!r})"
