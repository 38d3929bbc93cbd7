"""
callscope/storage/namespaced.py
================================
Namespaced Expiring Storage - CallScope Storage Layer

Responsibility:
    - Prefix every key with ``<prefix>_`` so unrelated data sharing the
      same backend is never touched
    - Wrap values as ``{"value", "timestamp", "expiration"}`` JSON
    - Expire entries lazily: ``get`` deletes an entry once it has expired
    - Sweep the whole namespace from ``set`` at most once per
      ``sweep_interval_ms`` so entries nobody reads again are still pruned
    - Bulk-clear only the keys under this namespace

Storage is BEST-EFFORT. Public operations (set / get / remove / clear) never
raise: backend errors, serialization failures and corrupt entries are
logged as warnings and surface as absence or a no-op. The ``*_outcome``
variants expose the StorageOutcome for callers and tests that need it.
"""

import json
import logging
from collections.abc import MutableMapping
from enum import Enum
from typing import Any

from callscope.clock import Clock, now_ms
from callscope.storage.backends import MemoryBackend

logger = logging.getLogger("callscope.storage")

DEFAULT_PREFIX: str = "goldira"
DEFAULT_SWEEP_INTERVAL_MS: int = 60 * 1000


class StorageOutcome(str, Enum):
    """Result of a single storage operation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class NamespacedStorage:
    """Prefix-scoped, expiring key/value store over a string backend."""

    def __init__(
        self,
        backend: MutableMapping | None = None,
        prefix: str = DEFAULT_PREFIX,
        clock: Clock = now_ms,
        sweep_interval_ms: int | None = DEFAULT_SWEEP_INTERVAL_MS,
    ):
        if not prefix:
            raise ValueError("Storage prefix must be non-empty.")
        self.backend: MutableMapping = backend if backend is not None else MemoryBackend()
        self.prefix = prefix
        self._clock = clock
        self.sweep_interval_ms = sweep_interval_ms
        self._last_sweep = clock()

    def _full_key(self, key: str) -> str:
        return f"{self.prefix}_{key}"

    @property
    def _key_prefix(self) -> str:
        return f"{self.prefix}_"

    # -----------------------------------------------------------------
    # Outcome-returning operations
    # -----------------------------------------------------------------

    def set_outcome(
        self, key: str, value: Any, expiration_ms: int | None = None,
    ) -> StorageOutcome:
        now = self._clock()
        data = {
            "value": value,
            "timestamp": now,
            "expiration": now + expiration_ms if expiration_ms else None,
        }
        try:
            self.backend[self._full_key(key)] = json.dumps(data)
        except Exception as exc:
            logger.warning("Failed to save '%s' to storage: %s", key, exc)
            return StorageOutcome.FAILED

        if self.sweep_interval_ms and now - self._last_sweep >= self.sweep_interval_ms:
            self.sweep_expired()
        return StorageOutcome.OK

    def get_outcome(self, key: str) -> tuple[StorageOutcome, Any]:
        full_key = self._full_key(key)
        try:
            item = self.backend.get(full_key)
            if not item:
                return StorageOutcome.NOT_FOUND, None

            data = json.loads(item)
            expiration = data.get("expiration")
            if expiration and self._clock() > expiration:
                del self.backend[full_key]
                logger.debug("Storage entry '%s' expired and was removed.", key)
                return StorageOutcome.NOT_FOUND, None

            return StorageOutcome.OK, data["value"]
        except Exception as exc:
            logger.warning("Failed to read '%s' from storage: %s", key, exc)
            return StorageOutcome.FAILED, None

    def remove_outcome(self, key: str) -> StorageOutcome:
        try:
            self.backend.pop(self._full_key(key))
        except KeyError:
            return StorageOutcome.NOT_FOUND
        except Exception as exc:
            logger.warning("Failed to remove '%s' from storage: %s", key, exc)
            return StorageOutcome.FAILED
        return StorageOutcome.OK

    def clear_outcome(self) -> StorageOutcome:
        try:
            keys = [k for k in list(self.backend) if k.startswith(self._key_prefix)]
            for full_key in keys:
                del self.backend[full_key]
        except Exception as exc:
            logger.warning("Failed to clear storage namespace '%s': %s", self.prefix, exc)
            return StorageOutcome.FAILED
        logger.info("Cleared %d entries from storage namespace '%s'.", len(keys), self.prefix)
        return StorageOutcome.OK

    # -----------------------------------------------------------------
    # Public contract - failures surface as absence / no-op
    # -----------------------------------------------------------------

    def set(self, key: str, value: Any, expiration_ms: int | None = None) -> None:
        self.set_outcome(key, value, expiration_ms)

    def get(self, key: str) -> Any:
        _, value = self.get_outcome(key)
        return value

    def remove(self, key: str) -> None:
        self.remove_outcome(key)

    def clear(self) -> None:
        self.clear_outcome()

    # -----------------------------------------------------------------
    # Maintenance
    # -----------------------------------------------------------------

    def namespaced_keys(self) -> list[str]:
        """Unprefixed keys currently held under this namespace."""
        try:
            return [
                k[len(self._key_prefix):]
                for k in list(self.backend)
                if k.startswith(self._key_prefix)
            ]
        except Exception as exc:
            logger.warning("Failed to list storage namespace '%s': %s", self.prefix, exc)
            return []

    def sweep_expired(self) -> int:
        """
        Read every namespaced entry once so ``get`` prunes the expired ones.

        Returns:
            Number of entries removed.
        """
        self._last_sweep = self._clock()
        keys = self.namespaced_keys()
        for key in keys:
            self.get(key)
        pruned = len(keys) - len(self.namespaced_keys())
        if pruned:
            logger.info("Storage sweep pruned %d expired entries.", pruned)
        return max(0, pruned)
