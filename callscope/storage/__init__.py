# callscope/storage/__init__.py
# ==============================
# Storage Layer - CallScope
#
# Responsibility:
#   - Namespaced key/value storage with optional per-entry expiration
#   - Pluggable string backends (in-memory, JSON file)
#
# Public API:
#   - NamespacedStorage - set / get / remove / clear, never raises
#   - StorageOutcome    - OK | NOT_FOUND | FAILED
#   - MemoryBackend, JsonFileBackend

from callscope.storage.backends import JsonFileBackend, MemoryBackend  # noqa: F401
from callscope.storage.namespaced import (  # noqa: F401
    DEFAULT_PREFIX,
    DEFAULT_SWEEP_INTERVAL_MS,
    NamespacedStorage,
    StorageOutcome,
)
