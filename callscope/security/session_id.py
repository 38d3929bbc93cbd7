"""
callscope/security/session_id.py
=================================
Session Identifier Generator - CallScope Security Layer

Responsibility:
    - Produce a 64-character lowercase hex session id from 32 random bytes
    - Draw bytes from an explicitly supplied random-byte source
      (default: the OS CSPRNG via ``secrets``)

When the secure source is unavailable the generator FAILS CLOSED with
InsecureRandomSourceError. The non-cryptographic fallback is only used when
the caller opts in with ``allow_insecure_fallback=True``; every such id is
logged as a warning and must not be treated as unguessable.
"""

import logging
import random
import secrets
from typing import Callable

logger = logging.getLogger("callscope.security.session_id")

SESSION_ID_BYTES: int = 32

RandomSource = Callable[[int], bytes]


class InsecureRandomSourceError(RuntimeError):
    """Raised when no cryptographically secure random source is available."""
    pass


def secure_random_bytes(n: int) -> bytes:
    """Default source - OS CSPRNG."""
    return secrets.token_bytes(n)


def insecure_random_bytes(n: int) -> bytes:
    """Non-cryptographic fallback. Predictable; never use for secrets."""
    return bytes(random.getrandbits(8) for _ in range(n))


def _to_hex(data: bytes) -> str:
    return "".join(f"{byte:02x}" for byte in data)


def generate_session_id(
    random_source: RandomSource | None = secure_random_bytes,
    allow_insecure_fallback: bool = False,
) -> str:
    """
    Generate a session identifier for request tracking.

    Args:
        random_source:           Callable returning ``n`` secure random bytes,
                                 or None when no secure source exists.
        allow_insecure_fallback: Use the ``random`` module when the secure
                                 source is missing or fails.

    Returns:
        Exactly 64 lowercase hex characters.

    Raises:
        InsecureRandomSourceError: If the secure source is unavailable and the
            fallback was not allowed.
    """
    data: bytes | None = None

    if random_source is not None:
        try:
            data = random_source(SESSION_ID_BYTES)
        except (NotImplementedError, OSError) as exc:
            logger.error("Secure random source failed: %s", exc)
            data = None

    if data is not None and len(data) != SESSION_ID_BYTES:
        raise InsecureRandomSourceError(
            f"Random source returned {len(data)} bytes, expected {SESSION_ID_BYTES}"
        )

    if data is None:
        if not allow_insecure_fallback:
            raise InsecureRandomSourceError(
                "No cryptographically secure random source available."
            )
        logger.warning(
            "Generating session id from a NON-cryptographic source - "
            "the id is guessable.",
        )
        data = insecure_random_bytes(SESSION_ID_BYTES)

    return _to_hex(data)
