"""
callscope/security/results.py
==============================
Validation Result - CallScope Security Layer

Responsibility:
    - Define the result value returned by every input validator
    - Carry a human-readable error for the caller to surface

Validation failures are NEVER raised. Callers inspect ``valid`` and decide
how to present ``error``.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating an upload or a transcript."""

    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Serialize as ``{valid, error?}`` - ``error`` is omitted when valid."""
        if self.error is None:
            return {"valid": self.valid}
        return {"valid": self.valid, "error": self.error}


# Aliases matching the two producers
UploadValidationResult = ValidationResult
TranscriptValidationResult = ValidationResult
