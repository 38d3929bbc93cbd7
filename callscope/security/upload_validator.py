"""
callscope/security/upload_validator.py
=======================================
Upload Validator - CallScope Security Layer

Responsibility:
    - Validate a candidate transcript file BEFORE its content is read
    - Check declared media type against the allow-list
    - Check declared byte size against the 10 MiB ceiling
    - Reject filenames that could traverse a filesystem path

Checks run in a fixed order (type → size → filename); the first failure
wins and is returned as a ValidationResult. Nothing is raised.

This module does NOT:
    - Read or decode file content
    - Sniff the real media type from bytes
    - Validate transcript text (handled by transcript_validator.py)
"""

from dataclasses import dataclass

from callscope.security.results import ValidationResult


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ALLOWED_FILE_TYPES: tuple[str, ...] = (
    "text/plain",
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MiB

_FORBIDDEN_FILENAME_PARTS: tuple[str, ...] = ("..", "/", "\\")


# ---------------------------------------------------------------------------
# Candidate file
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UploadCandidate:
    """Declared properties of a file offered for upload."""

    filename: str
    content_type: str
    size: int


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_file_upload(file: UploadCandidate) -> ValidationResult:
    """
    Validate a candidate upload against the static file policy.

    Args:
        file: Declared filename, media type and byte size.

    Returns:
        ValidationResult - valid, or invalid with a human-readable error.
    """
    if file.content_type not in ALLOWED_FILE_TYPES:
        return ValidationResult.fail(
            f"Invalid file type. Allowed types: {', '.join(ALLOWED_FILE_TYPES)}"
        )

    if file.size > MAX_FILE_SIZE:
        return ValidationResult.fail(
            f"File too large. Maximum size: {MAX_FILE_SIZE // 1024 // 1024}MB"
        )

    if any(part in file.filename for part in _FORBIDDEN_FILENAME_PARTS):
        return ValidationResult.fail(
            "Invalid filename. Filenames cannot contain path separators."
        )

    return ValidationResult.ok()
