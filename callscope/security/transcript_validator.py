"""
callscope/security/transcript_validator.py
===========================================
Transcript Validator - CallScope Security Layer

Responsibility:
    - Reject empty or whitespace-only transcripts
    - Reject transcripts longer than MAX_TRANSCRIPT_LENGTH characters
    - Reject transcripts too short for meaningful analysis

Checks short-circuit in that order. Failures are returned, never raised.
"""

from callscope.security.results import ValidationResult

MAX_TRANSCRIPT_LENGTH: int = 100_000  # characters
MIN_WORD_COUNT: int = 50


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens after trimming."""
    return len(text.split())


def validate_transcript(text: str) -> ValidationResult:
    """
    Validate transcript content before analysis.

    Args:
        text: Transcript text as typed or uploaded.

    Returns:
        ValidationResult - valid, or invalid with a human-readable error.
    """
    if not text or not text.strip():
        return ValidationResult.fail("Transcript cannot be empty")

    if len(text) > MAX_TRANSCRIPT_LENGTH:
        return ValidationResult.fail(
            f"Transcript too long. Maximum length: {MAX_TRANSCRIPT_LENGTH} characters"
        )

    if count_words(text) < MIN_WORD_COUNT:
        return ValidationResult.fail(
            "Transcript appears too short for meaningful analysis "
            f"(minimum {MIN_WORD_COUNT} words)"
        )

    return ValidationResult.ok()
