# callscope/security/__init__.py
# ===============================
# Security Layer - CallScope
#
# Responsibility:
#   - Upload validation (type / size / filename)
#   - Input sanitization (script, tag, handler stripping)
#   - Transcript validation (empty / length / word count)
#   - Session id generation (secure source, explicit insecure fallback)
#   - Sliding-window rate limiting
#   - CSP violation logging and one-time startup initialization
#
# Validators RETURN a ValidationResult; they never raise for bad input.

from callscope.security.csp import CspViolation, handle_csp_violation  # noqa: F401
from callscope.security.rate_limiter import (  # noqa: F401
    RateLimitDecision,
    SlidingWindowRateLimiter,
    create_rate_limiter,
)
from callscope.security.results import ValidationResult  # noqa: F401
from callscope.security.sanitizer import sanitize_input  # noqa: F401
from callscope.security.session_id import (  # noqa: F401
    InsecureRandomSourceError,
    generate_session_id,
)
from callscope.security.transcript_validator import validate_transcript  # noqa: F401
from callscope.security.upload_validator import (  # noqa: F401
    UploadCandidate,
    validate_file_upload,
)
