"""
callscope/security/csp.py
==========================
CSP Violation Hook - CallScope Security Layer

Responsibility:
    - Normalize a browser-delivered content-security-policy violation into
      a CspViolation record
    - Log it as a warning for diagnostic visibility

Accepted payload shapes:
    - SecurityPolicyViolationEvent fields
      (blockedURI, violatedDirective, originalPolicy, sourceFile, lineNumber)
    - ``report-uri`` body: {"csp-report": {"blocked-uri": ..., ...}}

This module does NOT:
    - Block, rewrite or otherwise alter responses
    - Forward reports to an external monitoring service
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger("callscope.security.csp")

# report-uri (hyphenated) name → event (camelCase) name
_REPORT_FIELD_ALIASES: dict[str, str] = {
    "blocked-uri": "blockedURI",
    "violated-directive": "violatedDirective",
    "original-policy": "originalPolicy",
    "source-file": "sourceFile",
    "line-number": "lineNumber",
}


@dataclass(frozen=True)
class CspViolation:
    """A single CSP violation report."""

    blocked_uri: str | None = None
    violated_directive: str | None = None
    original_policy: str | None = None
    source_file: str | None = None
    line_number: int | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CspViolation":
        """Build from either the event shape or a ``report-uri`` body."""
        if not isinstance(payload, dict):
            raise ValueError(f"CSP payload must be an object, got {type(payload).__name__}")

        report = payload.get("csp-report", payload)
        if not isinstance(report, dict):
            raise ValueError("'csp-report' must be an object")

        fields = {
            _REPORT_FIELD_ALIASES.get(key, key): value
            for key, value in report.items()
        }

        line_number = fields.get("lineNumber")
        try:
            line_number = int(line_number) if line_number is not None else None
        except (TypeError, ValueError):
            line_number = None

        return cls(
            blocked_uri=fields.get("blockedURI"),
            violated_directive=fields.get("violatedDirective"),
            original_policy=fields.get("originalPolicy"),
            source_file=fields.get("sourceFile"),
            line_number=line_number,
        )


def handle_csp_violation(violation: CspViolation | dict[str, Any]) -> None:
    """Log a CSP violation. Never raises for a well-formed record."""
    if isinstance(violation, dict):
        violation = CspViolation.from_payload(violation)

    logger.warning("CSP Violation: %s", asdict(violation))
