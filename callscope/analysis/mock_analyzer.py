"""
callscope/analysis/mock_analyzer.py
====================================
Placeholder Call Analysis - CallScope Analysis Layer

Responsibility:
    - Stand in for the (not yet built) transcript-analysis backend
    - Require a transcript and a prospect name
    - Suspend for a fixed delay, then return a hard-coded AnalysisResult

This module does NOT:
    - Inspect the transcript content
    - Retry, cancel or time out - the delay always runs to completion
    - Persist results (the API layer caches them)
"""

import asyncio
import copy
import logging
import time
from datetime import datetime, timezone
from typing import Any

from callscope.analysis.models import CallMetadata

logger = logging.getLogger("callscope.analysis")

DEFAULT_DELAY_SECONDS: float = 3.0
MOCK_PROCESSING_TIME_MS: int = 2847
MISSING_INPUTS_MESSAGE: str = "Please provide both transcript and prospect name"


class AnalysisInputError(ValueError):
    """Raised when the analysis is requested without its required inputs."""
    pass


# ---------------------------------------------------------------------------
# Hard-coded payload
# ---------------------------------------------------------------------------

_MOCK_ANALYSES: dict[str, Any] = {
    "conversation": {
        "conversationScorecard": {
            "overallQuality": 78,
            "discovery": 85,
            "rapportBuilding": 72,
            "valuePresentation": 68,
            "objectionHandling": 75,
            "nextStepsClarity": 82,
        },
    },
    "psychology": {
        "personalityType": {
            "primary": "analytical",
            "confidence": 85,
        },
    },
    "objections": {},
    "dealRisk": {},
    "actionPlan": {},
    "qualification": {
        "qualificationSummary": {
            "opportunityScore": 78,
            "recommendation": "proceed_cautiously",
        },
    },
}

_MOCK_SUMMARY: dict[str, Any] = {
    "overallQualificationScore": 78,
    "investmentReadiness": "medium",
    "keyInsights": [
        "Strong analytical personality with data-driven decision making",
        "Family involvement crucial for decision process",
        "Budget qualified but timeline needs clarification",
    ],
    "criticalActions": [
        "Schedule joint call with spouse",
        "Send IRA rollover education materials",
        "Address gold storage concerns",
    ],
    "riskLevel": "medium",
    "recommendedNextSteps": [
        "Follow up within 24 hours",
        "Provide educational materials",
        "Schedule family consultation",
    ],
}


def _build_result(now: datetime) -> dict[str, Any]:
    return {
        "analysisId": f"analysis-{int(now.timestamp() * 1000)}",
        "timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "processingTime": MOCK_PROCESSING_TIME_MS,
        "analyses": copy.deepcopy(_MOCK_ANALYSES),
        "summary": copy.deepcopy(_MOCK_SUMMARY),
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def analyze_transcript(
    transcript: str,
    metadata: CallMetadata,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
) -> dict[str, Any]:
    """
    Run the placeholder analysis.

    Args:
        transcript:    Sanitized, validated transcript text.
        metadata:      Prospect / call details; ``prospect_name`` is required.
        delay_seconds: Simulated processing time.

    Returns:
        AnalysisResult dict (analysisId, timestamp, processingTime,
        analyses, summary).

    Raises:
        AnalysisInputError: If the transcript or prospect name is missing.
    """
    if not transcript or not metadata.prospect_name.strip():
        raise AnalysisInputError(MISSING_INPUTS_MESSAGE)

    logger.info(
        "Analysis started for prospect '%s' (%d chars).",
        metadata.prospect_name,
        len(transcript),
    )
    started = time.monotonic()

    await asyncio.sleep(delay_seconds)

    result = _build_result(datetime.now(timezone.utc))
    logger.info(
        "Analysis %s complete in %.2fs.",
        result["analysisId"],
        time.monotonic() - started,
    )
    return result
