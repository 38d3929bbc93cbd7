# callscope/analysis/__init__.py
# ===============================
# Analysis Layer - CallScope
#
# Responsibility:
#   - Call metadata and analyze-request models
#   - Placeholder analysis returning a fixed scorecard after a delay
#
# Public API:
#   - analyze_transcript() - async, raises AnalysisInputError on missing inputs

from callscope.analysis.mock_analyzer import (  # noqa: F401
    MISSING_INPUTS_MESSAGE,
    AnalysisInputError,
    analyze_transcript,
)
from callscope.analysis.models import AnalyzeRequest, CallMetadata  # noqa: F401
