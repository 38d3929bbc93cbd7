"""
callscope/analysis/models.py
=============================
Call Metadata & Request Models - CallScope Analysis Layer

Responsibility:
    - Describe the prospect / call metadata captured alongside a transcript
    - Describe the analyze request body accepted by the API

Field aliases follow the dashboard's camelCase JSON (``prospectName``);
snake_case names are accepted as well.
"""

from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CallMetadata(BaseModel):
    """Prospect and call details entered next to the transcript."""

    model_config = ConfigDict(populate_by_name=True)

    prospect_name: str = Field(default="", alias="prospectName")
    prospect_age: str = Field(default="", alias="prospectAge")
    retirement_status: str = Field(default="", alias="retirementStatus")
    account_types: List[str] = Field(default_factory=list, alias="accountTypes")
    account_values: str = Field(default="", alias="accountValues")
    family_members: str = Field(default="", alias="familyMembers")
    investment_experience: str = Field(default="", alias="investmentExperience")
    gold_ira_interest: str = Field(default="", alias="goldIRAInterest")
    current_concerns: str = Field(default="", alias="currentConcerns")
    timeframe: str = ""
    duration: str = ""
    sales_rep: str = Field(default="", alias="salesRep")
    call_purpose: str = Field(default="", alias="callPurpose")
    previous_contact: bool = Field(default=False, alias="previousContact")

    def sanitized(self, sanitize: Callable[[str], str]) -> "CallMetadata":
        """Copy with ``sanitize`` applied to every free-text field."""
        updates = {}
        for name, value in self:
            if isinstance(value, str):
                updates[name] = sanitize(value)
            elif isinstance(value, list):
                updates[name] = [sanitize(v) for v in value if isinstance(v, str)]
        return self.model_copy(update=updates)


class AnalyzeRequest(BaseModel):
    """Body of POST /api/v1/analyze-call."""

    transcript: str
    metadata: CallMetadata = Field(default_factory=CallMetadata)
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)
