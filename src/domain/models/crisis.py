"""Crisis screening and assessment models.

- CrisisLexicon: versioned keyword/pattern asset (config/crisis/*.yaml)
- CrisisScreenResult: outcome of the lexical first stage
- CrisisVerdict: the assessment model's JSON answer, validated as returned
- CrisisAssessment: outcome of the structured second stage; ephemeral,
  only risk_level is written back to the session
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.models.session import CrisisLevel


class CrisisType(str, Enum):
    NONE = "none"
    PARENTAL_BURNOUT = "parental_burnout"
    CHILD_SAFETY = "child_safety"
    SELF_HARM = "self_harm"
    VIOLENCE = "violence"


class Urgency(str, Enum):
    ROUTINE = "routine"
    TODAY = "today"
    WITHIN_HOUR = "within_hour"
    IMMEDIATE = "immediate"


class CrisisLexicon(BaseModel):
    """Keyword and regex lexicon used by the first-stage screen."""

    version: str
    keywords: List[str] = Field(default_factory=list)
    patterns: List[str] = Field(default_factory=list)
    standard_resources: Dict[CrisisLevel, List[str]] = Field(default_factory=dict)
    fallback_resources: List[str] = Field(default_factory=list)


class CrisisScreenResult(BaseModel):
    should_escalate: bool
    matched_terms: List[str] = Field(default_factory=list)
    sticky: bool = Field(
        default=False, description="Escalated because the session was already high/critical"
    )
    lexicon_version: str = ""


class CrisisAssessment(BaseModel):
    risk_level: CrisisLevel
    crisis_type: CrisisType = CrisisType.NONE
    urgency: Urgency = Urgency.ROUTINE
    resources: List[str] = Field(default_factory=list)
    reply: str = Field(default="", description="Safety-first reply shown to the parent")


class CrisisVerdict(BaseModel):
    """The assessment model's JSON answer, keyed as the prompt asks for it.

    Null or empty optional keys take their defaults; anything of the wrong
    shape (a resource that is not a string, a non-string reply) fails
    validation.
    """

    model_config = ConfigDict(populate_by_name=True)

    risk_level: CrisisLevel = Field(alias="riskLevel")
    crisis_type: CrisisType = Field(default=CrisisType.NONE, alias="crisisType")
    urgency: Urgency = Urgency.ROUTINE
    recommended_resources: List[str] = Field(
        default_factory=list, alias="recommendedResources"
    )
    reply: str = ""

    @field_validator("risk_level", mode="before")
    @classmethod
    def lower_risk_level(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("crisis_type", mode="before")
    @classmethod
    def null_crisis_type(cls, v: Any) -> Any:
        return v or CrisisType.NONE

    @field_validator("urgency", mode="before")
    @classmethod
    def null_urgency(cls, v: Any) -> Any:
        return v or Urgency.ROUTINE

    @field_validator("recommended_resources", mode="before")
    @classmethod
    def null_resources(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("reply", mode="before")
    @classmethod
    def null_reply(cls, v: Any) -> Any:
        return "" if v is None else v
