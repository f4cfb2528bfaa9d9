"""Parent and child intake profile models.

Profiles are owned by the profile store; the orchestrator only reads them.
ProfileCompleteness is derived on demand and never persisted.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ParentProfile(BaseModel):
    user_id: str
    parent_name: Optional[str] = None
    family_context: Optional[str] = None
    support_network: List[str] = Field(default_factory=list)


class ChildProfile(BaseModel):
    id: Optional[int] = None
    user_id: str
    child_name: Optional[str] = None
    child_age: Optional[int] = Field(default=None, ge=0, le=30)
    main_challenges: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    school_type: Optional[str] = None
    grade_level: Optional[str] = None
    medication_status: Optional[str] = None
    therapy_status: Optional[str] = None
    is_primary: bool = False


class ProfileCompleteness(BaseModel):
    """Snapshot of which intake tiers are present.

    Five equally weighted tiers. ``missing_fields`` keeps the fixed tier order
    so prompts ask for missing information in a stable sequence.
    """

    completion_percentage: int = Field(ge=0, le=100)
    missing_fields: List[str] = Field(default_factory=list)
    completed_fields: List[str] = Field(default_factory=list)
    has_parent_info: bool = False
    has_children: bool = False
    has_child_details: bool = False
    has_school_info: bool = False
    has_treatment_info: bool = False

    @property
    def is_complete(self) -> bool:
        return self.completion_percentage >= 100


class ProfileFacts(BaseModel):
    """What the prompt composer may say about the family.

    Built from the stored profile; carries no derived scoring.
    """

    parent: Optional[ParentProfile] = None
    primary_child: Optional[ChildProfile] = None
    children: List[ChildProfile] = Field(default_factory=list)
    completeness: Optional[ProfileCompleteness] = None
