"""
Tech message schemas.

Request bodies validate field limits; responses are built from ORM objects
or from the immutable search snapshots (both expose the same attribute names).
"""
from pydantic import Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime

from app.models.tech_message import Severity
from app.schemas.base import CamelModel


# ============================================
# Action levels
# ============================================

class ActionLevelRequest(CamelModel):
    occurrence_min: int = Field(..., ge=1)
    occurrence_max: Optional[int] = Field(None, ge=1, description="Unset means unbounded")
    action_text: str = Field(..., min_length=1, max_length=500)
    priority: int = Field(1, ge=1)

    @model_validator(mode='after')
    def validate_range(self):
        if self.occurrence_max is not None and self.occurrence_max < self.occurrence_min:
            raise ValueError("occurrenceMax must be greater than or equal to occurrenceMin")
        return self


class ActionLevelResponse(CamelModel):
    id: int
    occurrence_min: int
    occurrence_max: Optional[int] = None
    action_text: str
    priority: int
    created_at: Optional[datetime] = None


# ============================================
# Tech messages
# ============================================

class TechMessageRequest(CamelModel):
    category: str = Field(..., min_length=1, max_length=100)
    severity: Severity
    pattern: str = Field(..., min_length=1, max_length=1000)
    description: Optional[str] = Field(None, max_length=500)
    action_levels: List[ActionLevelRequest] = Field(default_factory=list)

    @model_validator(mode='after')
    def strip_category(self):
        self.category = self.category.strip()
        if not self.category:
            raise ValueError("category must not be blank")
        return self


class TechMessageUpdate(CamelModel):
    """Partial update; action levels are edited through their own endpoints"""
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    severity: Optional[Severity] = None
    pattern: Optional[str] = Field(None, min_length=1, max_length=1000)
    description: Optional[str] = Field(None, max_length=500)


class TechMessageResponse(CamelModel):
    id: int
    category: str
    severity: Severity
    pattern: str
    description: Optional[str] = None
    action_levels: List[ActionLevelResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class TechMessageListResponse(CamelModel):
    items: List[TechMessageResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class CountResponse(CamelModel):
    value: str
    count: int


# ============================================
# Search
# ============================================

class SearchRequest(CamelModel):
    search_text: str = Field(..., description="Free text; at least 3 characters after trimming")
    occurrence_count: Optional[int] = None
    match_mode: str = Field("BOTH", description="EXACT, FUZZY or BOTH")


class SearchMatchResponse(CamelModel):
    tech_message: TechMessageResponse
    match_type: str
    match_score: float
    matched_text: Optional[str] = None
    extracted_variables: Optional[Dict[str, str]] = None
    recommended_action: Optional[ActionLevelResponse] = None
    all_action_levels: List[ActionLevelResponse] = Field(default_factory=list)


class SearchResponse(CamelModel):
    matches: List[SearchMatchResponse]
    no_matches: bool


class MatchRequest(CamelModel):
    text: str = Field(..., min_length=1)
    occurrence_count: Optional[int] = None


class MatchResponse(CamelModel):
    matched: bool
    tech_message: Optional[TechMessageResponse] = None
    matched_text: Optional[str] = None
    variables: Dict[str, str] = Field(default_factory=dict)
    recommended_action: Optional[ActionLevelResponse] = None
    occurrence_count: Optional[int] = None
