"""
Immutable catalog snapshots consumed by the search engine.

The ORM rows are converted once per search so the matcher, ranker and
analyzer never touch a session or trigger lazy loads.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from app.models.tech_message import Severity


@dataclass(frozen=True)
class ActionTier:
    """One occurrence range of a record's remediation table"""
    id: int
    occurrence_min: int
    occurrence_max: Optional[int]
    action_text: str
    priority: int = 1
    created_at: Optional[datetime] = None

    def covers(self, count: int) -> bool:
        if count < self.occurrence_min:
            return False
        return self.occurrence_max is None or count <= self.occurrence_max

    @classmethod
    def from_model(cls, level) -> "ActionTier":
        return cls(
            id=level.id,
            occurrence_min=level.occurrence_min,
            occurrence_max=level.occurrence_max,
            action_text=level.action_text,
            priority=level.priority if level.priority is not None else 1,
            created_at=level.created_at,
        )


@dataclass(frozen=True)
class TechMessageRecord:
    """Read-only view of a tech message and its creation-ordered tiers"""
    id: int
    category: str
    severity: Severity
    pattern: str
    description: Optional[str] = None
    action_levels: Tuple[ActionTier, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    @classmethod
    def from_model(cls, tech_message) -> "TechMessageRecord":
        tiers = sorted(tech_message.action_levels or [], key=lambda level: level.id)
        return cls(
            id=tech_message.id,
            category=tech_message.category,
            severity=Severity(tech_message.severity),
            pattern=tech_message.pattern,
            description=tech_message.description,
            action_levels=tuple(ActionTier.from_model(level) for level in tiers),
            created_at=tech_message.created_at,
            updated_at=tech_message.updated_at,
            created_by=tech_message.created_by,
            updated_by=tech_message.updated_by,
        )
