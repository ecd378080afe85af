from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class Severity(str, enum.Enum):
    """Tech message severity, lowest first"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class TechMessage(Base):
    """
    Pattern-based knowledge base entry.

    `pattern` is a regular expression tested against operator-supplied text;
    `action_levels` map occurrence counts to remediation steps.
    """
    __tablename__ = "tech_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(100), nullable=False, index=True)
    severity = Column(SQLEnum(Severity), nullable=False, index=True)
    pattern = Column(String(1000), nullable=False)
    description = Column(String(500), nullable=True)

    # Audit
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(String(50), nullable=True)
    updated_by = Column(String(50), nullable=True)

    # Relationships
    action_levels = relationship(
        "ActionLevel",
        back_populates="tech_message",
        cascade="all, delete-orphan",
        order_by="ActionLevel.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<TechMessage {self.id} [{self.category}/{self.severity}]>"


class ActionLevel(Base):
    """Occurrence range -> remediation text for one tech message"""
    __tablename__ = "action_levels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tech_message_id = Column(
        Integer, ForeignKey("tech_messages.id", ondelete="CASCADE"), nullable=False, index=True
    )

    occurrence_min = Column(Integer, nullable=False)
    occurrence_max = Column(Integer, nullable=True)  # NULL = unbounded
    action_text = Column(String(500), nullable=False)
    priority = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tech_message = relationship("TechMessage", back_populates="action_levels")

    def __repr__(self):
        return f"<ActionLevel {self.id} {self.occurrence_min}-{self.occurrence_max} p{self.priority}>"
