# Re-export all models for convenient imports
from app.models.user import User, UserRole
from app.models.tech_message import TechMessage, ActionLevel, Severity

__all__ = [
    # User
    "User",
    "UserRole",
    # Tech messages
    "TechMessage",
    "ActionLevel",
    "Severity",
]
