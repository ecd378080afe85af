# API endpoints
from . import auth, tech_messages, health

__all__ = ["auth", "tech_messages", "health"]
