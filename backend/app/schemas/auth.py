from pydantic import Field
from typing import Optional
from datetime import datetime
from uuid import UUID

from app.models.user import UserRole
from app.schemas.base import CamelModel


class UserLogin(CamelModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class AccessToken(CamelModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(CamelModel):
    id: UUID
    username: str
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class LoginResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    user: UserResponse


class MessageResponse(CamelModel):
    message: str
