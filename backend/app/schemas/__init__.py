# Pydantic schemas
from app.schemas.auth import (
    UserLogin,
    RefreshTokenRequest,
    AccessToken,
    UserResponse,
    LoginResponse,
    MessageResponse,
)
from app.schemas.tech_message import (
    ActionLevelRequest,
    ActionLevelResponse,
    TechMessageRequest,
    TechMessageUpdate,
    TechMessageResponse,
    TechMessageListResponse,
    CountResponse,
    SearchRequest,
    SearchMatchResponse,
    SearchResponse,
    MatchRequest,
    MatchResponse,
)
