from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
import uuid

from app.core.database import get_db
from app.core.config import settings
from app.core.security import (
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token
)
from app.core.logging_config import logger, set_user_id
from app.models.user import User
from app.schemas.auth import (
    UserLogin,
    RefreshTokenRequest,
    AccessToken,
    LoginResponse,
    UserResponse,
    MessageResponse,
)
from app.modules.auth.dependencies import get_current_user
from app.core.rate_limiter import auth_rate_limit


router = APIRouter()


def _token_data(user: User) -> dict:
    return {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role.value
    }


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login user (rate limited: LOGIN_RATE_LIMIT)"""
    client_ip = request.client.host if request.client else "unknown"

    result = await db.execute(
        select(User).where(User.username == credentials.username)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            username=credentials.username,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            username=credentials.username,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    # Update last login
    user.last_login = datetime.utcnow()
    await db.commit()

    set_user_id(str(user.id))

    token_data = _token_data(user)
    access_token = create_access_token(token_data)
    refresh_token = create_refresh_token(token_data)

    logger.log_auth_event(
        event="login",
        success=True,
        username=user.username,
        client_ip=client_ip,
        user_role=user.role.value
    )

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information"""
    return current_user


@router.post("/refresh", response_model=AccessToken)
async def refresh_token(
    token_request: RefreshTokenRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Issue a new access token from a refresh token"""
    client_ip = request.client.host if request.client else "unknown"

    payload = decode_token(token_request.refresh_token)

    if payload.get("type") != "refresh":
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            reason="Invalid token type",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type - expected refresh token"
        )

    user_id = payload.get("sub")
    try:
        uuid.UUID(str(user_id))
    except ValueError:
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            reason="Invalid user ID format",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    result = await db.execute(
        select(User).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            username=user.username if user else None,
            reason="User not found" if not user else "Account inactive",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )

    logger.log_auth_event(
        event="token_refresh",
        success=True,
        username=user.username,
        client_ip=client_ip
    )

    return AccessToken(access_token=create_access_token(_token_data(user)))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user)
):
    """
    Logout user.

    JWT tokens are stateless, so this only logs the event; clients discard
    their tokens.
    """
    logger.log_auth_event(
        event="logout",
        success=True,
        username=current_user.username
    )
    return MessageResponse(message="Successfully logged out")
