"""
POS Back Office - Authentication Router

Login and current-user endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_async_session
from backoffice.dependencies import get_current_user
from backoffice.models.user import User
from backoffice.schemas.auth import LoginRequest, TokenResponse, UserResponse
from backoffice.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="User login",
    description="Authenticate with username (or email) and password to receive an access token.",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """Authenticate user and return access token."""
    auth_service = AuthService(db)
    user = await auth_service.authenticate_user(request.username, request.password)

    if not user:
        logger.warning(f"Failed login attempt for {request.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    await auth_service.record_login(user)
    await db.commit()

    return TokenResponse(
        access_token=auth_service.create_token(user),
        token_type="bearer",
        expires_in=auth_service.token_lifetime_seconds,
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_me(
    current_user: User = Depends(get_current_user),
):
    """Get current authenticated user information."""
    return current_user
