"""
POS Back Office - FastAPI Dependencies

Shared dependencies for authentication, tenant scoping and roles.

This module provides dependency injection for:
1. Current user authentication
2. Company (tenant) scoping of every query
3. Role-based access control
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_async_session
from backoffice.models.user import User, UserRole
from backoffice.utils.error_handling import (
    CompanyAccessRequiredException,
    InsufficientPermissionsException,
)
from backoffice.utils.security import verify_access_token

logger = logging.getLogger(__name__)

# HTTP Bearer token security
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Get the current authenticated user from JWT token.

    Token can be provided via:
    1. Authorization: Bearer <token> header
    2. access_token cookie

    Raises:
        HTTPException: If token is invalid or user not found
    """
    token = None

    # Try Bearer header first
    if credentials:
        token = credentials.credentials
    else:
        # Fallback to cookie
        token = request.cookies.get("access_token")
        if token and token.startswith("Bearer "):
            token = token[7:]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = verify_access_token(token)

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID in token",
        )

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


# ===========================================
# TENANT SCOPING
# ===========================================

@dataclass
class CompanyScope:
    """
    Tenant context of a request.

    ``read_company_id`` is what list/get queries filter on; it is None for
    system administrators, who read across every company. ``company_id`` is
    the caller's own company and is the only value ever stamped on writes.
    """

    user: User
    company_id: Optional[uuid.UUID]
    is_system_admin: bool = False

    @property
    def read_company_id(self) -> Optional[uuid.UUID]:
        if self.is_system_admin:
            return None
        return self.company_id

    def require_company(self) -> uuid.UUID:
        """Company id for writes; system admins without a company cannot write tenant data."""
        if self.company_id is None:
            raise CompanyAccessRequiredException()
        return self.company_id

    def apply(self, stmt, model):
        """Add the company predicate to a select unless the caller bypasses tenancy."""
        if self.read_company_id is None:
            return stmt
        return stmt.where(model.company_id == self.read_company_id)


async def get_company_scope(
    current_user: User = Depends(get_current_user),
) -> CompanyScope:
    """
    Resolve the tenant for the current user.

    Users without a company are refused on every tenant route unless they are
    system administrators.
    """
    if current_user.company_id is None and not current_user.is_system_admin:
        logger.warning(f"User {current_user.username} has no company; tenant access refused")
        raise CompanyAccessRequiredException()

    return CompanyScope(
        user=current_user,
        company_id=current_user.company_id,
        is_system_admin=current_user.is_system_admin,
    )


# ===========================================
# ROLE DEPENDENCIES
# ===========================================

def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for company role-based access control.

    Usage:
        @router.post("/{id}/reopen")
        async def reopen(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    async def role_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        # System administrators bypass company role checks
        if current_user.is_system_admin:
            return current_user

        if current_user.role not in allowed_roles:
            raise InsufficientPermissionsException(
                required_role=" or ".join(r.value for r in allowed_roles),
            )
        return current_user

    return role_checker


def require_admin():
    """Require a company admin (or a system administrator)."""
    return require_role([UserRole.ADMIN])
