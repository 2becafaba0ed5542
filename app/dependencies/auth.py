"""Authentication dependencies."""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select

from app.core.security import verify_token
from app.dependencies.database import DBSessionDep
from app.models import User, UserRole

# HTTP Bearer token security scheme
security = HTTPBearer()


async def get_current_user(
    session: DBSessionDep,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    """Extract and verify JWT token, then return the current user."""
    payload = verify_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # JWT sub claim carries the user id as a string
    user_id_str: str | None = payload.get("sub")
    try:
        user_id = int(user_id_str)  # type: ignore[arg-type]
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    stmt = select(User).where(User.id == user_id)
    result = await session.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Ensure the current user is active."""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )
    return current_user


class RoleChecker:
    """Role-based authorization checker with hierarchical permissions."""

    def __init__(self, min_role: UserRole):
        """
        Initialize role checker with minimum required role.

        Args:
            min_role: Minimum role required. Users with roles <= min_role are allowed.
                     (Lower values = higher privileges: ADMIN=0, TEACHER=10, STUDENT=20)
        """
        self.min_role = min_role

    async def __call__(
        self,
        current_user: Annotated[User, Depends(get_current_active_user)],
    ) -> User:
        if current_user.role > self.min_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {self.min_role.name} or higher",
            )
        return current_user


# Pre-configured role dependencies
admin_only = RoleChecker(min_role=UserRole.ADMIN)
staff_or_above = RoleChecker(min_role=UserRole.TEACHER)

# Typed dependencies for use in route handlers
CurrentUserDep = Annotated[User, Depends(get_current_active_user)]
StaffDep = Annotated[User, Depends(staff_or_above)]
