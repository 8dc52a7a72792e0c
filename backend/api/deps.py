"""
MedStock API Dependencies

Dependency injection for DB sessions, auth, and role checks.
"""

from collections.abc import AsyncGenerator, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.errors import Unauthorized
from core.security import decode_access_token, has_any_role
from db.session import AsyncSessionLocal

settings = get_settings()
security = HTTPBearer(auto_error=False)

DEV_USER = {
    "sub": "dev-user",
    "email": "dev@medstock.local",
    "role": "admin",
}


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Decode the bearer token and return its claims. Bypassed in debug mode."""
    if settings.debug:
        return dict(DEV_USER)

    if credentials is None:
        raise Unauthorized()

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise Unauthorized()
    return payload


def require_roles(*roles: str) -> Callable:
    """Dependency factory: 403 unless the user holds one of ``roles``."""

    async def _check(user: dict = Depends(get_current_user)) -> dict:
        if not has_any_role(user, *roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of roles: {', '.join(roles)}",
            )
        return user

    return _check
