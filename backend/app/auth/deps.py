"""FastAPI dependencies for authentication and organization scoping.

Dependencies:
  get_current_user    → decode bearer JWT, load user from DB, return User
  get_current_org_id  → the organization every query is filtered by
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import decode_token
from app.database import get_db
from app.middleware.exceptions import TenantContextError
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ── Core user dependency ────────────────────────────────────

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the JWT, load the user, and return it."""
    if credentials is None:
        raise _unauthorized("Unauthorized")

    payload = decode_token(credentials.credentials)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise _unauthorized("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise _unauthorized("User not found or inactive")

    return user


# ── Organization scope ──────────────────────────────────────

async def get_current_org_id(
    user: User = Depends(get_current_user),
) -> str:
    """Return the caller's organization id.

    Read from the stored membership, not the token, so a user moved to
    another organization loses access to the old one's rows immediately.
    """
    if not user.org_id:
        raise TenantContextError("No organization context, join an organization first")
    return user.org_id
