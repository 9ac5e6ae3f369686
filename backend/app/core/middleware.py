import logging
from typing import Optional, Dict, Any, Sequence

from fastapi import Request, HTTPException, Depends, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import decode_access_token, REFRESH_TOKEN_TYPE
from app.config.settings import settings
from app.db.session import get_db_session
from app.db.models.user import UserModel

logger = logging.getLogger(__name__)

# List of paths that should be excluded from authentication checks
PUBLIC_PATHS = [
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/refresh",
    "/api/health",
    "/docs",
    "/openapi.json",
    "/redoc"
]


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return request.cookies.get(settings.session_cookie_name)


async def verify_token_middleware(request: Request, call_next):
    """
    Middleware that reads the bearer header (or the session cookie) and puts the
    token claims on ``request.state.user``.
    It never blocks a request; ``get_current_user`` enforces authentication.
    """
    request.state.user = None

    # Skip authentication for public paths
    if any(request.url.path.startswith(public_path) for public_path in PUBLIC_PATHS):
        return await call_next(request)

    token = _extract_token(request)
    if token:
        try:
            token_data = decode_access_token(token)
            if token_data.get("type") != REFRESH_TOKEN_TYPE:
                request.state.user = {
                    "user_id": token_data.get("sub"),
                    "role": token_data.get("role")
                }
        except JWTError as e:
            logger.debug(f"Ignoring invalid token on {request.url.path}: {e}")

    response = await call_next(request)
    return response


# Get a database session dependency
async def get_db(request: Request):
    """Yield an async SQLAlchemy session (dependency)."""
    async for session in get_db_session(request):
        yield session


def get_token_claims(request: Request) -> Dict[str, Any]:
    """Claims set by the middleware; 401 when the request carries no valid token."""
    claims = getattr(request.state, "user", None)
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


async def get_current_user(
    claims: Dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> UserModel:
    """
    Dependency to use in FastAPI route functions that require authentication.
    Loads the user named by the token; deleted or deactivated users are rejected.
    """
    try:
        user_id = int(claims["user_id"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await db.get(UserModel, user_id)
    if not user or not user.is_active:
        logger.warning(f"Token for missing or inactive user_id={user_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user


def require_roles(roles: Sequence[str]):
    """
    Factory function to create a dependency that requires specific roles.
    Usage: current_user: UserModel = Depends(require_roles(["admin"]))
    """
    allowed = {str(r.value) if hasattr(r, "value") else str(r) for r in roles}

    async def _require_roles(user: UserModel = Depends(get_current_user)) -> UserModel:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
        return user

    return _require_roles
