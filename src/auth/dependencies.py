"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from the Bearer token
- Optional authentication for anonymous-friendly endpoints
- Admin-only routes
- Token authentication for WebSocket lesson views
"""

from datetime import UTC, datetime
from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from pydantic import ValidationError

from src.auth.permissions import UserRole, has_permission
from src.auth.schemas import AuthenticatedUser
from src.auth.security import decode_access_token
from src.core.context import set_user_id


logger = structlog.get_logger(__name__)


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def user_from_token(token: str) -> AuthenticatedUser:
    """Validate a token and build the user it identifies.

    Raises:
        JWTError: If the token is invalid or its claims are malformed
    """
    payload = decode_access_token(token)
    iat = payload.get("iat")
    try:
        user = AuthenticatedUser(
            id=payload["sub"],
            email=payload.get("email"),
            role=payload.get("role", UserRole.STUDENT.value),
            issued_at=datetime.fromtimestamp(iat, tz=UTC) if iat else None,
        )
    except ValidationError as e:
        msg = "Invalid token claims"
        raise JWTError(msg) from e

    set_user_id(user.id)
    return user


def authenticate_websocket(token: str | None) -> AuthenticatedUser | None:
    """Authenticate a WebSocket connection from its ``token`` query param.

    Returns None for a missing or invalid token; lesson views then run
    anonymously.
    """
    if not token:
        return None
    try:
        return user_from_token(token)
    except JWTError as e:
        logger.warning("websocket_auth_failed", error=str(e))
        return None


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de acesso nao fornecido",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return user_from_token(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalido ou expirado",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser | None:
    """Get current user if authenticated, None otherwise."""
    if not token:
        return None
    try:
        return user_from_token(token)
    except JWTError:
        return None


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level.

    Example:
        @router.post("/courses")
        async def create_course(
            user: Annotated[AuthenticatedUser, Depends(require_permission(UserRole.ADMIN))]
        ):
            ...
    """

    async def permission_checker(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permissao insuficiente",
            )
        return user

    return permission_checker


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]

OptionalUser = Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)]

AdminUser = Annotated[AuthenticatedUser, Depends(require_permission(UserRole.ADMIN))]
