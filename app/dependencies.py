# app/dependencies.py
from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_token, is_access_token, InvalidTokenError
from app.modules.users.schemas import Actor, Role

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """
    Resolve the caller from the bearer token.
    The identity provider is trusted: no database lookup happens here.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing_token",
        )
    try:
        payload = decode_token(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
        )

    if not is_access_token(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token_type",
        )

    try:
        return Actor(user_id=UUID(str(payload["sub"])), role=Role(payload.get("role")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_claims",
        )


def require_roles(*roles: str):
    """
    Role guard factory. Example: Depends(require_roles("admin", "doctor"))
    """
    async def _guard(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role.value not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="insufficient_role",
            )
        return actor

    return _guard
