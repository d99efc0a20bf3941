from __future__ import annotations

import hmac
from dataclasses import dataclass

from fastapi import Header, HTTPException, Request, status

from ..core.config import settings
from ..middlewares import principal_var


@dataclass(frozen=True)
class AuthContext:
    user_id: str


def _accept(request: Request, principal: str) -> AuthContext:
    # "anonymous" or "api-key:<owner>", picked up by the request log
    principal_var.set(principal)
    request.state.principal = principal
    return AuthContext(user_id=settings.OWNER_ID)


async def require_api_key(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> AuthContext:
    """Gate every API route behind the configured key; open when none is set.

    The deployment has a single owner, so an accepted caller always acts as
    ``settings.OWNER_ID``.
    """
    api_key = (settings.API_KEY or "").strip()
    if not api_key:
        return _accept(request, "anonymous")

    provided_key = (x_api_key or "").strip()
    if provided_key and hmac.compare_digest(api_key, provided_key):
        return _accept(request, f"api-key:{settings.OWNER_ID}")

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid API key" if provided_key else "Authorization required",
    )
