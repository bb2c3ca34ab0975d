"""Authorization gate adapters and FastAPI dependencies.

The platform's identity service issues credentials; this service only
checks them.  :class:`StaticTokenAuthorizationGate` accepts two
pre-shared bearer tokens from settings (``ADMIN_API_TOKEN`` and
``USER_API_TOKEN``).  A deployment that validates platform JWTs provides
another :class:`IAuthorizationGate` and sets it on ``app.state.auth_gate``.

Routes declare their requirement with the ``AdminDep`` / ``UserDep``
annotated dependencies.
"""

from __future__ import annotations

import secrets
from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request

from src.interfaces.authorization_gate import IAuthorizationGate, Principal
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_BEARER_PREFIX = "bearer "


class StaticTokenAuthorizationGate(IAuthorizationGate):
    """Admits callers presenting one of two configured bearer tokens.

    An empty token disables that role: with no admin token configured,
    every admin route answers 401.
    """

    def __init__(self, admin_token: str = "", user_token: str = "") -> None:
        self._admin_token = admin_token
        self._user_token = user_token

    async def authorize(self, request: Request, *, require_admin: bool) -> Principal:
        token = _extract_bearer(request)
        if token is None:
            raise HTTPException(
                status_code=401,
                detail="Missing bearer token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if self._admin_token and secrets.compare_digest(token, self._admin_token):
            return Principal(subject="admin", is_admin=True)

        if self._user_token and secrets.compare_digest(token, self._user_token):
            if require_admin:
                _logger.warning("authorization_denied", path=str(request.url.path))
                raise HTTPException(status_code=403, detail="Administrator role required")
            return Principal(subject="user", is_admin=False)

        raise HTTPException(
            status_code=401,
            detail="Invalid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _extract_bearer(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    if not header.lower().startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX):].strip()
    return token or None


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def _get_gate(request: Request) -> IAuthorizationGate:
    """Return the authorization gate from application state."""
    return request.app.state.auth_gate


async def require_admin(request: Request) -> Principal:
    return await _get_gate(request).authorize(request, require_admin=True)


async def require_user(request: Request) -> Principal:
    return await _get_gate(request).authorize(request, require_admin=False)


AdminDep = Annotated[Principal, Depends(require_admin)]
UserDep = Annotated[Principal, Depends(require_user)]
