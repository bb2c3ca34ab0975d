"""Abstract base class for the request authorization gate.

User accounts and roles are owned by the wider platform.  This service only
asks one question per request: is the caller authenticated, and if the
route requires it, are they an administrator?
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from fastapi import Request


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as seen by this service."""

    subject: str
    is_admin: bool


# Concrete implementation: StaticTokenAuthorizationGate (src/api/auth.py)
class IAuthorizationGate(ABC):
    """Contract for admitting callers to API routes."""

    @abstractmethod
    async def authorize(self, request: Request, *, require_admin: bool) -> Principal:
        """Return the caller's principal or reject the request.

        Raises
        ------
        fastapi.HTTPException
            401 when the caller is not authenticated, 403 when
            *require_admin* is set and the caller is not an administrator.
        """
