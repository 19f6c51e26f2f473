"""
FastAPI Dependencies

Session lookups shared by the cashier and admin routers. Clients send the
token returned at login in the ``X-Session-Token`` header.
"""

from typing import Optional

from fastapi import Depends, Header

from qr_ordering.core.exceptions import AuthenticationError, PermissionDeniedError
from qr_ordering.models import UserRole
from qr_ordering.services.auth import SessionData, SessionManager


def get_session_manager() -> SessionManager:
    return SessionManager()


async def get_current_session(
    x_session_token: Optional[str] = Header(None, alias="X-Session-Token"),
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionData:
    session = await sessions.get(x_session_token)
    if session is None:
        raise AuthenticationError("Not logged in or session expired")
    return session


async def require_admin(session: SessionData = Depends(get_current_session)) -> SessionData:
    if session.role != UserRole.ADMIN:
        raise PermissionDeniedError("Admin access required")
    return session


async def require_cashier(session: SessionData = Depends(get_current_session)) -> SessionData:
    if session.role != UserRole.CASHIER:
        raise PermissionDeniedError("Cashier access required")
    return session
