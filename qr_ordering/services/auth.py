"""
Authentication Service

Admins and cashiers authenticate with a plain lookup on the ``users``
table. A successful login creates an opaque session token kept in the
storage service; clients send it back in the ``X-Session-Token`` header.

Usage:
    user = await authenticate(db, email, password, UserRole.CASHIER)
    session = await SessionManager().create(user, shift_id=shift.id)

Version: 1.0.0
"""

import logging
import secrets
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from werkzeug.security import check_password_hash, generate_password_hash

from qr_ordering.core.config import get_settings
from qr_ordering.core.exceptions import (
    AuthenticationError,
    ConflictError,
    PermissionDeniedError,
    ValidationFailedError,
)
from qr_ordering.database import commit_or_conflict
from qr_ordering.models import User, UserRole
from qr_ordering.services.storage import BaseStorageService, get_storage_service

logger = logging.getLogger(__name__)


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def validate_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValidationFailedError("Invalid email format")
    return email


async def load_user(db: AsyncSession, user_id: str) -> User:
    """Reload a user with its restaurant, e.g. right after a commit."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.restaurant))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


# =============================================================================
# REGISTRATION / LOGIN
# =============================================================================

async def register_admin(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    confirm_password: str,
) -> User:
    """
    Create a new admin account.

    Raises:
        ValidationFailedError: bad email, empty password, or passwords differ
        ConflictError: the email is already registered
    """
    email = validate_email(email)
    if not password:
        raise ValidationFailedError("Password is required")
    if password != confirm_password:
        raise ValidationFailedError("Passwords do not match")
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("Email is already registered")

    user = User(
        name=(name or "").strip() or email.split("@")[0],
        email=email,
        password_hash=hash_password(password),
        role=UserRole.ADMIN,
    )
    db.add(user)
    await commit_or_conflict(db, "Email is already registered")
    user = await load_user(db, user.id)

    logger.info(f"Admin registered: {email}")
    return user


async def authenticate(
    db: AsyncSession,
    email: str,
    password: str,
    role: UserRole,
) -> User:
    """
    Look the user up by email and check password and role.

    Raises:
        AuthenticationError: unknown email or wrong password (401)
        PermissionDeniedError: the account exists but has another role (403)
    """
    user = await get_user_by_email(db, email or "")
    if user is None:
        logger.info(f"Login failed, email not found: {email}")
        raise AuthenticationError("Email not found")
    if not verify_password(user.password_hash, password or ""):
        logger.info(f"Login failed, wrong password: {email}")
        raise AuthenticationError("Incorrect password")
    if user.role != role:
        logger.info(f"Login refused, {email} is not a {role.value}")
        raise PermissionDeniedError(f"This account is not a {role.value} account")
    return user


# =============================================================================
# SESSIONS
# =============================================================================

class SessionData(BaseModel):
    """What the server remembers about a logged-in user."""
    token: str
    user_id: str
    role: UserRole
    name: str
    email: str
    restaurant_id: Optional[str] = None
    shift_id: Optional[str] = None


class SessionManager:
    """Creates, loads and destroys session tokens in the storage service."""

    KEY_PREFIX = "session:"

    def __init__(self, storage: Optional[BaseStorageService] = None):
        self.storage = storage or get_storage_service()
        self.ttl = get_settings().session_ttl_seconds

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    async def create(self, user: User, shift_id: Optional[str] = None) -> SessionData:
        session = SessionData(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            role=user.role,
            name=user.name,
            email=user.email,
            restaurant_id=user.restaurant_id,
            shift_id=shift_id,
        )
        await self.storage.set(self._key(session.token), session.model_dump_json(), ttl=self.ttl)
        logger.info(f"Session created for {user.role.value} {user.email}")
        return session

    async def get(self, token: Optional[str]) -> Optional[SessionData]:
        if not token:
            return None
        raw = await self.storage.get(self._key(token))
        if raw is None:
            return None
        return SessionData.model_validate_json(raw)

    async def destroy(self, token: str) -> bool:
        return await self.storage.delete(self._key(token))
