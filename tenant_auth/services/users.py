"""
User service: lookup by normalized email, validated creation, deletion.
"""

from __future__ import annotations

from typing import Optional

import structlog
from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenant_auth.core.security import hash_password
from tenant_auth.models.account_membership import AccountMembership
from tenant_auth.models.refresh_token import RefreshToken
from tenant_auth.models.user import User
from tenant_auth.schemas.auth import UserCreate, validation_messages
from tenant_auth.services.errors import EntityInvalid

log = structlog.get_logger()

EMAIL_TAKEN = "Email has already been taken"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


async def find_user_by_email(session: AsyncSession, email: Optional[str]) -> Optional[User]:
    normalized = normalize_email(email)
    if not normalized:
        return None
    result = await session.execute(select(User).where(User.email == normalized))
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    *,
    email: Optional[str],
    password: Optional[str],
    name: Optional[str],
) -> User:
    """Validate and insert a user. Raises EntityInvalid with the user's messages."""
    try:
        data = UserCreate(email=normalize_email(email), password=password, name=name)
    except ValidationError as exc:
        raise EntityInvalid(validation_messages(exc)) from exc

    if await find_user_by_email(session, data.email):
        raise EntityInvalid([EMAIL_TAKEN])

    user = User(
        email=normalize_email(data.email),
        name=data.name,
        password_hash=hash_password(data.password),
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same address.
        raise EntityInvalid([EMAIL_TAKEN]) from exc
    return user


async def delete_user(session: AsyncSession, user: User) -> None:
    """Delete a user together with its memberships and refresh tokens."""
    await session.execute(delete(RefreshToken).where(RefreshToken.user_id == user.id))
    await session.execute(delete(AccountMembership).where(AccountMembership.user_id == user.id))
    await session.delete(user)
    await session.flush()
    log.info("user.deleted", user_id=str(user.public_id))
