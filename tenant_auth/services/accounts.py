"""
Account service: slug derivation, creation, membership queries, deletion.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

import structlog
from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenant_auth.models.account import Account
from tenant_auth.models.account_membership import AccountMembership
from tenant_auth.models.user import User
from tenant_auth.schemas.auth import AccountCreate, validation_messages
from tenant_auth.schemas.common import (
    AccountPlan,
    AccountStatus,
    MembershipRole,
    MembershipStatus,
)
from tenant_auth.services.errors import EntityInvalid

log = structlog.get_logger()

SLUG_TAKEN = "Slug has already been taken"
ALREADY_MEMBER = "User already a member of this account"


def parameterize(name: str) -> str:
    """Lowercase ASCII slug: non-alphanumeric runs become a single hyphen."""
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9]+", "-", ascii_name.lower()).strip("-")


async def slug_exists(session: AsyncSession, slug: str) -> bool:
    result = await session.execute(select(Account.id).where(Account.slug == slug))
    return result.first() is not None


async def unique_slug(session: AsyncSession, name: str) -> str:
    """Derive a slug from `name`, appending -1, -2, ... until it is free."""
    base = parameterize(name)
    if not base:
        return base
    candidate = base
    counter = 1
    while await slug_exists(session, candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


async def create_account(
    session: AsyncSession,
    *,
    name: Optional[str],
    slug: Optional[str] = None,
    status: AccountStatus = AccountStatus.ACTIVE,
    plan: AccountPlan = AccountPlan.FREE,
) -> Account:
    """Validate and insert an account. Raises EntityInvalid with the account's messages."""
    if not slug and name and name.strip():
        slug = await unique_slug(session, name)
    try:
        data = AccountCreate(name=name, slug=slug or "", status=status, plan=plan)
    except ValidationError as exc:
        raise EntityInvalid(validation_messages(exc)) from exc

    if await slug_exists(session, data.slug):
        raise EntityInvalid([SLUG_TAKEN])

    account = Account(
        name=data.name,
        slug=data.slug,
        status=data.status.value,
        plan=data.plan.value,
    )
    session.add(account)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise EntityInvalid([SLUG_TAKEN]) from exc

    log.info("account.created", account_id=str(account.public_id), slug=account.slug)
    return account


async def add_member(
    session: AsyncSession,
    user: User,
    account: Account,
    *,
    role: MembershipRole = MembershipRole.VIEWER,
    status: MembershipStatus = MembershipStatus.INVITED,
) -> AccountMembership:
    """Link a user to an account. At most one membership per pair."""
    membership = AccountMembership(
        user_id=user.id,
        account_id=account.id,
        role=MembershipRole(role).value,
        status=MembershipStatus(status).value,
    )
    session.add(membership)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise EntityInvalid([ALREADY_MEMBER]) from exc
    return membership


async def primary_account(session: AsyncSession, user: User) -> Optional[Account]:
    """The account of the user's earliest active membership, skipping deleted accounts."""
    result = await session.execute(
        select(Account)
        .join(AccountMembership, AccountMembership.account_id == Account.id)
        .where(
            AccountMembership.user_id == user.id,
            AccountMembership.status == MembershipStatus.ACTIVE.value,
            Account.status != AccountStatus.DELETED.value,
        )
        .order_by(AccountMembership.id)
        .limit(1)
    )
    return result.scalars().first()


async def role_for_account(
    session: AsyncSession, user: User, account: Account
) -> Optional[MembershipRole]:
    result = await session.execute(
        select(AccountMembership.role).where(
            AccountMembership.user_id == user.id,
            AccountMembership.account_id == account.id,
        )
    )
    role = result.scalar_one_or_none()
    return MembershipRole(role) if role else None


async def delete_account(session: AsyncSession, account: Account) -> None:
    """Delete an account and every membership pointing at it."""
    await session.execute(
        delete(AccountMembership).where(AccountMembership.account_id == account.id)
    )
    await session.delete(account)
    await session.flush()
    log.info("account.deleted", account_id=str(account.public_id), slug=account.slug)
