"""
Registration orchestrator: creates the user, owning account and owner membership in one
transaction, followed by the same token issuance as login.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_auth.core.config import Settings
from tenant_auth.models.account import Account
from tenant_auth.models.account_membership import AccountMembership
from tenant_auth.models.user import User
from tenant_auth.schemas.common import (
    AccountPlan,
    AccountStatus,
    MembershipRole,
    MembershipStatus,
)
from tenant_auth.services.accounts import add_member, create_account
from tenant_auth.services.authentication import issue_tokens
from tenant_auth.services.errors import EntityInvalid
from tenant_auth.services.result import ServiceResult
from tenant_auth.services.users import create_user

log = structlog.get_logger()


def default_account_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    return f"{name}'s Account"


async def _create_membership(
    session: AsyncSession, user: User, account: Account
) -> AccountMembership:
    return await add_member(
        session,
        user,
        account,
        role=MembershipRole.OWNER,
        status=MembershipStatus.ACTIVE,
    )


async def register(
    session: AsyncSession,
    email: Optional[str],
    password: Optional[str],
    name: Optional[str],
    account_name: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> ServiceResult:
    """Create a user with its own account and return a token pair.

    On any validation or uniqueness failure nothing is persisted and the
    result carries the messages of the first entity that failed.
    """
    account_name = account_name or default_account_name(name)
    try:
        async with session.begin():
            user = await create_user(session, email=email, password=password, name=name)
            account = await create_account(
                session,
                name=account_name,
                status=AccountStatus.ACTIVE,
                plan=AccountPlan.FREE,
            )
            await _create_membership(session, user, account)
            payload = await issue_tokens(session, user, account, settings=settings)
    except EntityInvalid as exc:
        log.info("auth.registration_rejected", errors=exc.messages)
        return ServiceResult.fail(exc.messages)

    log.info(
        "user.registered",
        user_id=str(user.public_id),
        account_id=str(account.public_id),
    )
    return ServiceResult.ok(**payload)
