"""
Authentication orchestrator: Login, Refresh and Logout.

Each call runs as one transaction on the session it is given and returns a
ServiceResult. The failure strings below are part of the public contract.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenant_auth.core.config import Settings
from tenant_auth.core.security import (
    ACCESS_TOKEN_TTL_SECONDS,
    create_access_token,
    verify_password,
)
from tenant_auth.models.account import Account
from tenant_auth.models.user import User
from tenant_auth.services import refresh_tokens
from tenant_auth.services.accounts import primary_account, role_for_account
from tenant_auth.services.result import ServiceResult
from tenant_auth.services.users import find_user_by_email

log = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"
NO_ACCOUNT = "No account found"
INVALID_TOKEN = "Invalid refresh token"
TOKEN_EXPIRED = "Token expired"
TOKEN_REVOKED = "Token revoked"


async def issue_tokens(
    session: AsyncSession,
    user: User,
    account: Account,
    device_info: Optional[Mapping[str, Any]] = None,
    *,
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """Mint an access token and persist a fresh refresh token for `user` in `account`."""
    role = await role_for_account(session, user, account)
    access_token = create_access_token(
        user, account, role.value if role else None, settings=settings
    )
    refresh_token = await refresh_tokens.issue_refresh_token(session, user, device_info)
    return {
        "user": user,
        "account": account,
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_in": ACCESS_TOKEN_TTL_SECONDS,
    }


async def login(
    session: AsyncSession,
    email: Optional[str],
    password: Optional[str],
    device_info: Optional[Mapping[str, Any]] = None,
    *,
    settings: Optional[Settings] = None,
) -> ServiceResult:
    """Authenticate with email/password and issue a token pair."""
    async with session.begin():
        user = await find_user_by_email(session, email)
        # Same message for unknown email and bad password.
        if user is None:
            log.warning("auth.login_failure", reason="unknown_email")
            return ServiceResult.fail(INVALID_CREDENTIALS)
        if not verify_password(password or "", user.password_hash):
            log.warning("auth.login_failure", user_id=str(user.public_id), reason="bad_password")
            return ServiceResult.fail(INVALID_CREDENTIALS)

        account = await primary_account(session, user)
        if account is None:
            log.warning("auth.login_failure", user_id=str(user.public_id), reason="no_account")
            return ServiceResult.fail(NO_ACCOUNT)

        payload = await issue_tokens(session, user, account, device_info, settings=settings)

    log.info(
        "auth.login_success",
        user_id=str(user.public_id),
        account_id=str(account.public_id),
    )
    return ServiceResult.ok(**payload)


async def refresh(
    session: AsyncSession,
    raw_refresh_token: Optional[str],
    *,
    settings: Optional[Settings] = None,
) -> ServiceResult:
    """Exchange a refresh token for a new pair, revoking the presented one."""
    async with session.begin():
        record = await refresh_tokens.lookup_refresh_token(session, raw_refresh_token)
        if record is None:
            return ServiceResult.fail(INVALID_TOKEN)
        if record.is_expired():
            return ServiceResult.fail(TOKEN_EXPIRED)
        if record.is_revoked():
            log.warning("auth.refresh_replay", jti=record.jti)
            return ServiceResult.fail(TOKEN_REVOKED)

        result = await session.execute(select(User).where(User.id == record.user_id))
        user = result.scalar_one()
        account = await primary_account(session, user)
        if account is None:
            return ServiceResult.fail(NO_ACCOUNT)

        # Only one concurrent presenter of this secret can win the swap.
        if not await refresh_tokens.claim_refresh_token(session, record):
            log.warning("auth.refresh_replay", jti=record.jti)
            return ServiceResult.fail(TOKEN_REVOKED)

        payload = await issue_tokens(
            session, user, account, record.device_info, settings=settings
        )

    log.info("auth.refresh_rotated", user_id=str(user.public_id), previous_jti=record.jti)
    return ServiceResult.ok(**payload)


async def logout(session: AsyncSession, raw_refresh_token: Optional[str]) -> ServiceResult:
    """Revoke a refresh token. Logging out twice with the same token succeeds both times."""
    async with session.begin():
        record = await refresh_tokens.lookup_refresh_token(session, raw_refresh_token)
        if record is None:
            return ServiceResult.fail(INVALID_TOKEN)
        await refresh_tokens.revoke_refresh_token(session, record)

    log.info("auth.logout", jti=record.jti)
    return ServiceResult.ok()
