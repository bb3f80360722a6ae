"""
Refresh token store: opaque secrets persisted as SHA-256 digests.

The raw secret exists only in the return value of ``issue_refresh_token``;
lookups digest the presented secret and hit the unique digest index.
"""

from __future__ import annotations

import hashlib
import secrets
import uuid
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Optional

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import select

from tenant_auth.models.base import utcnow
from tenant_auth.models.refresh_token import RefreshToken
from tenant_auth.models.user import User

log = structlog.get_logger()

REFRESH_TOKEN_TTL = timedelta(days=30)
REFRESH_SECRET_BYTES = 32
DEVICE_INFO_KEYS = ("user_agent", "ip_address")
DEVICE_INFO_MAX_LENGTH = 512


def generate_refresh_secret() -> str:
    return secrets.token_urlsafe(REFRESH_SECRET_BYTES)


def digest_token(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()


def sanitize_device_info(device_info: Any) -> dict[str, str]:
    """Keep only known device keys, as strings of bounded length."""
    if not isinstance(device_info, Mapping):
        return {}
    cleaned = {}
    for key in DEVICE_INFO_KEYS:
        value = device_info.get(key)
        if value is None:
            continue
        cleaned[key] = str(value)[:DEVICE_INFO_MAX_LENGTH]
    return cleaned


async def issue_refresh_token(
    session: AsyncSession,
    user: User,
    device_info: Optional[Mapping[str, Any]] = None,
) -> str:
    """Persist a new refresh token for `user` and return the raw secret."""
    raw = generate_refresh_secret()
    record = RefreshToken(
        user_id=user.id,
        jti=str(uuid.uuid4()),
        token_digest=digest_token(raw),
        expires_at=utcnow() + REFRESH_TOKEN_TTL,
        device_info=sanitize_device_info(device_info),
    )
    session.add(record)
    await session.flush()
    log.info("refresh_token.issued", user_id=str(user.public_id), jti=record.jti)
    return raw


async def lookup_refresh_token(session: AsyncSession, raw: Optional[str]) -> Optional[RefreshToken]:
    """Find the token row for a presented secret, by digest equality."""
    if not raw:
        return None
    result = await session.execute(
        select(RefreshToken).where(RefreshToken.token_digest == digest_token(raw))
    )
    return result.scalar_one_or_none()


async def revoke_refresh_token(session: AsyncSession, record: RefreshToken) -> None:
    """Mark a token revoked. Revoking an already revoked token is a no-op."""
    if record.revoked_at is not None:
        return
    record.revoked_at = utcnow()
    session.add(record)
    await session.flush()
    log.info("refresh_token.revoked", jti=record.jti)


async def claim_refresh_token(session: AsyncSession, record: RefreshToken) -> bool:
    """Atomically revoke `record` if nobody else has.

    Returns True only for the single caller whose UPDATE flipped
    ``revoked_at`` from NULL; concurrent replays of the same secret get False.
    """
    now = utcnow()
    result = await session.execute(
        update(RefreshToken)
        .where(RefreshToken.id == record.id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=now, last_used_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False
    set_committed_value(record, "revoked_at", now)
    set_committed_value(record, "last_used_at", now)
    return True

