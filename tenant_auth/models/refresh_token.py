"""Refresh token model. Only the SHA-256 digest of the secret is stored."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from .base import IDMixin, PublicIDMixin, TimestampMixin, as_utc, utcnow

JSON_DOCUMENT = sa.JSON().with_variant(JSONB(), "postgresql")


class RefreshToken(IDMixin, PublicIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        sa.Index("ix_refresh_tokens_user_id_revoked_at", "user_id", "revoked_at"),
    )

    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
    jti: str = Field(nullable=False, unique=True, index=True)
    token_digest: str = Field(nullable=False, unique=True, index=True)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    revoked_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    last_used_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    device_info: dict = Field(default_factory=dict, sa_type=JSON_DOCUMENT, nullable=False)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= as_utc(self.expires_at)

    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return not self.is_revoked() and not self.is_expired(now)
