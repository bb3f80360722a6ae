"""User-Account membership (join table)."""

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin, PublicIDMixin, TimestampMixin


class AccountMembership(IDMixin, PublicIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "account_memberships"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "account_id", name="uq_account_memberships_user_account"),
    )

    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
    account_id: int = Field(foreign_key="accounts.id", ondelete="CASCADE", nullable=False, index=True)
    role: str = Field(default="owner", nullable=False)  # owner | admin | editor | author | viewer
    status: str = Field(default="invited", nullable=False)  # invited | active | suspended
