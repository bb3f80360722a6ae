"""Account (tenant) model."""

from sqlmodel import Field, SQLModel

from .base import IDMixin, PublicIDMixin, TimestampMixin


class Account(IDMixin, PublicIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "accounts"

    name: str = Field(nullable=False, index=True)
    slug: str = Field(unique=True, nullable=False, index=True)
    status: str = Field(default="active", nullable=False)  # active | suspended | deleted
    plan: str = Field(default="free", nullable=False)  # free | pro | team
