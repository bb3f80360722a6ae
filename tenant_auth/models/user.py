"""User model."""

from sqlmodel import Field, SQLModel

from .base import IDMixin, PublicIDMixin, TimestampMixin


class User(IDMixin, PublicIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(nullable=False, unique=True, index=True)  # stored lowercased
    name: str = Field(nullable=False)
    password_hash: str = Field(nullable=False)  # bcrypt
