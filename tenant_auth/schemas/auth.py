"""Validation schemas for the entities created during registration."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from .common import AccountPlan, AccountStatus

BCRYPT_MAX_PASSWORD_BYTES = 72

# Custom wording for pattern failures, keyed by field name.
PATTERN_MESSAGES = {
    "slug": "only lowercase letters, numbers, and hyphens",
}


def _present(value):
    """Strip surrounding whitespace; a whitespace-only string is blank."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("can't be blank")
    return value


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=2, max_length=200)
    password: str = Field(min_length=8)

    _strip_name = field_validator("name", mode="before")(_present)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, value: str) -> str:
        if len(value.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"is too long (maximum is {BCRYPT_MAX_PASSWORD_BYTES} bytes)")
        return value


class AccountCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    slug: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    status: AccountStatus = AccountStatus.ACTIVE
    plan: AccountPlan = AccountPlan.FREE

    _strip_name = field_validator("name", mode="before")(_present)


def _label(loc: tuple) -> str:
    return str(loc[0]).replace("_", " ").capitalize() if loc else "Base"


def validation_messages(exc: ValidationError) -> list[str]:
    """Render pydantic errors as "<Field> <problem>" sentences."""
    messages = []
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else ""
        label = _label(err["loc"])
        ctx = err.get("ctx") or {}
        kind = err["type"]
        if kind in ("missing", "string_type") or (
            kind == "string_too_short" and ctx.get("min_length") == 1
        ):
            problem = "can't be blank"
        elif kind == "string_too_short":
            problem = f"is too short (minimum is {ctx['min_length']} characters)"
        elif kind == "string_too_long":
            problem = f"is too long (maximum is {ctx['max_length']} characters)"
        elif kind == "string_pattern_mismatch":
            problem = PATTERN_MESSAGES.get(field, "is invalid")
        elif kind == "value_error" and field == "email":
            problem = "is invalid"
        elif kind == "value_error":
            problem = str(ctx.get("error", "is invalid"))
        else:
            problem = err["msg"]
        messages.append(f"{label} {problem}")
    return messages
