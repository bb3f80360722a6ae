"""
Credential verification and the access-token codec.

- Password hashing: bcrypt
- Access tokens: HS256 JWTs carrying subject, account, email, role, iat, exp
- Signing-key rotation: decode also accepts the previous secret when configured
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

import bcrypt
import jwt

from tenant_auth.core.config import Settings, get_settings

if TYPE_CHECKING:
    from tenant_auth.models.account import Account
    from tenant_auth.models.user import User

# Policy constant: every access token lives exactly this long.
ACCESS_TOKEN_TTL_SECONDS = 30 * 60

REQUIRED_CLAIMS = ["sub", "account_id", "email", "role", "iat", "exp"]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class AccessTokenError(Exception):
    """Base class for access-token decoding failures."""


class TokenExpiredError(AccessTokenError):
    """The token verified but its expiry has passed."""


class TokenMalformedError(AccessTokenError):
    """Bad signature, wrong algorithm, truncated input or missing claims."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str, *, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt with the configured cost factor."""
    cost = rounds or get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=cost)).decode()


def verify_password(password: str, hashed: Optional[str]) -> bool:
    """Verify a password against a bcrypt hash. Never raises."""
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except (ValueError, TypeError):
        # Malformed hash or a password bcrypt refuses (> 72 bytes).
        return False


# ---------------------------------------------------------------------------
# Access tokens
# ---------------------------------------------------------------------------

def create_access_token(
    user: "User",
    account: "Account",
    role: str,
    *,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Sign a claim set for `user` acting in `account` with `role`."""
    settings = settings or get_settings()
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(seconds=ACCESS_TOKEN_TTL_SECONDS)
    payload = {
        "sub": str(user.public_id),
        "account_id": str(account.public_id),
        "email": user.email,
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, *, settings: Optional[Settings] = None) -> dict:
    """Verify and decode an access token.

    Raises TokenExpiredError once ``now >= exp`` and TokenMalformedError for
    every other failure.
    """
    settings = settings or get_settings()
    keys = [settings.secret_key]
    if settings.previous_secret_key:
        keys.append(settings.previous_secret_key)

    for index, key in enumerate(keys):
        try:
            return jwt.decode(
                token,
                key,
                algorithms=[settings.jwt_algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except jwt.InvalidSignatureError as exc:
            if index == len(keys) - 1:
                raise TokenMalformedError("Invalid token") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenMalformedError("Invalid token") from exc
    raise TokenMalformedError("Invalid token")
