# SQLModel definitions, imported here to ensure metadata is populated for create_all.
from .base import IDMixin, PublicIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .account import Account  # noqa: F401
from .account_membership import AccountMembership  # noqa: F401
from .refresh_token import RefreshToken  # noqa: F401
