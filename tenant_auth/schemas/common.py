from enum import Enum


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class AccountPlan(str, Enum):
    FREE = "free"
    PRO = "pro"
    TEAM = "team"


class MembershipStatus(str, Enum):
    INVITED = "invited"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class MembershipRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    EDITOR = "editor"
    AUTHOR = "author"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        """Position in ROLE_ORDER; 0 is the most privileged."""
        return ROLE_ORDER.index(self)

    def at_least(self, other: "MembershipRole") -> bool:
        return self.rank <= MembershipRole(other).rank

    @property
    def can_manage_users(self) -> bool:
        return self.at_least(MembershipRole.ADMIN)

    @property
    def can_publish(self) -> bool:
        return self.at_least(MembershipRole.EDITOR)


# Ordered by privilege, highest first
ROLE_ORDER: list[MembershipRole] = [
    MembershipRole.OWNER,
    MembershipRole.ADMIN,
    MembershipRole.EDITOR,
    MembershipRole.AUTHOR,
    MembershipRole.VIEWER,
]
