"""
Tests for account and user services.

Covers:
- Slug derivation and collision counter
- Role ordering helpers
- Primary account selection
- Cascading deletes for users and accounts
"""

from __future__ import annotations

import pytest
from sqlalchemy import update
from sqlmodel import select

from tenant_auth.models.account import Account
from tenant_auth.models.account_membership import AccountMembership
from tenant_auth.models.refresh_token import RefreshToken
from tenant_auth.models.user import User
from tenant_auth.schemas.common import ROLE_ORDER, MembershipRole, MembershipStatus
from tenant_auth.services.accounts import (
    ALREADY_MEMBER,
    SLUG_TAKEN,
    add_member,
    create_account,
    delete_account,
    parameterize,
    primary_account,
    role_for_account,
    unique_slug,
)
from tenant_auth.services.errors import EntityInvalid
from tenant_auth.services.users import delete_user, find_user_by_email


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

class TestParameterize:
    @pytest.mark.parametrize(
        "name,slug",
        [
            ("Ada's Account", "ada-s-account"),
            ("Acme Corp", "acme-corp"),
            ("  Leading and trailing  ", "leading-and-trailing"),
            ("Crème Brûlée", "creme-brulee"),
            ("multi---dash__under", "multi-dash-under"),
            ("!!!", ""),
        ],
    )
    def test_parameterize(self, name, slug):
        assert parameterize(name) == slug


class TestUniqueSlug:
    @pytest.mark.asyncio
    async def test_counter_on_collision(self, session_factory):
        async with session_factory() as session:
            async with session.begin():
                assert await unique_slug(session, "Acme") == "acme"
                await create_account(session, name="Acme")
                assert await unique_slug(session, "Acme") == "acme-1"
                await create_account(session, name="Acme")
                assert await unique_slug(session, "acme") == "acme-2"

    @pytest.mark.asyncio
    async def test_explicit_slug_taken(self, session_factory):
        async with session_factory() as session:
            async with session.begin():
                await create_account(session, name="Acme", slug="acme")
                with pytest.raises(EntityInvalid) as exc_info:
                    await create_account(session, name="Other", slug="acme")
                assert exc_info.value.messages == [SLUG_TAKEN]

    @pytest.mark.asyncio
    async def test_explicit_slug_must_match_pattern(self, session_factory):
        async with session_factory() as session:
            async with session.begin():
                with pytest.raises(EntityInvalid) as exc_info:
                    await create_account(session, name="Acme", slug="Not A Slug")
                assert exc_info.value.messages == [
                    "Slug only lowercase letters, numbers, and hyphens"
                ]


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

class TestMembershipRole:
    def test_order_is_owner_first(self):
        assert ROLE_ORDER[0] is MembershipRole.OWNER
        assert ROLE_ORDER[-1] is MembershipRole.VIEWER
        assert [role.rank for role in ROLE_ORDER] == list(range(len(ROLE_ORDER)))

    @pytest.mark.parametrize(
        "role,manage,publish",
        [
            (MembershipRole.OWNER, True, True),
            (MembershipRole.ADMIN, True, True),
            (MembershipRole.EDITOR, False, True),
            (MembershipRole.AUTHOR, False, False),
            (MembershipRole.VIEWER, False, False),
        ],
    )
    def test_capabilities(self, role, manage, publish):
        assert role.can_manage_users is manage
        assert role.can_publish is publish

    def test_at_least_accepts_strings(self):
        assert MembershipRole.ADMIN.at_least("editor")
        assert not MembershipRole.AUTHOR.at_least("editor")


# ---------------------------------------------------------------------------
# Membership queries
# ---------------------------------------------------------------------------

class TestPrimaryAccount:
    @pytest.mark.asyncio
    async def test_earliest_active_membership_wins(self, session_factory, register_user):
        registered = await register_user()
        user = registered.data["user"]

        async with session_factory() as session:
            async with session.begin():
                other = await create_account(session, name="Side Project")
                await add_member(
                    session, user, other,
                    role=MembershipRole.EDITOR, status=MembershipStatus.ACTIVE,
                )

        async with session_factory() as session:
            account = await primary_account(session, user)
            assert account.id == registered.data["account"].id

    @pytest.mark.asyncio
    async def test_skips_inactive_membership_and_deleted_account(
        self, session_factory, register_user
    ):
        registered = await register_user()
        user = registered.data["user"]

        async with session_factory() as session:
            async with session.begin():
                invited = await create_account(session, name="Invited Only")
                await add_member(session, user, invited)
                active = await create_account(session, name="Second Home")
                await add_member(
                    session, user, active,
                    role=MembershipRole.VIEWER, status=MembershipStatus.ACTIVE,
                )
                await session.execute(
                    update(Account)
                    .where(Account.id == registered.data["account"].id)
                    .values(status="deleted")
                )

        async with session_factory() as session:
            account = await primary_account(session, user)
            assert account.slug == "second-home"
            assert await role_for_account(session, user, account) is MembershipRole.VIEWER

    @pytest.mark.asyncio
    async def test_role_for_non_member(self, session_factory, register_user):
        user = (await register_user()).data["user"]
        async with session_factory() as session:
            async with session.begin():
                stranger = await create_account(session, name="Elsewhere")
            assert await role_for_account(session, user, stranger) is None

    @pytest.mark.asyncio
    async def test_duplicate_membership_rejected(self, session_factory, register_user):
        registered = await register_user()
        async with session_factory() as session:
            with pytest.raises(EntityInvalid) as exc_info:
                async with session.begin():
                    await add_member(session, registered.data["user"], registered.data["account"])
            assert exc_info.value.messages == [ALREADY_MEMBER]


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------

class TestDeletion:
    @pytest.mark.asyncio
    async def test_delete_user_removes_memberships_and_tokens(
        self, session_factory, register_user, count_rows
    ):
        await register_user()
        async with session_factory() as session:
            async with session.begin():
                user = await find_user_by_email(session, "ada@example.com")
                await delete_user(session, user)

        assert await count_rows(User) == 0
        assert await count_rows(AccountMembership) == 0
        assert await count_rows(RefreshToken) == 0
        assert await count_rows(Account) == 1

    @pytest.mark.asyncio
    async def test_delete_account_removes_memberships_only(
        self, session_factory, register_user, count_rows
    ):
        registered = await register_user()
        async with session_factory() as session:
            async with session.begin():
                account = (
                    await session.execute(
                        select(Account).where(Account.id == registered.data["account"].id)
                    )
                ).scalar_one()
                await delete_account(session, account)

        assert await count_rows(Account) == 0
        assert await count_rows(AccountMembership) == 0
        assert await count_rows(User) == 1
        assert await count_rows(RefreshToken) == 1
