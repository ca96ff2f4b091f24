"""
Tests for the authorization pipeline.

WHY: Every portal endpoint is guarded by these steps. Each one is tested
on its own, then composed through authorize():
1. resolve_identity turns a token into an active user
2. require_platform_role checks admin vs user
3. require_membership checks organization membership and member role
4. authorize switches between membership and platform role
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import create_access_token
from app.core.authorization import (
    AuthContext,
    authorize,
    platform_role_of,
    require_membership,
    require_platform_role,
    resolve_identity,
)
from app.core.config import settings
from app.core.exceptions import AuthenticationError, AuthorizationError, TokenInvalidError
from app.models.organization import MemberRole
from tests.factories import MemberFactory, OrganizationFactory, UserFactory


def token_for(user) -> str:
    return create_access_token({"sub": str(user.id), "email": user.email, "role": user.role.value})


class TestResolveIdentity:
    """Token -> AuthContext."""

    @pytest.mark.asyncio
    async def test_resolves_active_user(self, db_session: AsyncSession):
        user = await UserFactory.create(db_session)

        ctx = await resolve_identity(token_for(user), db_session)

        assert ctx.user.id == user.id
        assert ctx.platform_role == "user"
        assert ctx.is_platform_admin is False

    @pytest.mark.asyncio
    async def test_missing_token(self, db_session: AsyncSession):
        with pytest.raises(AuthenticationError) as exc_info:
            await resolve_identity(None, db_session)

        assert exc_info.value.message == "Unauthorized"

    @pytest.mark.asyncio
    async def test_bad_token(self, db_session: AsyncSession):
        with pytest.raises(TokenInvalidError):
            await resolve_identity("garbage", db_session)

    @pytest.mark.asyncio
    async def test_token_without_subject(self, db_session: AsyncSession):
        token = create_access_token({"email": "nobody@example.com"})

        with pytest.raises(AuthenticationError):
            await resolve_identity(token, db_session)

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session: AsyncSession):
        token = create_access_token({"sub": "9999"})

        with pytest.raises(AuthenticationError):
            await resolve_identity(token, db_session)

    @pytest.mark.asyncio
    async def test_inactive_user(self, db_session: AsyncSession):
        """
        Banned users are rejected even with a valid token.

        WHY: Tokens are stateless; the is_active check is what revokes them.
        """
        user = await UserFactory.create(db_session, is_active=False)

        with pytest.raises(AuthenticationError):
            await resolve_identity(token_for(user), db_session)


class TestPlatformRole:
    """require_platform_role and ADMIN_USER_IDS."""

    @pytest.mark.asyncio
    async def test_admin_role(self, db_session: AsyncSession):
        admin = await UserFactory.create_admin(db_session)
        ctx = AuthContext(user=admin, platform_role=platform_role_of(admin))

        assert require_platform_role(ctx, "admin") is ctx

    @pytest.mark.asyncio
    async def test_user_is_not_admin(self, db_session: AsyncSession):
        user = await UserFactory.create(db_session)
        ctx = AuthContext(user=user, platform_role=platform_role_of(user))

        with pytest.raises(AuthorizationError) as exc_info:
            require_platform_role(ctx, "admin")

        assert exc_info.value.message == "Unauthorized"

    @pytest.mark.asyncio
    async def test_no_role_only_requires_identity(self, db_session: AsyncSession):
        user = await UserFactory.create(db_session)
        ctx = AuthContext(user=user, platform_role="user")

        assert require_platform_role(ctx, None) is ctx
        with pytest.raises(AuthenticationError):
            require_platform_role(AuthContext(), None)

    @pytest.mark.asyncio
    async def test_admin_user_ids_promote(self, db_session: AsyncSession, monkeypatch):
        """
        Users listed in ADMIN_USER_IDS are admins whatever their stored role.
        """
        user = await UserFactory.create(db_session)
        monkeypatch.setattr(settings, "ADMIN_USER_IDS", [user.id])

        assert platform_role_of(user) == "admin"


class TestMembership:
    """require_membership."""

    @pytest.mark.asyncio
    async def test_member_passes(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        user = await UserFactory.create(db_session)
        member = await MemberFactory.create(db_session, org, user, role=MemberRole.ADMIN)

        ctx = await require_membership(AuthContext(user=user, platform_role="user"), db_session, org.id)

        assert ctx.organization_id == org.id
        assert ctx.member.id == member.id
        assert ctx.member_role == "admin"

    @pytest.mark.asyncio
    async def test_non_member_rejected(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        user = await UserFactory.create(db_session)

        with pytest.raises(AuthorizationError):
            await require_membership(AuthContext(user=user, platform_role="user"), db_session, org.id)

    @pytest.mark.asyncio
    async def test_platform_admin_needs_membership_too(self, db_session: AsyncSession):
        """
        Staff get no implicit membership on organization-scoped checks.
        """
        org = await OrganizationFactory.create(db_session)
        admin = await UserFactory.create_admin(db_session)

        with pytest.raises(AuthorizationError):
            await require_membership(AuthContext(user=admin, platform_role="admin"), db_session, org.id)

    @pytest.mark.asyncio
    async def test_member_role_mismatch(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        user = await UserFactory.create(db_session)
        await MemberFactory.create(db_session, org, user, role=MemberRole.MEMBER)

        with pytest.raises(AuthorizationError):
            await require_membership(
                AuthContext(user=user, platform_role="user"), db_session, org.id, member_role="owner"
            )


class TestAuthorize:
    """The composed pipeline."""

    @pytest.mark.asyncio
    async def test_with_organization_checks_membership_only(self, db_session: AsyncSession):
        """
        With an organization id the platform role is ignored.

        WHY: Dual-purpose listings let members see their own organization's
        data even though the same endpoint requires admin otherwise.
        """
        org = await OrganizationFactory.create(db_session)
        user = await UserFactory.create(db_session)
        await MemberFactory.create(db_session, org, user)

        ctx = await authorize(token_for(user), db_session, platform_role="admin", organization_id=org.id)

        assert ctx.organization_id == org.id

    @pytest.mark.asyncio
    async def test_without_organization_checks_platform_role(self, db_session: AsyncSession):
        user = await UserFactory.create(db_session)

        with pytest.raises(AuthorizationError):
            await authorize(token_for(user), db_session, platform_role="admin")

    @pytest.mark.asyncio
    async def test_admin_without_organization(self, db_session: AsyncSession):
        admin = await UserFactory.create_admin(db_session)

        ctx = await authorize(token_for(admin), db_session, platform_role="admin")

        assert ctx.is_platform_admin is True
        assert ctx.organization_id is None
