"""
Authorization pipeline.

WHAT: Resolves the calling identity and checks the platform role and
organization membership before a handler runs.

WHY: Every data-access endpoint is a thin wrapper around CRUD, so the
checks that guard it have to be uniform. Each check is a separate step
taking and returning an AuthContext. The steps can be tested on their own,
and a failed step aborts the call before any row is read or written.

HOW:
    resolve_identity         token -> AuthContext(user)
    require_platform_role    AuthContext -> AuthContext  (admin | user | None)
    require_membership       AuthContext -> AuthContext  (+ member, role)
    authorize                composes the steps, including the fallback
                             used by dual-purpose endpoints: without an
                             organization id the platform role is checked
                             instead of membership
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import verify_token
from app.core.config import settings
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.dao.organization import MemberDAO
from app.dao.user import UserDAO
from app.models.organization import Member
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized"


@dataclass(frozen=True)
class AuthContext:
    """
    Identity and grants of the caller, built up by the pipeline steps.

    Attributes:
        user: Resolved user, None before resolve_identity
        platform_role: "admin" or "user"
        organization_id: Organization the membership check ran against
        member: Membership row found by require_membership
    """

    user: Optional[User] = None
    platform_role: Optional[str] = None
    organization_id: Optional[int] = None
    member: Optional[Member] = None

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user is not None else None

    @property
    def is_platform_admin(self) -> bool:
        return self.platform_role == UserRole.ADMIN.value

    @property
    def member_role(self) -> Optional[str]:
        return self.member.role.value if self.member is not None else None


def platform_role_of(user: User) -> str:
    """
    Effective platform role of a user.

    A user listed in ADMIN_USER_IDS is an admin whatever their stored role.
    """
    if user.role == UserRole.ADMIN or user.id in settings.ADMIN_USER_IDS:
        return UserRole.ADMIN.value
    return UserRole.USER.value


async def resolve_identity(token: Optional[str], session: AsyncSession) -> AuthContext:
    """
    Resolve a bearer token to an active user.

    Raises:
        AuthenticationError: No token, bad token, unknown or inactive user
    """
    if not token:
        raise AuthenticationError(message=UNAUTHORIZED)

    payload = verify_token(token)
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError(message=UNAUTHORIZED, reason="missing_subject")

    user = await UserDAO(User, session).get_by_id(user_id)
    if user is None or not user.is_active:
        raise AuthenticationError(message=UNAUTHORIZED, user_id=user_id)

    return AuthContext(user=user, platform_role=platform_role_of(user))


def require_platform_role(ctx: AuthContext, role: Optional[str]) -> AuthContext:
    """
    Check the platform-wide role.

    Args:
        ctx: Context with a resolved user
        role: Required role, or None to only require an identity

    Raises:
        AuthenticationError: No identity resolved
        AuthorizationError: Role does not match
    """
    if ctx.user is None:
        raise AuthenticationError(message=UNAUTHORIZED)
    if role is not None and ctx.platform_role != role:
        logger.info(
            f"Platform role check failed for user {ctx.user_id}",
            extra={"user_id": ctx.user_id, "required_role": role},
        )
        raise AuthorizationError(message=UNAUTHORIZED)
    return ctx


async def require_membership(
    ctx: AuthContext,
    session: AsyncSession,
    organization_id: int,
    member_role: Optional[str] = None,
) -> AuthContext:
    """
    Check that the user belongs to an organization.

    Args:
        ctx: Context with a resolved user
        session: Database session
        organization_id: Organization to check
        member_role: Required role within the organization, None for any

    Returns:
        Context carrying the organization id and membership

    Raises:
        AuthorizationError: Not a member, or member role does not match
    """
    if ctx.user is None:
        raise AuthenticationError(message=UNAUTHORIZED)

    member = await MemberDAO(session).get_membership(organization_id, ctx.user.id)
    if member is None:
        logger.info(
            f"User {ctx.user_id} is not a member of organization {organization_id}",
            extra={"user_id": ctx.user_id, "organization_id": organization_id},
        )
        raise AuthorizationError(message=UNAUTHORIZED)

    if member_role is not None and member.role.value != member_role:
        raise AuthorizationError(message=UNAUTHORIZED)

    return replace(ctx, organization_id=organization_id, member=member)


async def authorize(
    token: Optional[str],
    session: AsyncSession,
    platform_role: Optional[str] = None,
    organization_id: Optional[int] = None,
    member_role: Optional[str] = None,
) -> AuthContext:
    """
    Run the full pipeline.

    With an organization id only membership (and member_role) is checked;
    the platform role is ignored. Without one, the platform role is checked.

    Returns:
        The final AuthContext
    """
    ctx = await resolve_identity(token, session)
    if organization_id is not None:
        return await require_membership(ctx, session, organization_id, member_role)
    return require_platform_role(ctx, platform_role)
