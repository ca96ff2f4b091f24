"""
FastAPI dependencies for authentication and authorization.

WHY: Dependencies wire the authorization pipeline (app.core.authorization)
into route handlers, so every route declares the check it needs in its
signature and the check runs before the handler body.

Three flavours exist:
- require_role(role): platform role only (staff endpoints)
- require_organization_member(member_role): membership in the organization
  named by the organization_id path parameter (customer endpoints)
- require_organization_access(role): membership when an organization_id
  query parameter is given, platform role otherwise (dual-purpose listings)
"""

from typing import Optional
from fastapi import Depends, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import (
    AuthContext,
    authorize,
    require_membership,
    require_platform_role,
    resolve_identity,
)
from app.db.session import get_db
from app.models.user import User


# WHY: auto_error=False so a missing header goes through the pipeline and
# fails with the same "Unauthorized" error as a bad token
security = HTTPBearer(auto_error=False)


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """
    Resolve the caller from the Authorization header.

    Raises:
        AuthenticationError: If the token is missing, invalid, or the user
            is unknown or inactive
    """
    return await resolve_identity(_token(credentials), db)


async def get_current_user(ctx: AuthContext = Depends(get_auth_context)) -> User:
    """
    Get current authenticated user.

    Usage:
        @router.get("/me")
        async def me(user: User = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    return ctx.user


def require_role(required_role: Optional[str]):
    """
    Factory function to create a platform role requirement dependency.

    Usage:
        @router.get("/projects/{project_id}")
        async def get_project(admin: User = Depends(require_role("admin"))):
            ...

    Args:
        required_role: "admin", "user", or None for any signed-in user

    Returns:
        Dependency function returning the checked User
    """

    async def role_checker(ctx: AuthContext = Depends(get_auth_context)) -> User:
        return require_platform_role(ctx, required_role).user

    return role_checker


require_admin = require_role("admin")


def require_organization_member(member_role: Optional[str] = None):
    """
    Factory for the organization-scoped check.

    The organization comes from the organization_id path parameter.

    Usage:
        @router.get("/organizations/{organization_id}/files")
        async def list_files(ctx: AuthContext = Depends(require_organization_member())):
            ...

    Args:
        member_role: Required role within the organization, None for any member

    Returns:
        Dependency function returning the AuthContext with membership
    """

    async def membership_checker(
        organization_id: int,
        ctx: AuthContext = Depends(get_auth_context),
        db: AsyncSession = Depends(get_db),
    ) -> AuthContext:
        return await require_membership(ctx, db, organization_id, member_role)

    return membership_checker


def require_organization_access(platform_role: Optional[str] = None):
    """
    Factory for dual-purpose endpoints.

    With an organization_id query parameter only membership is checked.
    Without one, the caller must hold the platform role.

    Args:
        platform_role: Platform role required when no organization is given

    Returns:
        Dependency function returning the AuthContext
    """

    async def access_checker(
        organization_id: Optional[int] = Query(None, description="Organization scope"),
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: AsyncSession = Depends(get_db),
    ) -> AuthContext:
        return await authorize(
            _token(credentials),
            db,
            platform_role=platform_role,
            organization_id=organization_id,
        )

    return access_checker
