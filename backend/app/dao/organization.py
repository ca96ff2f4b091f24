"""
Organization, Member and ContactInformation Data Access Objects.

WHAT: Database operations for tenants, their memberships and billing contacts.

WHY: Membership lookups sit on the hot path of every organization-scoped
request (see app.core.authorization), so they get a dedicated query on the
(organization_id, user_id) pair instead of a generic filter.
"""

from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.organization import ContactInformation, Member, Organization


class OrganizationDAO(BaseDAO[Organization]):
    """Data Access Object for Organization model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Organization, session)

    async def get_by_slug(self, slug: str) -> Optional[Organization]:
        return await self.get_by_field("slug", slug)

    async def get_for_user(self, user_id: int) -> List[Organization]:
        """
        Get every organization the user is a member of.

        Args:
            user_id: User ID

        Returns:
            Organizations ordered by name
        """
        result = await self.session.execute(
            select(Organization)
            .join(Member, Member.organization_id == Organization.id)
            .where(Member.user_id == user_id)
            .order_by(Organization.name)
        )
        return list(result.scalars().all())


class MemberDAO(BaseDAO[Member]):
    """Data Access Object for Member model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Member, session)

    async def get_membership(self, organization_id: int, user_id: int) -> Optional[Member]:
        """
        Look up the membership row linking a user to an organization.

        Returns:
            The Member if the user belongs to the organization, None otherwise
        """
        result = await self.session.execute(
            select(Member).where(
                Member.organization_id == organization_id,
                Member.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()


class ContactInformationDAO(BaseDAO[ContactInformation]):
    """Data Access Object for ContactInformation model."""

    def __init__(self, session: AsyncSession):
        super().__init__(ContactInformation, session)

    async def clear_default(self, organization_id: int, except_id: Optional[int] = None) -> None:
        """
        Unset is_default on the organization's contacts.

        WHY: At most one contact per organization is the default; called
        before flagging a new one.

        Args:
            organization_id: Organization whose contacts are updated
            except_id: Contact to leave untouched
        """
        stmt = (
            update(ContactInformation)
            .where(
                ContactInformation.organization_id == organization_id,
                ContactInformation.is_default.is_(True),
            )
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        if except_id is not None:
            stmt = stmt.where(ContactInformation.id != except_id)
        await self.session.execute(stmt)
