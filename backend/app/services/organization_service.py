"""
Organization Service.

WHAT: Tenants, their members and their billing contacts.

WHY: Membership is what grants a customer access to an organization's
projects, files and documents (app.core.authorization), so adding and
removing members is the portal's access management. Contacts are the
addressees of quotes and invoices.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    ValidationError,
)
from app.dao.organization import ContactInformationDAO, MemberDAO, OrganizationDAO
from app.dao.user import UserDAO
from app.models.organization import ContactInformation, Member, MemberRole, Organization
from app.models.user import User

logger = logging.getLogger(__name__)


class OrganizationService:
    """Service for organization, membership and contact operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.organization_dao = OrganizationDAO(session)
        self.member_dao = MemberDAO(session)
        self.contact_dao = ContactInformationDAO(session)
        self.user_dao = UserDAO(User, session)

    async def _get_or_404(self, organization_id: int) -> Organization:
        organization = await self.organization_dao.get_by_id(organization_id)
        if organization is None:
            raise ResourceNotFoundError(message="Organization not found", organization_id=organization_id)
        return organization

    # ========================================================================
    # Organizations
    # ========================================================================

    async def create_organization(
        self, creator: User, name: str, slug: str, logo: Optional[str] = None
    ) -> Organization:
        """
        Create an organization with its creator as owner.

        Raises:
            ResourceAlreadyExistsError: Slug already taken
        """
        if await self.organization_dao.get_by_slug(slug) is not None:
            raise ResourceAlreadyExistsError(message="Organization slug already exists", slug=slug)

        organization = await self.organization_dao.create(name=name, slug=slug, logo=logo)
        await self.member_dao.create(
            organization_id=organization.id,
            user_id=creator.id,
            role=MemberRole.OWNER,
        )
        logger.info(
            f"Created organization {organization.name}",
            extra={"organization_id": organization.id, "user_id": creator.id},
        )
        return organization

    async def update_organization(
        self,
        organization_id: int,
        name: Optional[str] = None,
        slug: Optional[str] = None,
        logo: Optional[str] = None,
    ) -> Organization:
        organization = await self._get_or_404(organization_id)
        return await self.organization_dao.update(
            organization_id,
            name=name or organization.name,
            slug=slug or organization.slug,
            logo=logo or organization.logo,
        )

    async def delete_organization(self, organization_id: int) -> None:
        """Delete an organization; everything it owns cascades."""
        await self._get_or_404(organization_id)
        await self.organization_dao.delete(organization_id)
        logger.info(f"Deleted organization {organization_id}", extra={"organization_id": organization_id})

    async def get_organization(self, organization_id: int) -> Organization:
        return await self._get_or_404(organization_id)

    async def list_organizations(self) -> List[Organization]:
        return await self.organization_dao.get_all(limit=None)

    async def list_for_user(self, user_id: int) -> List[Organization]:
        return await self.organization_dao.get_for_user(user_id)

    # ========================================================================
    # Members
    # ========================================================================

    async def add_member(self, organization_id: int, user_id: int, role: MemberRole) -> Member:
        """
        Add a user to an organization.

        Raises:
            ResourceNotFoundError: Organization or user missing
            ResourceAlreadyExistsError: User is already a member
        """
        await self._get_or_404(organization_id)
        if await self.user_dao.get_by_id(user_id) is None:
            raise ResourceNotFoundError(message="User not found", user_id=user_id)

        if await self.member_dao.get_membership(organization_id, user_id) is not None:
            raise ResourceAlreadyExistsError(
                message="User is already a member of this organization",
                organization_id=organization_id,
                user_id=user_id,
            )

        member = await self.member_dao.create(organization_id=organization_id, user_id=user_id, role=role)
        logger.info(
            f"Added user {user_id} to organization {organization_id} as {MemberRole(role).value}",
            extra={"organization_id": organization_id, "user_id": user_id},
        )
        return member

    async def update_member(self, member_id: int, role: MemberRole) -> Member:
        if await self.member_dao.get_by_id(member_id) is None:
            raise ResourceNotFoundError(message="Member not found", member_id=member_id)
        return await self.member_dao.update(member_id, role=role)

    async def remove_member(self, member_id: int) -> None:
        if not await self.member_dao.delete(member_id):
            raise ResourceNotFoundError(message="Member not found", member_id=member_id)

    async def list_members(self, organization_id: int) -> List[Dict[str, Any]]:
        """
        Members of an organization with their user's public fields.

        Returns:
            [{id, organization_id, user_id, role, created_at, user}] where
            user is None when the account no longer exists
        """
        members = await self.member_dao.get_all(limit=None, organization_id=organization_id)
        result = []
        for member in members:
            user = await self.user_dao.get_by_id(member.user_id)
            result.append(
                {
                    "id": member.id,
                    "organization_id": member.organization_id,
                    "user_id": member.user_id,
                    "role": member.role,
                    "created_at": member.created_at,
                    "user": (
                        {"id": user.id, "name": user.name, "email": user.email}
                        if user is not None
                        else None
                    ),
                }
            )
        return result

    async def list_users(self) -> List[User]:
        """Every user account, for picking new members."""
        return await self.user_dao.get_all(limit=1000)

    # ========================================================================
    # Contact information
    # ========================================================================

    async def create_contact(
        self,
        organization_id: int,
        name: str,
        email: str,
        organization_name: str,
        phone: str,
        address: str,
        user_id: Optional[int] = None,
    ) -> ContactInformation:
        """
        Create a billing contact.

        Raises:
            ValidationError: user_id given but not a member
        """
        await self._get_or_404(organization_id)
        if user_id is not None and await self.member_dao.get_membership(organization_id, user_id) is None:
            raise ValidationError(
                message="User is not a member of the organization",
                organization_id=organization_id,
                user_id=user_id,
            )

        return await self.contact_dao.create(
            organization_id=organization_id,
            name=name,
            email=email,
            organization_name=organization_name,
            phone=phone,
            address=address,
            user_id=user_id,
            is_default=False,
        )

    async def update_contact(
        self,
        contact_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        organization_name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        is_default: Optional[bool] = None,
    ) -> ContactInformation:
        """
        Patch a contact. Flagging it default clears the flag on the others.
        """
        contact = await self.contact_dao.get_by_id(contact_id)
        if contact is None:
            raise ResourceNotFoundError(
                message="Organization contact information not found",
                contact_id=contact_id,
            )

        if is_default:
            await self.contact_dao.clear_default(contact.organization_id, except_id=contact_id)

        return await self.contact_dao.update(
            contact_id,
            name=name or contact.name,
            email=email or contact.email,
            organization_name=organization_name or contact.organization_name,
            phone=phone or contact.phone,
            address=address or contact.address,
            is_default=bool(is_default) or contact.is_default,
        )

    async def delete_contact(self, contact_id: int) -> None:
        if not await self.contact_dao.delete(contact_id):
            raise ResourceNotFoundError(
                message="Organization contact information not found",
                contact_id=contact_id,
            )

    async def list_contacts(self, organization_id: int) -> List[ContactInformation]:
        return await self.contact_dao.get_all(limit=None, organization_id=organization_id)
