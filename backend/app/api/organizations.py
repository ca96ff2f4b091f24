"""
Organization API endpoints.

WHAT: Tenants, their members and their billing contacts.

WHY: Organizations are the customer tenants of the portal. Staff (platform
admins) manage them; members can read their own organization and its
contacts.

HOW: FastAPI router with:
- require_admin for every mutation
- require_organization_member() for the member-readable routes
- Static paths (/users, /mine) declared before /{organization_id}
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import get_current_user, require_admin, require_organization_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import UserResponse
from app.schemas.organization import (
    ContactInformationCreate,
    ContactInformationResponse,
    ContactInformationUpdate,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)
from app.services.organization_service import OrganizationService
from app.api.auth import user_to_response


router = APIRouter(prefix="/organizations", tags=["organizations"])


# ============================================================================
# Static routes
# ============================================================================


@router.get(
    "/users",
    response_model=List[UserResponse],
    summary="List users",
    description="List user accounts to pick new members from (ADMIN only)",
)
async def list_users(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[UserResponse]:
    users = await OrganizationService(db).list_users()
    return [user_to_response(user) for user in users]


@router.get(
    "/mine",
    response_model=List[OrganizationResponse],
    summary="List my organizations",
    description="Organizations the current user is a member of",
)
async def list_my_organizations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[OrganizationResponse]:
    return await OrganizationService(db).list_for_user(current_user.id)


# ============================================================================
# Organizations
# ============================================================================


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
    description="Create an organization; the creator becomes its owner (ADMIN only)",
)
async def create_organization(
    data: OrganizationCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> OrganizationResponse:
    """
    Create a new organization.

    Raises:
        ResourceAlreadyExistsError (409): Slug already taken
    """
    return await OrganizationService(db).create_organization(
        creator=current_user,
        name=data.name,
        slug=data.slug,
        logo=data.logo,
    )


@router.get(
    "",
    response_model=List[OrganizationResponse],
    summary="List organizations",
    description="List every organization (ADMIN only)",
)
async def list_organizations(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[OrganizationResponse]:
    return await OrganizationService(db).list_organizations()


@router.get(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Get organization",
    description="Get an organization the current user is a member of",
)
async def get_organization(
    organization_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> OrganizationResponse:
    return await OrganizationService(db).get_organization(organization_id)


@router.patch(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Update organization",
    description="Update name, slug or logo (ADMIN only)",
)
async def update_organization(
    organization_id: int,
    data: OrganizationUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> OrganizationResponse:
    return await OrganizationService(db).update_organization(
        organization_id,
        name=data.name,
        slug=data.slug,
        logo=data.logo,
    )


@router.delete(
    "/{organization_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organization",
    description="Delete an organization and everything it owns (ADMIN only)",
)
async def delete_organization(
    organization_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await OrganizationService(db).delete_organization(organization_id)


# ============================================================================
# Members
# ============================================================================


@router.get(
    "/{organization_id}/members",
    response_model=List[MemberResponse],
    summary="List members",
    description="Members of an organization with their user details (ADMIN only)",
)
async def list_members(
    organization_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[MemberResponse]:
    return await OrganizationService(db).list_members(organization_id)


@router.post(
    "/{organization_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add member",
    description="Add a user to an organization (ADMIN only)",
)
async def add_member(
    organization_id: int,
    data: MemberCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MemberResponse:
    """
    Add a member.

    Raises:
        ResourceNotFoundError (404): Organization or user missing
        ResourceAlreadyExistsError (409): Already a member
    """
    member = await OrganizationService(db).add_member(organization_id, data.user_id, data.role)
    return MemberResponse.model_validate(member)


@router.patch(
    "/{organization_id}/members/{member_id}",
    response_model=MemberResponse,
    summary="Update member role",
    description="Change a member's role (ADMIN only)",
)
async def update_member(
    organization_id: int,
    member_id: int,
    data: MemberUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MemberResponse:
    member = await OrganizationService(db).update_member(member_id, data.role)
    return MemberResponse.model_validate(member)


@router.delete(
    "/{organization_id}/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove member",
    description="Remove a member from an organization (ADMIN only)",
)
async def remove_member(
    organization_id: int,
    member_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await OrganizationService(db).remove_member(member_id)


# ============================================================================
# Contact information
# ============================================================================


@router.get(
    "/{organization_id}/contacts",
    response_model=List[ContactInformationResponse],
    summary="List contacts",
    description="Billing contacts of an organization",
)
async def list_contacts(
    organization_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> List[ContactInformationResponse]:
    return await OrganizationService(db).list_contacts(organization_id)


@router.post(
    "/{organization_id}/contacts",
    response_model=ContactInformationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create contact",
    description="Create a billing contact (ADMIN only)",
)
async def create_contact(
    organization_id: int,
    data: ContactInformationCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ContactInformationResponse:
    """
    Create a billing contact.

    Raises:
        ValidationError (400): user_id is not a member of the organization
    """
    return await OrganizationService(db).create_contact(
        organization_id,
        name=data.name,
        email=data.email,
        organization_name=data.organization_name,
        phone=data.phone,
        address=data.address,
        user_id=data.user_id,
    )


@router.patch(
    "/{organization_id}/contacts/{contact_id}",
    response_model=ContactInformationResponse,
    summary="Update contact",
    description="Update a billing contact or make it the default (ADMIN only)",
)
async def update_contact(
    organization_id: int,
    contact_id: int,
    data: ContactInformationUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ContactInformationResponse:
    return await OrganizationService(db).update_contact(
        contact_id,
        name=data.name,
        email=data.email,
        organization_name=data.organization_name,
        phone=data.phone,
        address=data.address,
        is_default=data.is_default,
    )


@router.delete(
    "/{organization_id}/contacts/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete contact",
    description="Delete a billing contact (ADMIN only)",
)
async def delete_contact(
    organization_id: int,
    contact_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await OrganizationService(db).delete_contact(contact_id)
