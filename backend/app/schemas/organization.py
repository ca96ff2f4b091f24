"""
Pydantic schemas for organization, member and contact endpoints.

WHAT: Request/response schemas for tenants and their billing contacts.

HOW: Update schemas treat omitted and empty values as "keep the stored
value", matching the service layer.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.organization import MemberRole


# ============================================================================
# Organizations
# ============================================================================


class OrganizationCreate(BaseModel):
    """Organization creation request. The creator becomes its owner."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255, description="Organization name")
    slug: str = Field(
        ...,
        min_length=1,
        max_length=255,
        pattern=r"^[a-z0-9-]+$",
        description="URL slug, lowercase letters, digits and dashes",
    )
    logo: Optional[str] = Field(default=None, max_length=1024, description="Logo URL")


class OrganizationUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255, pattern=r"^[a-z0-9-]+$")
    logo: Optional[str] = Field(default=None, max_length=1024)


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    logo: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Members
# ============================================================================


class MemberCreate(BaseModel):
    user_id: int = Field(..., description="User to add")
    role: MemberRole = Field(default=MemberRole.MEMBER, description="Role within the organization")


class MemberUpdate(BaseModel):
    role: MemberRole = Field(..., description="New role within the organization")


class MemberUser(BaseModel):
    id: int
    name: str
    email: str


class MemberResponse(BaseModel):
    """
    Membership with the member's public user fields.

    user is None when the account no longer exists.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    user_id: int
    role: MemberRole
    created_at: datetime
    user: Optional[MemberUser] = None


# ============================================================================
# Contact information
# ============================================================================


class ContactInformationCreate(BaseModel):
    """
    Billing contact creation request.

    WHY: user_id optionally ties the contact to a portal account, which must
    be a member of the organization.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    organization_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(default="", max_length=64)
    address: str = Field(default="", max_length=1024)
    user_id: Optional[int] = None


class ContactInformationUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[EmailStr] = None
    organization_name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=64)
    address: Optional[str] = Field(default=None, max_length=1024)
    is_default: Optional[bool] = Field(
        default=None,
        description="Make this the organization's default contact",
    )


class ContactInformationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    organization_name: str
    name: str
    email: str
    phone: str
    address: str
    user_id: Optional[int] = None
    is_default: bool
    created_at: datetime
    updated_at: datetime
