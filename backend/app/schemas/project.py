"""
Pydantic schemas for project endpoints.

WHAT: Request/response schemas for project management.

WHY: The staff response carries the CMS and Smart Objects keys; customers
get ProjectSummary, which leaves both out.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    """
    Project creation request schema.

    Projects start in phase "planning" at 5% progress, with the /public,
    /quotes and /invoices folders already in their file manager.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "organization_id": 1,
                "name": "Bakery website",
                "description": "Marketing site with CMS",
                "url": "https://bakery.example",
                "enable_smart_objects": False,
                "enable_cms": True,
                "contact_information_id": 1,
            }
        },
    )

    organization_id: int = Field(..., description="Owning organization")
    name: str = Field(..., min_length=1, max_length=255, description="Project name")
    description: str = Field(default="", max_length=5000)
    url: Optional[str] = Field(default=None, max_length=1024, description="Public URL of the site")
    enable_smart_objects: bool = False
    enable_cms: bool = False
    contact_information_id: int = Field(..., description="Billing contact for quotes and invoices")


class ProjectUpdate(BaseModel):
    """Partial update. Omitted or empty values keep the stored value."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    url: Optional[str] = Field(default=None, max_length=1024)
    enable_smart_objects: Optional[bool] = None
    enable_cms: Optional[bool] = None
    contact_information_id: Optional[int] = None


class ProjectProgressUpdate(BaseModel):
    progress: int = Field(..., ge=0, le=100, description="Completion percentage")
    phase: Optional[str] = Field(default=None, max_length=64)


class SmartObjectsKeyRequest(BaseModel):
    smart_objects_url: str = Field(..., min_length=1, max_length=1024)


class ProjectSummary(BaseModel):
    """Project as shown to organization members."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    name: str
    description: str
    url: Optional[str] = None
    progress: int
    phase: str
    enable_cms: bool
    enable_smart_objects: bool
    created_at: datetime
    updated_at: datetime


class ProjectResponse(ProjectSummary):
    """Project as shown to staff, keys included."""

    cms_key: Optional[str] = None
    cms_is_listening: bool
    selected_languages: Optional[List[str]] = None
    smart_objects_key: Optional[str] = None
    smart_objects_url: Optional[str] = None
    contact_information_id: Optional[int] = None
