"""
Pydantic schemas for the headless CMS.

WHAT: Staff-facing request/response schemas and the public register body.

HOW: Language maps are {language code: value}. A null value clears that
language in the row being written.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CMSPageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    project_id: int
    listening_mode: bool
    created_at: datetime


class CMSFieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cms_page_id: int
    key: str
    default_value: str


class CMSSplitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Split name, e.g. 'summer-campaign'")


class CMSSplitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    split: str
    created_at: datetime


class FieldValueInput(BaseModel):
    field_id: int
    values: Dict[str, Optional[str]] = Field(default_factory=dict)


class FieldValuesSave(BaseModel):
    """
    Values to save for fields of a page.

    With split_id null the default rows are replaced. With a split only the
    languages that differ from the default are stored.
    """

    field_values: List[FieldValueInput]
    split_id: Optional[int] = None


class ResolvedFieldValue(BaseModel):
    field_id: int
    key: str
    default_value: str
    values: Dict[str, Optional[str]]


class LanguagesUpdate(BaseModel):
    languages: List[str] = Field(..., description="Language codes, e.g. ['en', 'nl']")


class ListeningModeUpdate(BaseModel):
    listening_mode: bool


class SuccessResponse(BaseModel):
    success: bool = True


# ============================================================================
# Public endpoints
# ============================================================================


class RegisterField(BaseModel):
    id: str = Field(..., min_length=1, description="Field key on the page")
    value: str = Field(default="", description="Default value rendered by the site")


class CMSRegisterRequest(BaseModel):
    """Body of POST /cms/register, sent by the customer's site."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: int = Field(..., alias="projectId")
    api_key: str = Field(..., alias="apiKey", min_length=1)
    page: str = Field(..., min_length=1)
    fields: List[RegisterField]
