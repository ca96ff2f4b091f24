"""
Pydantic schemas for file manager endpoints.

WHAT: Request/response schemas for entries and folder operations.

WHY: Entry names are absolute slash-delimited paths. Normalizing them here
(leading slash, no trailing or doubled slashes) keeps prefix matching in
the DAO exact.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.file_entry import ContentType


def normalize_path(value: str) -> str:
    """
    Canonical form of a file manager path.

    Example:
        >>> normalize_path("public//images/")
        '/public/images'
    """
    segments = [segment for segment in value.strip().split("/") if segment]
    if not segments:
        raise ValueError("Path must contain at least one segment")
    if any(segment in (".", "..") for segment in segments):
        raise ValueError("Path may not contain '.' or '..' segments")
    return "/" + "/".join(segments)


class _PathModel(BaseModel):
    @field_validator("name", "folder_path", check_fields=False)
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_path(value)


class FileCreate(_PathModel):
    """Staff entry creation with explicit permission flags."""

    name: str = Field(..., min_length=1, max_length=1024, description="Absolute path, e.g. /public/logo.png")
    content_type: ContentType
    content: Optional[str] = Field(default=None, description="Inline content for text entries")
    url: Optional[str] = Field(default=None, max_length=2048)
    storage_id: Optional[str] = Field(default=None, max_length=255)
    user_can_edit: bool = False
    user_can_delete: bool = False
    project_id: Optional[int] = Field(default=None, description="Owning project; None for the organization bucket")
    organization_id: Optional[int] = Field(default=None, description="Owning organization when no project is given")


class CustomerFileCreate(_PathModel):
    """
    Customer entry creation.

    Flags are not accepted; the entry is created editable and deletable
    once an ancestor folder grants edit.
    """

    name: str = Field(..., min_length=1, max_length=1024)
    content_type: ContentType
    content: Optional[str] = None
    url: Optional[str] = Field(default=None, max_length=2048)
    storage_id: Optional[str] = Field(default=None, max_length=255)
    project_id: Optional[int] = None


class FileContentUpdate(BaseModel):
    content: str = Field(..., description="New text content")


class FilePermissionsUpdate(BaseModel):
    """Both flags; on a folder they are copied to every descendant."""

    user_can_edit: bool
    user_can_delete: bool


class FolderDelete(_PathModel):
    folder_path: str = Field(..., min_length=1, max_length=1024)
    project_id: Optional[int] = None
    organization_id: Optional[int] = None


class FolderDeleteResponse(BaseModel):
    deleted: int = Field(..., description="Number of entries deleted")


class FileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    content_type: ContentType
    content: Optional[str] = None
    url: Optional[str] = None
    storage_id: Optional[str] = None
    user_can_edit: bool
    user_can_delete: bool
    project_id: Optional[int] = None
    organization_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
