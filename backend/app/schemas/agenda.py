"""Pydantic schemas for project agenda endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.agenda import AgendaItemType


class AgendaItemCreate(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "title": "Design review",
                "description": "Walk through the homepage mockups",
                "start_date": "2026-03-02T10:00:00Z",
                "end_date": "2026-03-02T11:00:00Z",
                "type": "meeting",
                "teams_link": "https://teams.microsoft.com/l/meetup-join/abc",
            }
        },
    )

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    start_date: datetime
    end_date: datetime
    location: Optional[str] = Field(default=None, max_length=512)
    teams_link: Optional[str] = Field(default=None, max_length=2048)
    type: AgendaItemType

    @model_validator(mode="after")
    def end_after_start(self) -> "AgendaItemCreate":
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class AgendaItemUpdate(BaseModel):
    """Partial update. Omitted or empty values keep the stored value."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, max_length=512)
    teams_link: Optional[str] = Field(default=None, max_length=2048)
    type: Optional[AgendaItemType] = None


class AgendaItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    organization_id: int
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    created_by_admin: bool
    location: Optional[str] = None
    teams_link: Optional[str] = None
    type: AgendaItemType
    created_at: datetime
    updated_at: datetime
