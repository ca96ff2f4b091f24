"""
Agenda Service.

WHAT: The shared calendar of a project: meetings, deliverables and other
dated items.

WHY: Staff and customers plan on the same agenda, but an item staff put
there is a commitment. Customers may add, change and remove their own
items; items created by staff are read-only to them.

HOW: Every operation is scoped to an organization. Staff routes pass None
to skip the scope. Updates follow the project update rule: omitted or
empty values keep the stored value.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationError,
)
from app.dao.agenda import AgendaItemDAO
from app.dao.project import ProjectDAO
from app.models.agenda import AgendaItem
from app.models.project import Project
from app.services.billing_service import to_utc_naive

logger = logging.getLogger(__name__)

DATE_FIELDS = ("start_date", "end_date")


class AgendaService:
    """Service for project agenda operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.dao = AgendaItemDAO(session)
        self.project_dao = ProjectDAO(session)

    async def _get_project(self, organization_id: Optional[int], project_id: int) -> Project:
        project = await self.project_dao.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=project_id)
        if organization_id is not None and project.organization_id != organization_id:
            raise AuthorizationError(project_id=project_id, organization_id=organization_id)
        return project

    async def _get_item(self, organization_id: Optional[int], item_id: int) -> AgendaItem:
        item = await self.dao.get_by_id(item_id)
        if item is None:
            raise ResourceNotFoundError(message="Agenda item not found", agenda_item_id=item_id)
        if organization_id is not None and item.organization_id != organization_id:
            raise AuthorizationError(agenda_item_id=item_id, organization_id=organization_id)
        return item

    async def list_items(
        self, organization_id: Optional[int], project_id: Optional[int] = None
    ) -> List[AgendaItem]:
        """
        Items of a project, else of the organization.

        An unknown project yields no items; a project of another
        organization is refused.
        """
        if project_id is not None:
            project = await self.project_dao.get_by_id(project_id)
            if project is not None and organization_id is not None and project.organization_id != organization_id:
                raise AuthorizationError(project_id=project_id, organization_id=organization_id)
        return await self.dao.list_items(project_id=project_id, organization_id=organization_id)

    async def get_item(self, organization_id: Optional[int], item_id: int) -> AgendaItem:
        return await self._get_item(organization_id, item_id)

    async def create_item(
        self,
        organization_id: Optional[int],
        project_id: int,
        data: Dict[str, Any],
        created_by_admin: bool,
    ) -> AgendaItem:
        """
        Put an item on a project's agenda.

        Args:
            organization_id: Organization the project must belong to, None for staff
            project_id: Project ID
            data: title, description, start_date, end_date, location, teams_link, type
            created_by_admin: Locks the item for customers
        """
        project = await self._get_project(organization_id, project_id)
        values = dict(data)
        for field in DATE_FIELDS:
            values[field] = to_utc_naive(values[field])

        item = await self.dao.create(
            project_id=project.id,
            organization_id=project.organization_id,
            created_by_admin=created_by_admin,
            **values,
        )
        logger.info(
            f"Added agenda item {item.id} to project {project.id}",
            extra={"agenda_item_id": item.id, "created_by_admin": created_by_admin},
        )
        return item

    async def update_item(
        self,
        organization_id: Optional[int],
        item_id: int,
        changes: Dict[str, Any],
        is_staff: bool,
    ) -> AgendaItem:
        """
        Patch an item. Omitted or empty values keep the stored value.

        Raises:
            PermissionDeniedError: A customer editing an item created by staff
            ValidationError: The item would end before it starts
        """
        item = await self._get_item(organization_id, item_id)
        if item.created_by_admin and not is_staff:
            raise PermissionDeniedError(
                message="Unauthorized: Cannot update admin-created events",
                agenda_item_id=item_id,
            )

        values = {key: value for key, value in changes.items() if value not in (None, "")}
        for field in DATE_FIELDS:
            if field in values:
                values[field] = to_utc_naive(values[field])

        start = values.get("start_date", item.start_date)
        end = values.get("end_date", item.end_date)
        if end < start:
            raise ValidationError(message="End date cannot be before start date", agenda_item_id=item_id)

        if not values:
            return item
        return await self.dao.update(item_id, **values)

    async def delete_item(self, organization_id: Optional[int], item_id: int, is_staff: bool) -> None:
        """
        Raises:
            PermissionDeniedError: A customer deleting an item created by staff
        """
        item = await self._get_item(organization_id, item_id)
        if item.created_by_admin and not is_staff:
            raise PermissionDeniedError(
                message="Unauthorized: Cannot delete admin-created events",
                agenda_item_id=item_id,
            )
        await self.dao.delete(item_id)
        logger.info(f"Deleted agenda item {item_id}", extra={"agenda_item_id": item_id})
