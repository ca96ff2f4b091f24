"""
Project Data Access Object (DAO).

WHAT: Database operations for the Project model.

WHY: Staff list every project; members only those of their organization.
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.project import Project


class ProjectDAO(BaseDAO[Project]):
    """Data Access Object for Project model."""

    def __init__(self, session: AsyncSession):
        """
        Initialize ProjectDAO.

        Args:
            session: Async database session
        """
        super().__init__(Project, session)

    async def list_projects(self, organization_id: Optional[int] = None) -> List[Project]:
        """
        List projects, newest first.

        Args:
            organization_id: Restrict to one organization, None for all

        Returns:
            List of projects
        """
        query = select(Project).order_by(Project.created_at.desc(), Project.id.desc())
        if organization_id is not None:
            query = query.where(Project.organization_id == organization_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())
