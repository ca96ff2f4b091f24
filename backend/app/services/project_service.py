"""
Project Service.

WHAT: Project lifecycle for staff (create, update, delete, progress, keys)
and the read access customers get through membership.

WHY: Creating a project is more than an insert. The project's file manager
is seeded with its standard folders in the same transaction:

    /public     customers may edit and delete
    /quotes     locked, filled by the PDF task
    /invoices   locked, filled by the PDF task

HOW: Keys for the CMS and the Smart Objects proxy are random uuid4 triples
behind a fixed prefix, regenerated on demand.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.exceptions import AuthorizationError, ResourceNotFoundError
from app.dao.file_entry import FileEntryDAO
from app.dao.organization import ContactInformationDAO, MemberDAO, OrganizationDAO
from app.dao.project import ProjectDAO
from app.models.file_entry import ContentType
from app.models.project import (
    DEFAULT_PROJECT_PHASE,
    DEFAULT_PROJECT_PROGRESS,
    Project,
)

logger = logging.getLogger(__name__)

CMS_KEY_PREFIX = "SLEADS-CMS-"
SMART_OBJECTS_KEY_PREFIX = "SLEADS-SO-KEY-"

# (path, user_can_edit, user_can_delete)
DEFAULT_FOLDERS = (
    ("/public", True, True),
    ("/quotes", False, False),
    ("/invoices", False, False),
)


def generate_key(prefix: str) -> str:
    """
    Prefix followed by three random uuid4s joined with "-".

    Example:
        SLEADS-CMS-5b0c...-1f2e...-9a7d...
    """
    return prefix + "-".join(str(uuid.uuid4()) for _ in range(3))


class ProjectService:
    """Service for project operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.project_dao = ProjectDAO(session)
        self.organization_dao = OrganizationDAO(session)
        self.contact_dao = ContactInformationDAO(session)
        self.file_dao = FileEntryDAO(session)

    async def _get_or_404(self, project_id: int) -> Project:
        project = await self.project_dao.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=project_id)
        return project

    async def _require_contact(self, contact_information_id: int) -> None:
        if await self.contact_dao.get_by_id(contact_information_id) is None:
            raise ResourceNotFoundError(
                message="Contact information not found",
                contact_information_id=contact_information_id,
            )

    # ========================================================================
    # Staff operations
    # ========================================================================

    async def create_project(
        self,
        organization_id: int,
        name: str,
        description: str,
        contact_information_id: int,
        url: Optional[str] = None,
        enable_smart_objects: bool = False,
        enable_cms: bool = False,
    ) -> Project:
        """
        Create a project and seed its default folders.

        Raises:
            ResourceNotFoundError: Organization or contact information missing
        """
        if await self.organization_dao.get_by_id(organization_id) is None:
            raise ResourceNotFoundError(message="Organization not found", organization_id=organization_id)
        await self._require_contact(contact_information_id)

        project = await self.project_dao.create(
            organization_id=organization_id,
            name=name,
            description=description,
            url=url,
            phase=DEFAULT_PROJECT_PHASE,
            progress=DEFAULT_PROJECT_PROGRESS,
            cms_is_listening=False,
            enable_smart_objects=enable_smart_objects,
            enable_cms=enable_cms,
            contact_information_id=contact_information_id,
        )

        for path, can_edit, can_delete in DEFAULT_FOLDERS:
            await self.file_dao.create(
                name=path,
                content_type=ContentType.FOLDER,
                user_can_edit=can_edit,
                user_can_delete=can_delete,
                project_id=project.id,
                organization_id=organization_id,
            )

        logger.info(
            f"Created project {project.name}",
            extra={"project_id": project.id, "organization_id": organization_id},
        )
        return project

    async def update_project(
        self,
        project_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        url: Optional[str] = None,
        enable_smart_objects: Optional[bool] = None,
        enable_cms: Optional[bool] = None,
        contact_information_id: Optional[int] = None,
    ) -> Project:
        """Patch a project. Omitted or empty values keep the stored value."""
        project = await self._get_or_404(project_id)
        if contact_information_id:
            await self._require_contact(contact_information_id)

        return await self.project_dao.update(
            project_id,
            name=name or project.name,
            description=description or project.description,
            url=url or project.url,
            enable_smart_objects=(
                project.enable_smart_objects if enable_smart_objects is None else enable_smart_objects
            ),
            enable_cms=project.enable_cms if enable_cms is None else enable_cms,
            contact_information_id=contact_information_id or project.contact_information_id,
        )

    async def update_progress(self, project_id: int, progress: int, phase: Optional[str] = None) -> Project:
        project = await self._get_or_404(project_id)
        return await self.project_dao.update(
            project_id,
            progress=progress or project.progress,
            phase=phase or project.phase,
        )

    async def delete_project(self, project_id: int) -> None:
        """Delete a project; files, CMS data, quotes and invoices cascade."""
        await self._get_or_404(project_id)
        await self.project_dao.delete(project_id)
        logger.info(f"Deleted project {project_id}", extra={"project_id": project_id})

    async def generate_cms_key(self, project_id: int) -> Project:
        """Replace the project's CMS key with a fresh one."""
        await self._get_or_404(project_id)
        return await self.project_dao.update(project_id, cms_key=generate_key(CMS_KEY_PREFIX))

    async def generate_smart_objects_key(self, project_id: int, smart_objects_url: str) -> Project:
        """Replace the Smart Objects key and set the proxy target URL."""
        await self._get_or_404(project_id)
        return await self.project_dao.update(
            project_id,
            smart_objects_key=generate_key(SMART_OBJECTS_KEY_PREFIX),
            smart_objects_url=smart_objects_url,
        )

    async def update_smart_objects_url(self, project_id: int, smart_objects_url: str) -> Project:
        await self._get_or_404(project_id)
        return await self.project_dao.update(project_id, smart_objects_url=smart_objects_url)

    # ========================================================================
    # Reads
    # ========================================================================

    async def get_project(self, project_id: int, organization_id: Optional[int] = None) -> Project:
        """
        Get a project, optionally requiring it to belong to an organization.

        Raises:
            ResourceNotFoundError: Unknown id
            AuthorizationError: Project belongs to another organization
        """
        project = await self._get_or_404(project_id)
        if organization_id is not None and project.organization_id != organization_id:
            raise AuthorizationError(project_id=project_id)
        return project

    async def list_projects(self, organization_id: Optional[int] = None) -> List[Project]:
        return await self.project_dao.list_projects(organization_id)

    async def user_is_part_of_project(self, ctx: AuthContext, project_id: int) -> bool:
        """
        True for platform admins and members of the project's organization.

        Raises:
            ResourceNotFoundError: Unknown project
            AuthorizationError: Caller is neither
        """
        project = await self._get_or_404(project_id)
        if ctx.is_platform_admin:
            return True

        member = await MemberDAO(self.session).get_membership(project.organization_id, ctx.user_id)
        if member is None:
            raise AuthorizationError(
                message="Unauthorized: Not a member of this organization",
                project_id=project_id,
            )
        return True
