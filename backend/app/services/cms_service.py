"""
CMS Service.

WHAT: Pages, fields, splits and field values of the headless CMS, plus the
content resolver that layers split values over the defaults.

WHY: A customer's site renders content slots that editors fill in per
language. A split (A/B variant) only stores the languages in which it
differs from the default, so an untouched split costs no rows, and setting
a split value back to the default removes the override.

HOW:
    Read:  defaults = {field_id: {lang: value}} from rows with split NULL;
           with a split, that split's rows are merged over the defaults
           per language.
    Write: default rows are replaced wholesale. Split rows keep only the
           languages that differ from the default; an empty result deletes
           the existing split row instead of writing it.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.dao.cms import CMSFieldDAO, CMSFieldValueDAO, CMSPageDAO, CMSSplitDAO
from app.dao.project import ProjectDAO
from app.models.cms import CMSField, CMSPage, CMSSplit
from app.models.project import Project

logger = logging.getLogger(__name__)

LanguageMap = Dict[str, Optional[str]]


def merge_language_maps(base: LanguageMap, override: Optional[LanguageMap]) -> LanguageMap:
    """Return base with every language of override replacing it."""
    merged = dict(base)
    if isinstance(override, dict):
        merged.update(override)
    return merged


def split_overrides(submitted: LanguageMap, defaults: LanguageMap) -> LanguageMap:
    """
    Languages of a split save that differ from the default.

    A missing or empty default counts as None, so saving None into a split
    for a language without a default is not an override.
    """
    overrides: LanguageMap = {}
    for lang, value in submitted.items():
        if value != (defaults.get(lang) or None):
            overrides[lang] = value
    return overrides


def is_page_id(page: str) -> bool:
    """Pages are addressed by numeric id, or by slug otherwise."""
    return page.isdigit() and "/" not in page


class CMSService:
    """Service for headless CMS operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.page_dao = CMSPageDAO(session)
        self.field_dao = CMSFieldDAO(session)
        self.split_dao = CMSSplitDAO(session)
        self.value_dao = CMSFieldValueDAO(session)
        self.project_dao = ProjectDAO(session)

    # ========================================================================
    # Lookups
    # ========================================================================

    async def _project_in_org(
        self, project_id: int, organization_id: Optional[int], message: str = "Project not found or access denied"
    ) -> Project:
        """Load a project, scoped to an organization unless organization_id is None (staff)."""
        project = await self.project_dao.get_by_id(project_id)
        if project is None or (organization_id is not None and project.organization_id != organization_id):
            raise ResourceNotFoundError(message=message, project_id=project_id)
        return project

    async def _page_in_org(self, page_id: int, organization_id: Optional[int]) -> CMSPage:
        page = await self.page_dao.get_by_id(page_id)
        if page is None:
            raise ResourceNotFoundError(message="Page not found", page_id=page_id)
        if organization_id is None:
            return page
        project = await self.project_dao.get_by_id(page.project_id)
        if project is None or project.organization_id != organization_id:
            raise ResourceNotFoundError(message="Page not found", page_id=page_id)
        return page

    async def _get_project(self, project_id: int) -> Project:
        project = await self.project_dao.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=project_id)
        return project

    # ========================================================================
    # Pages and fields
    # ========================================================================

    async def get_pages(self, organization_id: Optional[int], project_id: int) -> List[CMSPage]:
        await self._project_in_org(project_id, organization_id, message="Project not found")
        return await self.page_dao.get_by_project(project_id)

    async def get_page_fields(self, organization_id: Optional[int], page_id: int) -> List[CMSField]:
        await self._page_in_org(page_id, organization_id)
        return await self.field_dao.get_by_page(page_id)

    async def delete_page(self, page_id: int) -> None:
        if not await self.page_dao.delete(page_id):
            raise ResourceNotFoundError(message="Page not found", page_id=page_id)
        logger.info(f"Deleted CMS page {page_id}", extra={"page_id": page_id})

    async def delete_field(self, field_id: int) -> None:
        if not await self.field_dao.delete(field_id):
            raise ResourceNotFoundError(message="Field not found", field_id=field_id)

    async def register(
        self,
        project_id: int,
        cms_key: str,
        page: str,
        fields: List[Dict[str, str]],
    ) -> CMSPage:
        """
        Register a page's content slots from a customer's site.

        The page is created from its slug on first sight. Each field's
        default value is created or overwritten by key.

        Raises:
            ValidationError: Project unknown or the CMS key does not match
        """
        project = await self.project_dao.get_by_id(project_id)
        if project is None or not project.cms_key or project.cms_key != cms_key:
            raise ValidationError(message="Invalid CMS key", project_id=project_id)

        cms_page = await self.page_dao.get_by_project_and_slug(project.id, page)
        if cms_page is None:
            cms_page = await self.page_dao.create(
                name=page,
                slug=page,
                project_id=project.id,
                listening_mode=False,
            )
            logger.info(f"Registered new CMS page {page}", extra={"project_id": project.id})

        for field in fields:
            existing = await self.field_dao.get_by_page_and_key(cms_page.id, field["id"])
            if existing is not None:
                await self.field_dao.update(existing.id, default_value=field["value"])
            else:
                await self.field_dao.create(
                    cms_page_id=cms_page.id,
                    key=field["id"],
                    default_value=field["value"],
                )
        return cms_page

    # ========================================================================
    # Project settings
    # ========================================================================

    async def get_listening_mode(self, project_id: int) -> bool:
        return bool((await self._get_project(project_id)).cms_is_listening)

    async def set_listening_mode(self, project_id: int, listening_mode: bool) -> Project:
        await self._get_project(project_id)
        return await self.project_dao.update(project_id, cms_is_listening=listening_mode)

    async def get_languages(self, project_id: int) -> List[str]:
        return list((await self._get_project(project_id)).selected_languages or [])

    async def set_languages(self, organization_id: Optional[int], project_id: int, languages: List[str]) -> Project:
        await self._project_in_org(project_id, organization_id, message="Project not found")
        return await self.project_dao.update(project_id, selected_languages=list(languages))

    # ========================================================================
    # Splits
    # ========================================================================

    async def add_split(self, organization_id: Optional[int], project_id: int, name: str) -> CMSSplit:
        await self._project_in_org(project_id, organization_id)
        return await self.split_dao.create(project_id=project_id, split=name)

    async def get_splits(self, organization_id: Optional[int], project_id: int) -> List[CMSSplit]:
        await self._project_in_org(project_id, organization_id)
        return await self.split_dao.get_by_project(project_id)

    async def delete_split(self, organization_id: Optional[int], split_id: int) -> None:
        """Delete a split and every value row stored for it."""
        split = await self.split_dao.get_by_id(split_id)
        if split is None:
            raise ResourceNotFoundError(message="Split not found", split_id=split_id)
        await self._project_in_org(split.project_id, organization_id)

        removed = await self.value_dao.delete_by_split(split_id)
        await self.split_dao.delete(split_id)
        logger.info(
            f"Deleted split {split_id} and {removed} value row(s)",
            extra={"split_id": split_id},
        )

    # ========================================================================
    # Field values
    # ========================================================================

    async def _default_maps(self, page_id: int) -> Dict[int, LanguageMap]:
        maps: Dict[int, LanguageMap] = {}
        for row in await self.value_dao.get_for_page(page_id, None):
            maps[row.cms_field_id] = merge_language_maps(maps.get(row.cms_field_id, {}), row.value)
        return maps

    async def resolve_field_values(self, page_id: int, split_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Effective value of every field on a page.

        Returns:
            [{field_id, key, default_value, values}] where values is the
            default language map with the split's languages merged over it
        """
        fields = await self.field_dao.get_by_page(page_id)
        maps = await self._default_maps(page_id)

        if split_id is not None:
            for row in await self.value_dao.get_for_page(page_id, split_id):
                maps[row.cms_field_id] = merge_language_maps(maps.get(row.cms_field_id, {}), row.value)

        return [
            {
                "field_id": field.id,
                "key": field.key,
                "default_value": field.default_value,
                "values": maps.get(field.id, {}),
            }
            for field in fields
        ]

    async def get_page_values(
        self, organization_id: Optional[int], page_id: int, split_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Resolved values of a page of the organization, for the editor."""
        await self._page_in_org(page_id, organization_id)
        return await self.resolve_field_values(page_id, split_id)

    async def get_field_values(
        self,
        project_id: int,
        page: Union[str, int],
        split_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Resolve field values of a page given by id or by slug.

        An unknown slug yields an empty list.
        """
        page = str(page)
        if is_page_id(page):
            return await self.resolve_field_values(int(page), split_id)

        cms_page = await self.page_dao.get_by_project_and_slug(project_id, page)
        if cms_page is None:
            return []
        return await self.resolve_field_values(cms_page.id, split_id)

    async def save_field_values(
        self,
        organization_id: Optional[int],
        page_id: int,
        field_values: List[Dict[str, Any]],
        split_id: Optional[int] = None,
    ) -> Dict[str, bool]:
        """
        Save per-language values for fields of a page.

        Args:
            organization_id: Organization the page's project must belong to, None for staff
            page_id: Page ID
            field_values: [{"field_id": int, "values": {lang: str | None}}]
            split_id: Split to save into, None for the defaults

        Returns:
            {"success": True}

        Raises:
            ResourceNotFoundError: Page unknown, a field not on this page, or
                the split not of this page's project
        """
        page = await self.page_dao.get_by_id(page_id)
        if page is None:
            raise ResourceNotFoundError(message="Page not found", page_id=page_id)
        await self._project_in_org(page.project_id, organization_id)

        page_field_ids = {field.id for field in await self.field_dao.get_by_page(page_id)}
        for entry in field_values:
            if entry["field_id"] not in page_field_ids:
                raise ResourceNotFoundError(message="Field not found", field_id=entry["field_id"])

        if split_id is not None:
            split = await self.split_dao.get_by_id(split_id)
            if split is None or split.project_id != page.project_id:
                raise ResourceNotFoundError(message="Split not found", split_id=split_id)

        defaults = await self._default_maps(page_id) if split_id is not None else {}

        for entry in field_values:
            field_id = entry["field_id"]
            submitted: LanguageMap = dict(entry.get("values") or {})
            existing = await self.value_dao.get_row(field_id, page_id, split_id)

            if split_id is None:
                value = submitted
                has_changes = bool(value)
            else:
                value = split_overrides(submitted, defaults.get(field_id, {}))
                has_changes = bool(value)
                if not has_changes and existing is not None:
                    await self.value_dao.delete(existing.id)
                    logger.info(
                        f"Removed split override of field {field_id} on page {page_id}",
                        extra={"field_id": field_id, "split_id": split_id},
                    )
                    continue

            if not has_changes and existing is None:
                continue

            if existing is not None:
                await self.value_dao.update(existing.id, value=value)
            else:
                await self.value_dao.create(
                    cms_field_id=field_id,
                    page_id=page_id,
                    split_id=split_id,
                    value=value,
                )

        return {"success": True}
