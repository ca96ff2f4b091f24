"""
Tests for file manager permission inheritance.

WHY: A grant on a folder must cover everything below it however deep,
even through a locked intermediate folder, and the eager fan-out must
agree with the live walk for existing entries.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PermissionDeniedError
from app.dao.file_entry import FileEntryDAO
from app.models.file_entry import ContentType, FileEntry
from app.services.file_permissions import (
    FileAction,
    ancestor_paths,
    can_act,
    fan_out,
    grants_permission,
    require_permission,
    split_path,
)
from tests.factories import FileEntryFactory, OrganizationFactory, ProjectFactory


def folder(name: str, edit: bool = False, delete: bool = False) -> FileEntry:
    return FileEntry(
        name=name,
        content_type=ContentType.FOLDER,
        user_can_edit=edit,
        user_can_delete=delete,
    )


def text(name: str, edit: bool = False, delete: bool = False) -> FileEntry:
    return FileEntry(
        name=name,
        content_type=ContentType.TEXT,
        user_can_edit=edit,
        user_can_delete=delete,
    )


class TestPaths:
    def test_split_path_ignores_empty_segments(self):
        assert split_path("/a//b/") == ["a", "b"]

    def test_ancestor_paths(self):
        assert ancestor_paths("/a/b/c") == ["/a", "/a/b"]

    def test_top_level_has_no_ancestors(self):
        assert ancestor_paths("/a") == []
        assert ancestor_paths("/") == []


class TestCanAct:
    """The live walk."""

    def test_grant_skips_locked_intermediate_folder(self):
        """
        /public grants edit; /public/locked does not; a create deeper down
        is still allowed.
        """
        entries = [folder("/public", edit=True), folder("/public/locked")]

        assert can_act(entries, "/public/locked/deep/new.txt", FileAction.CREATE) is True

    def test_no_grant_anywhere(self):
        entries = [folder("/invoices"), folder("/invoices/2024")]

        assert can_act(entries, "/invoices/2024/new.pdf", FileAction.CREATE) is False

    def test_falls_back_to_target(self):
        target = text("/readme.txt", delete=True)

        assert can_act([target], "/readme.txt", FileAction.DELETE, target=target) is True
        assert can_act([target], "/readme.txt", FileAction.EDIT, target=target) is False

    def test_edit_and_delete_are_independent(self):
        entries = [folder("/public", edit=True)]

        assert can_act(entries, "/public/a.txt", FileAction.EDIT) is True
        assert can_act(entries, "/public/a.txt", FileAction.DELETE) is False

    def test_only_folders_grant_to_descendants(self):
        """A text entry whose name prefixes the path is not an ancestor folder."""
        entries = [text("/notes", edit=True)]

        assert can_act(entries, "/notes/child.txt", FileAction.CREATE) is False

    def test_sibling_prefix_is_not_an_ancestor(self):
        entries = [folder("/pub", edit=True)]

        assert can_act(entries, "/public/a.txt", FileAction.CREATE) is False

    def test_grants_permission_without_entry(self):
        assert grants_permission(None, FileAction.EDIT) is False

    def test_require_permission_raises_with_message(self):
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_permission([], "/quotes/Q.pdf", FileAction.DELETE, "You do not have permission to delete this file")

        assert exc_info.value.message == "You do not have permission to delete this file"
        assert exc_info.value.status_code == 403


class TestFanOut:
    """The eager copy onto descendants."""

    @pytest.mark.asyncio
    async def test_copies_flags_to_descendants_only(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        project = await ProjectFactory.create(db_session, org)
        root = await FileEntryFactory.create(db_session, "/public", project=project)
        child = await FileEntryFactory.create(db_session, "/public/img", project=project)
        leaf = await FileEntryFactory.create(db_session, "/public/img/a.png", ContentType.FILE, project=project)
        sibling = await FileEntryFactory.create(db_session, "/publicity", project=project)

        updated = await fan_out(FileEntryDAO(db_session), root, True, True)

        assert updated == 2
        for entry in (child, leaf):
            await db_session.refresh(entry)
            assert entry.user_can_edit is True
            assert entry.user_can_delete is True
        await db_session.refresh(sibling)
        assert sibling.user_can_edit is False

    @pytest.mark.asyncio
    async def test_stays_inside_the_folder_scope(self, db_session: AsyncSession):
        """
        A project folder does not touch same-named paths of another project
        or of the organization bucket.
        """
        org = await OrganizationFactory.create(db_session)
        project = await ProjectFactory.create(db_session, org)
        other = await ProjectFactory.create(db_session, org, name="Other")
        root = await FileEntryFactory.create(db_session, "/public", project=project)
        foreign = await FileEntryFactory.create(db_session, "/public/x.txt", ContentType.TEXT, project=other)
        bucket = await FileEntryFactory.create(db_session, "/public/y.txt", ContentType.TEXT, organization=org)

        await fan_out(FileEntryDAO(db_session), root, True, False)

        await db_session.refresh(foreign)
        await db_session.refresh(bucket)
        assert foreign.user_can_edit is False
        assert bucket.user_can_edit is False

    @pytest.mark.asyncio
    async def test_non_folder_is_a_no_op(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        entry = await FileEntryFactory.create(db_session, "/a.txt", ContentType.TEXT, organization=org)

        assert await fan_out(FileEntryDAO(db_session), entry, True, True) == 0

    @pytest.mark.asyncio
    async def test_agrees_with_live_walk(self, db_session: AsyncSession):
        """
        After a fan-out every existing descendant's stored flags match what
        the live walk decides. An entry created afterwards keeps its own
        flags and relies on the walk alone.
        """
        org = await OrganizationFactory.create(db_session)
        project = await ProjectFactory.create(db_session, org)
        root = await FileEntryFactory.create(
            db_session, "/a", project=project, user_can_edit=True, user_can_delete=True
        )
        await FileEntryFactory.create(db_session, "/a/b", project=project)
        await FileEntryFactory.create(db_session, "/a/b/c.txt", ContentType.TEXT, project=project)

        await fan_out(FileEntryDAO(db_session), root, True, True)
        late = await FileEntryFactory.create(db_session, "/a/b/late.txt", ContentType.TEXT, project=project)
        entries = await FileEntryDAO(db_session).list_in_scope(project_id=project.id)
        for entry in entries:
            await db_session.refresh(entry)

        for entry in entries:
            if entry.name in ("/a", late.name):
                continue
            for action in (FileAction.EDIT, FileAction.DELETE):
                assert grants_permission(entry, action) is can_act(entries, entry.name, action)
        assert grants_permission(late, FileAction.DELETE) is False
        assert can_act(entries, late.name, FileAction.DELETE) is True
