"""
File manager permission inheritance.

WHAT: Decides whether a customer may create, edit or delete an entry at a
path, and copies a folder's flags onto its descendants when staff change
them.

WHY: Staff grant customers access per folder (for example /public is
writable, /invoices is not). A grant on a folder covers everything under
it, however deep, even if an intermediate folder is locked.

HOW: Two mechanisms share the single predicate grants_permission():

- can_act() is the live check. It walks the ancestor folders of the path
  (/a, /a/b for /a/b/c), ORs their flags, and falls back to the target
  entry's own flag.
- fan_out() is the eager copy. When a folder's flags are edited, the same
  flags are written onto every existing descendant.

After a fan-out the stored flag of every descendant equals what the live
walk grants through that folder, so both mechanisms agree on existing
entries. Entries created later are judged by the live walk only.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

from app.core.exceptions import PermissionDeniedError
from app.dao.file_entry import FileEntryDAO
from app.models.file_entry import FileEntry

logger = logging.getLogger(__name__)


class FileAction(str, Enum):
    """Customer action on a file manager path."""

    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


# Creating below a folder is an edit of that folder
_FLAG_FOR_ACTION = {
    FileAction.CREATE: "user_can_edit",
    FileAction.EDIT: "user_can_edit",
    FileAction.DELETE: "user_can_delete",
}


def split_path(path: str) -> List[str]:
    """Non-empty segments of a slash-delimited path."""
    return [segment for segment in path.split("/") if segment]


def ancestor_paths(path: str) -> List[str]:
    """
    Ancestor paths from the root down, excluding the path itself.

    Example:
        >>> ancestor_paths("/a/b/c")
        ['/a', '/a/b']
    """
    segments = split_path(path)
    return ["/" + "/".join(segments[:i]) for i in range(1, len(segments))]


def grants_permission(entry: Optional[FileEntry], action: FileAction) -> bool:
    """True if the entry's stored flag allows the action."""
    if entry is None:
        return False
    return bool(getattr(entry, _FLAG_FOR_ACTION[FileAction(action)]))


def _folders_by_path(entries: Iterable[FileEntry]) -> Dict[str, FileEntry]:
    return {entry.name: entry for entry in entries if entry.is_folder}


def ancestor_grants(entries: Iterable[FileEntry], path: str, action: FileAction) -> bool:
    """True if any existing ancestor folder of path allows the action."""
    folders = _folders_by_path(entries)
    for ancestor in ancestor_paths(path):
        if grants_permission(folders.get(ancestor), action):
            return True
    return False


def can_act(
    entries: Iterable[FileEntry],
    path: str,
    action: FileAction,
    target: Optional[FileEntry] = None,
) -> bool:
    """
    Live permission check.

    Args:
        entries: Every entry in the scope (project or organization bucket)
        path: Path being acted on
        action: create, edit or delete
        target: Existing entry at path, consulted when no ancestor grants

    Returns:
        True if an ancestor folder or the target itself allows the action
    """
    entries = list(entries)
    if ancestor_grants(entries, path, action):
        return True
    return grants_permission(target, action)


def require_permission(
    entries: Iterable[FileEntry],
    path: str,
    action: FileAction,
    message: str,
    target: Optional[FileEntry] = None,
) -> None:
    """
    Raise PermissionDeniedError(message) unless can_act() allows the action.
    """
    if not can_act(entries, path, action, target):
        logger.info(
            f"File permission denied: {action.value} {path}",
            extra={"path": path, "action": action.value},
        )
        raise PermissionDeniedError(message=message, path=path, action=action.value)


async def fan_out(
    dao: FileEntryDAO,
    folder: FileEntry,
    user_can_edit: bool,
    user_can_delete: bool,
) -> int:
    """
    Copy a folder's flags onto every existing descendant.

    The descendants are taken from the folder's own scope: its project, or
    its organization bucket when it has no project.

    Returns:
        Number of descendants updated
    """
    if not folder.is_folder:
        return 0

    updated = await dao.set_descendant_permissions(
        folder.name,
        user_can_edit=user_can_edit,
        user_can_delete=user_can_delete,
        project_id=folder.project_id,
        organization_id=folder.organization_id,
        bucket_only=folder.project_id is None,
    )
    logger.info(
        f"Copied permissions of {folder.name} to {updated} descendant(s)",
        extra={"folder_id": folder.id, "updated": updated},
    )
    return updated
