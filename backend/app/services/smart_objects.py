"""
Smart Objects passthrough.

WHAT: Generic, key-gated CRUD over a fixed set of tables, used by the
Smart Objects proxy that customer sites talk to.

WHY: The proxy needs to read and write portal data without a per-table
API. Exposure is limited to an allowlist; users, members, contacts and
internal bookkeeping tables are never reachable.

HOW: Tables are resolved from the SQLAlchemy metadata. Objects are
addressed as "<table>:<id>". Listing is keyset-paginated with the last id
as cursor. Create and update drop null values; update merges into the
existing row. An unknown id reads as an empty object and fails an update
with a 400.
"""

import hmac
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import DateTime
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    InvalidAPIKeyError,
    InvalidRequestError,
    ValidationError,
)
from app.dao.base import BaseDAO
from app.models.base import Base
from app.models.cms import CMSField, CMSFieldValue, CMSPage, CMSSplit
from app.models.file_entry import FileEntry
from app.models.invoice import Invoice
from app.models.organization import Organization
from app.models.project import Project
from app.models.quote import Quote

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10

EXPOSED_MODELS: Dict[str, Type[Base]] = {
    model.__tablename__: model
    for model in (
        Organization,
        Project,
        FileEntry,
        CMSPage,
        CMSField,
        CMSSplit,
        CMSFieldValue,
        Quote,
        Invoice,
    )
}

# Managed by the database or the ORM, never written through the passthrough
READ_ONLY_COLUMNS = {"id", "created_at", "updated_at"}


def check_api_key(api_key: Optional[str]) -> None:
    """
    Compare a request key with SLEADS_SO_KEY.

    Raises:
        InvalidAPIKeyError: No key configured, or the keys differ
    """
    stored = settings.SLEADS_SO_KEY
    if not stored or not api_key or not hmac.compare_digest(api_key, stored):
        raise InvalidAPIKeyError()


def object_id(table: str, id: int) -> str:
    return f"{table}:{id}"


def parse_object_id(value: str) -> Tuple[str, int]:
    """
    Split "<table>:<id>".

    Raises:
        InvalidRequestError: Malformed id or table not exposed
    """
    table, _, raw_id = value.partition(":")
    if table not in EXPOSED_MODELS or not raw_id.isdigit():
        raise InvalidRequestError(object_id=value)
    return table, int(raw_id)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def serialize(table: str, instance: Base) -> Dict[str, Any]:
    """Row as a JSON-ready dict, its id in "<table>:<id>" form."""
    data = {
        column.name: _jsonable(getattr(instance, column.key))
        for column in instance.__table__.columns
    }
    data["id"] = object_id(table, instance.id)
    return data


def describe_schema() -> Dict[str, Any]:
    """Column definitions of every exposed table."""
    return {
        table: {
            "columns": [
                {
                    "name": column.name,
                    "type": str(column.type),
                    "nullable": column.nullable,
                    "primary_key": column.primary_key,
                    "foreign_keys": [fk.target_fullname for fk in column.foreign_keys],
                }
                for column in model.__table__.columns
            ]
        }
        for table, model in EXPOSED_MODELS.items()
    }


def _coerce(model: Type[Base], data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop nulls and read-only columns, and convert strings for enum and
    datetime columns.

    Raises:
        InvalidRequestError: Unknown column or unparseable value
    """
    columns = model.__table__.columns
    values = {}
    for key, value in data.items():
        if value is None or key in READ_ONLY_COLUMNS:
            continue
        if key not in columns:
            raise InvalidRequestError(message="Invalid request", field=key)

        column_type = columns[key].type
        try:
            enum_class = getattr(column_type, "enum_class", None)
            if enum_class is not None:
                value = enum_class(value)
            elif isinstance(column_type, DateTime) and isinstance(value, str):
                value = datetime.fromisoformat(value)
        except ValueError as e:
            raise InvalidRequestError(field=key, error=str(e)) from e
        values[key] = value
    return values


class SmartObjectsService:
    """Table-agnostic CRUD over the exposed models."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _model(table: str) -> Type[Base]:
        model = EXPOSED_MODELS.get(table)
        if model is None:
            raise InvalidRequestError(table=table)
        return model

    def _dao(self, table: str) -> BaseDAO:
        return BaseDAO(self._model(table), self.session)

    async def get_page(
        self, table: str, cursor: Optional[str] = None, num_items: int = DEFAULT_PAGE_SIZE
    ) -> Dict[str, Any]:
        """
        One page of a table.

        Returns:
            {"continueCursor", "isDone", "page"}; the cursor is the last id
            returned, or the incoming cursor for an empty page
        """
        if num_items < 1:
            raise InvalidRequestError(num_items=num_items)
        after_id = None
        if cursor:
            if not cursor.isdigit():
                raise InvalidRequestError(cursor=cursor)
            after_id = int(cursor)

        rows = await self._dao(table).get_after(after_id, num_items + 1)
        is_done = len(rows) <= num_items
        rows = rows[:num_items]
        continue_cursor = str(rows[-1].id) if rows else (cursor or "")
        return {
            "continueCursor": continue_cursor,
            "isDone": is_done,
            "page": [serialize(table, row) for row in rows],
        }

    async def get_object(self, value: str) -> Dict[str, Any]:
        """Serialized row, or an empty object when the id is unknown."""
        table, id = parse_object_id(value)
        instance = await self._dao(table).get_by_id(id)
        if instance is None:
            return {}
        return serialize(table, instance)

    async def create_object(self, table: str, data: Dict[str, Any]) -> str:
        """
        Insert a row from a JSON object.

        Returns:
            The new object's "<table>:<id>"
        """
        model = self._model(table)
        instance = await self._dao(table).create(**_coerce(model, data))
        logger.info(f"Smart Objects created {table} {instance.id}", extra={"table": table})
        return object_id(table, instance.id)

    async def update_object(self, value: str, data: Dict[str, Any]) -> None:
        """Merge non-null values into an existing row.

        Raises:
            ValidationError: No row with this id
        """
        table, id = parse_object_id(value)
        dao = self._dao(table)
        if await dao.get_by_id(id) is None:
            raise ValidationError(message="Object not found", object_id=value)
        values = _coerce(dao.model, data)
        if values:
            await dao.update(id, **values)

    async def delete_object(self, value: str) -> None:
        table, id = parse_object_id(value)
        await self._dao(table).delete(id)
        logger.info(f"Smart Objects deleted {value}", extra={"table": table})
