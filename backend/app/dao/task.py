"""Dead-letter task Data Access Object."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.task import DeadLetterTask


class DeadLetterTaskDAO(BaseDAO[DeadLetterTask]):
    """Data Access Object for DeadLetterTask model."""

    def __init__(self, session: AsyncSession):
        super().__init__(DeadLetterTask, session)
