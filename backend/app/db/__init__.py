"""Database package"""

from app.db.session import AsyncSessionLocal, engine, get_db, session_scope
from app.models.base import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db", "session_scope"]
