"""
User model.

WHY: Users are individuals who sign in to the portal. The platform role
separates agency staff (admin) from customers (user); access to a tenant's
data is granted through organization membership, not through this role.
"""

from enum import Enum

from sqlalchemy import Boolean, Column, Enum as SQLEnum, String

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class UserRole(str, Enum):
    """Platform-wide user role."""

    ADMIN = "admin"  # Agency staff with access to every organization
    USER = "user"  # Customer, scoped by organization membership


class User(Base, PrimaryKeyMixin, TimestampMixin):
    """User model representing individuals who use the portal."""

    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # WHY: Nullable for accounts created through an external OAuth provider
    hashed_password = Column(String(255), nullable=True)

    role = Column(
        SQLEnum(
            UserRole,
            name="user_role",
            create_type=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=UserRole.USER,
    )

    # WHY: Banned users keep their rows so quotes and contacts stay intact
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
