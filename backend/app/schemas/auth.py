"""
Pydantic schemas for authentication endpoints.

WHY: Schemas define request/response contracts, providing:
1. Automatic validation of request data
2. API documentation (OpenAPI/Swagger)
3. Clear separation between API and database models
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, max_length=100, description="User's password")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "admin@sleads.nl",
                "password": "SecurePassword123!",
            }
        }
    )


class RegisterRequest(BaseModel):
    """
    User registration request schema.

    WHY: New accounts are always customers (role "user"); staff are
    promoted by role or through ADMIN_USER_IDS.
    """

    email: EmailStr = Field(..., description="User's email address (must be unique)")
    password: str = Field(..., min_length=8, max_length=100, description="Password")
    password_confirm: str = Field(..., min_length=8, max_length=100, description="Password confirmation")
    name: str = Field(..., min_length=1, max_length=255, description="User's full name")

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match")
        return self


class UserResponse(BaseModel):
    """
    User response schema.

    WHY: Returns user data without the password hash. role is the
    effective platform role, which accounts for ADMIN_USER_IDS.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="User ID")
    email: str = Field(..., description="User's email address")
    name: str = Field(..., description="User's full name")
    role: str = Field(..., description="Platform role (admin or user)")
    is_active: bool = Field(..., description="Whether user account is active")
    created_at: datetime = Field(..., description="Account creation timestamp")


class TokenResponse(BaseModel):
    """JWT token response schema."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(..., description="Token expiration time in seconds")
    user: UserResponse = Field(..., description="Signed-in user")
