"""
Authentication API endpoints.

WHY: These endpoints provide the authentication flow:
1. Register - Create a customer account and return a JWT token
2. Login - Authenticate user and return JWT token
3. Me - Get current user information

Security:
- Passwords are compared using constant-time comparison (bcrypt)
- Generic error messages prevent user enumeration attacks
- Tokens are stateless; the "sub" claim carries the user id
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import create_access_token, hash_password, verify_password
from app.core.authorization import platform_role_of
from app.core.config import settings
from app.core.deps import get_current_user
from app.core.exceptions import AuthenticationError, ResourceAlreadyExistsError
from app.dao.user import UserDAO
from app.db.session import get_db
from app.models.user import User, UserRole
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def user_to_response(user: User) -> UserResponse:
    """
    Convert a User to UserResponse.

    WHY: role is the effective platform role, so a user listed in
    ADMIN_USER_IDS sees "admin" even when the stored role is "user".
    """
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=platform_role_of(user),
        is_active=user.is_active,
        created_at=user.created_at,
    )


def _issue_token(user: User) -> TokenResponse:
    access_token = create_access_token(
        {"sub": str(user.id), "email": user.email, "role": platform_role_of(user)}
    )
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.JWT_EXPIRATION_MINUTES * 60,
        user=user_to_response(user),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Login user",
    description="Authenticate user with email and password, returns JWT token",
)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Authenticate user and return JWT access token.

    Security:
    - bcrypt verification is constant-time
    - Unknown email and wrong password share one error message

    Raises:
        AuthenticationError (401): If credentials are invalid or the
            account is inactive
    """
    user = await UserDAO(User, db).get_by_email(credentials.email)

    # WHY: Same message for unknown email and wrong password
    if user is None or not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login attempt", extra={"email": credentials.email})
        raise AuthenticationError(message="Invalid email or password")

    if not user.is_active:
        raise AuthenticationError(message="Account is inactive", user_id=user.id)

    logger.info(f"User {user.id} logged in", extra={"user_id": user.id})
    return _issue_token(user)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Register a new customer account and return a JWT token",
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Register a new user account.

    New accounts always get platform role "user". Staff add them to an
    organization afterwards.

    Raises:
        ResourceAlreadyExistsError (409): Email already registered
    """
    user_dao = UserDAO(User, db)
    if await user_dao.email_exists(data.email):
        raise ResourceAlreadyExistsError(message="Email already registered")

    user = await user_dao.create(
        email=data.email.lower(),
        name=data.name,
        hashed_password=hash_password(data.password),
        role=UserRole.USER,
        is_active=True,
    )
    logger.info(f"Registered user {user.id}", extra={"user_id": user.id})
    return _issue_token(user)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get information about the currently authenticated user",
)
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the signed-in user with their effective platform role."""
    return user_to_response(current_user)
