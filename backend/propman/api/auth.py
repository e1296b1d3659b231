"""
Authentication API endpoints.

WHY: The rest of the API only needs a bearer token whose subject is the
user id. Organization context is not part of the token; it is resolved
per request from the user record.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from propman.core.auth import create_access_token, verify_password
from propman.core.config import settings
from propman.core.exceptions import AuthenticationError
from propman.dao.user import UserDAO
from propman.db.session import get_db
from propman.models.base import utcnow
from propman.schemas.auth import LoginRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/token",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Exchange credentials for a bearer token",
)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Authenticate user and return a bearer token.

    Security:
    - Passwords are compared using constant-time comparison (bcrypt)
    - Generic error messages prevent user enumeration attacks

    Raises:
        AuthenticationError (401): If credentials are invalid
    """
    user_dao = UserDAO(db)
    user = await user_dao.get_by_email(credentials.email)

    # Same message for unknown email and wrong password
    if not user or not user.hashed_password or not verify_password(
        credentials.password, user.hashed_password
    ):
        logger.info(f"Failed login for {credentials.email}")
        raise AuthenticationError(message="Invalid email or password")

    if not user.is_active:
        raise AuthenticationError(message="Account is inactive", user_id=user.id)

    user.last_login_on = utcnow()
    await user_dao.save(user)

    access_token = create_access_token(user.id, email=user.email)
    logger.info(f"User {user.id} logged in")

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.JWT_EXPIRATION_MINUTES * 60,
    )
