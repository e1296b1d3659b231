"""
Pydantic schemas for authentication endpoints.

WHY: Schemas define request/response contracts, providing validation,
API documentation and a clear separation between API and database models.
"""

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Email/password credentials exchanged for a bearer token."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, max_length=100, description="User's password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "owner@example.com",
                "password": "SecurePassword123!",
            }
        }


class TokenResponse(BaseModel):
    """
    Bearer token response.

    WHY: expires_in lets clients refresh before the token lapses.
    """

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(..., description="Token expiration time in seconds")
