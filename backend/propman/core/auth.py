"""
Bearer-token authentication and password hashing utilities.

WHY: The identity provider's only job here is to hand the rest of the
system a Principal carrying a stable user id. Everything organization
related (active org, role) is resolved from the database on each request
rather than baked into the token, so an organization switch takes effect
immediately without reissuing tokens.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from propman.core.config import settings
from propman.core.exceptions import TokenExpiredError, TokenInvalidError

# bcrypt with default cost factor (12 rounds)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class Principal:
    """
    Authenticated (or anonymous) caller as seen by the identity provider.

    user_id comes from the "sub" claim. An anonymous principal has
    is_authenticated=False and no user id.
    """

    user_id: Optional[str] = None
    is_authenticated: bool = False
    claims: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @classmethod
    def for_user(cls, user_id: str, **claims: Any) -> "Principal":
        return cls(user_id=user_id, is_authenticated=True, claims=dict(claims))


# ============================================================================
# Password Hashing
# ============================================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash (constant-time)."""
    return pwd_context.verify(plain_password, hashed_password)


# ============================================================================
# JWT Token Management
# ============================================================================


def create_access_token(
    user_id: str,
    expires_delta: Optional[timedelta] = None,
    **extra_claims: Any,
) -> str:
    """
    Create a signed access token for a user.

    Token includes:
    - sub: The stable user id
    - exp / iat / nbf: Standard lifetime claims

    Args:
        user_id: User id to place in the "sub" claim
        expires_delta: Optional custom expiration time
        **extra_claims: Non-sensitive claims (e.g. email)

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES))

    to_encode: Dict[str, Any] = dict(extra_claims)
    to_encode.update({"sub": user_id, "exp": expire, "iat": now, "nbf": now})

    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed or signature invalid
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")
    except JWTError as e:
        raise TokenInvalidError(message="Invalid token", error=str(e))


def principal_from_token(token: str) -> Principal:
    """
    Build a Principal from a bearer token.

    Raises:
        TokenInvalidError: If the token carries no subject
    """
    payload = verify_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise TokenInvalidError(message="Invalid token: missing subject")
    claims = {k: v for k, v in payload.items() if k not in ("sub", "exp", "iat", "nbf")}
    return Principal.for_user(str(user_id), **claims)
