"""
Security utilities for authentication.
Handles JWT minting/validation and password hashing.
"""
import jwt
from datetime import timedelta
from typing import Optional, Dict, Any

from passlib.context import CryptContext

from app.config import settings
from app.core.errors import Unauthenticated
from app.utils.datetime_utils import utc_now

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def _create_token(
    user_id: int,
    token_type: str,
    expires_delta: timedelta,
    extra: Optional[Dict[str, Any]] = None
) -> str:
    now = utc_now()
    to_encode: Dict[str, Any] = dict(extra or {})
    to_encode.update({
        "sub": str(user_id),
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    })
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
    extra: Optional[Dict[str, Any]] = None
) -> str:
    """
    Create JWT access token.

    Args:
        user_id: Subject user ID
        expires_delta: Optional expiration time delta
        extra: Additional claims

    Returns:
        Encoded JWT token

    Example:
        ```python
        token = create_access_token(user.id, extra={"role": user.role.value})
        ```
    """
    return _create_token(
        user_id,
        ACCESS_TOKEN,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
        extra,
    )


def create_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived refresh token."""
    return _create_token(
        user_id,
        REFRESH_TOKEN,
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> Dict[str, Any]:
    """
    Decode and validate JWT token.

    Args:
        token: JWT token string
        expected_type: Required value of the ``type`` claim

    Returns:
        Decoded token payload

    Raises:
        Unauthenticated: If token is invalid, expired or of the wrong type
    """
    if not token:
        raise Unauthenticated("Missing token")

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")

    if payload.get("type") != expected_type:
        raise Unauthenticated("Invalid token type")
    return payload


def user_id_from_token(token: str, expected_type: str = ACCESS_TOKEN) -> int:
    """Decode a token and return its subject as an integer user ID."""
    payload = decode_token(token, expected_type)
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise Unauthenticated("Invalid token subject")


def extract_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract JWT token from Authorization header.

    Args:
        authorization: Authorization header value (e.g., "Bearer <token>")

    Returns:
        Extracted token

    Raises:
        Unauthenticated: If header is missing or its format is invalid

    Example:
        ```python
        token = extract_token_from_header("Bearer eyJhbG...")
        ```
    """
    if not authorization:
        raise Unauthenticated("Missing authorization header")

    parts = authorization.split()

    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthenticated("Invalid authorization header format")

    return parts[1]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)
