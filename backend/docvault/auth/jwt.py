"""JWT token generation and validation

Credential issuance is handled elsewhere; DocVault only validates bearer
tokens. ``create_access_token`` exists for tooling and tests.

JWT Token Claims Structure:
- sub: User ID as UUID string
- role: "User" | "Manager" | "Admin" (informational; the database row is
  authoritative)
- iat / exp: Issued-at and expiration Unix timestamps

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "role": "Manager",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from ..config import get_settings


def _get_jwt_secret() -> str:
    """Get the signing secret from settings.

    Raises:
        ValueError: If JWT_SECRET is empty
    """
    secret = get_settings().JWT_SECRET
    if not secret:
        raise ValueError("JWT_SECRET is not set")
    return secret


def create_access_token(user_id: UUID, role: str, expiry_minutes: Optional[int] = None) -> str:
    """Create a signed JWT access token.

    Args:
        user_id: User's UUID
        role: User's role (User, Manager, Admin)
        expiry_minutes: Lifetime override (default JWT_EXPIRY_MINUTES)

    Returns:
        str: Signed JWT token
    """
    settings = get_settings()
    if expiry_minutes is None:
        expiry_minutes = settings.JWT_EXPIRY_MINUTES

    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=expiry_minutes)

    payload = {
        'sub': str(user_id),
        'role': role,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp()),
    }

    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    secret = _get_jwt_secret()

    try:
        return jwt.decode(token, secret, algorithms=[get_settings().JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")
