"""JWT access token verification (and creation, for tooling and tests).

Tokens are issued by the campus identity provider and signed with the shared
secret. The booking service only needs ``sub`` (the caller's id) and ``role``.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt

from dormitory.config import settings

VALID_ROLES = {"student", "manager", "admin"}


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a short-lived access token.

    Args:
        data: Payload data. Must include ``sub`` (caller id) and ``role``.
        expires_delta: Custom expiration duration. Defaults to
            ``settings.jwt_access_token_expire_minutes`` minutes.

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_principal_token(principal_id: str, role: str, expires_delta: timedelta | None = None) -> str:
    """Convenience wrapper: access token for ``principal_id`` acting as ``role``."""
    return create_access_token({"sub": principal_id, "role": role}, expires_delta=expires_delta)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Raises:
        jose.JWTError: If the token is invalid, expired, or malformed.
    """
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
