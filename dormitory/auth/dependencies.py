"""FastAPI authentication dependencies for route protection."""

from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from dormitory.auth.jwt import VALID_ROLES, decode_token

# Strict bearer: requests without a token are rejected before the handler runs
_bearer_scheme = HTTPBearer()


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as asserted by the identity provider."""

    id: str
    role: str

    @property
    def is_staff(self) -> bool:
        return self.role in {"manager", "admin"}


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> Principal:
    """Validate the Bearer token and return the caller it names.

    The booking engine trusts this id; credentials are not re-verified
    against any user store.

    Raises:
        HTTPException 401: If the token is invalid, expired, of the wrong type,
            or lacks a subject or a known role.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise credentials_exception from None

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub: str | None = payload.get("sub")
    role: str | None = payload.get("role")
    if not sub or role not in VALID_ROLES:
        raise credentials_exception

    return Principal(id=sub, role=role)


def require_roles(*roles: str) -> Callable[..., Principal]:
    """Dependency factory: allow only callers whose role is in ``roles``."""

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return dependency
