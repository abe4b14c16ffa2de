"""
Authentication and authorization for the Inventory service.

Bearer tokens are JWTs issued by the Users service and carry ``sub``,
``email`` and ``role`` claims. Any valid token may read inventory; changing
stock requires one of the roles in ``INVENTORY_WRITE_ROLES``.
"""
import logging
import os
from typing import FrozenSet
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Must match the Users service
SECRET_KEY = os.getenv("SECRET_KEY", "09d25e094faa6ca2556c818166b7a9563b93f7099f6f0f4caa6cf63b88e8d3e7")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
WRITE_ROLES: FrozenSet[str] = frozenset(
    role.strip() for role in os.getenv("INVENTORY_WRITE_ROLES", "admin").split(",") if role.strip()
)

bearer_scheme = HTTPBearer()


class CurrentUser(BaseModel):
    """Caller identity taken from the token claims."""
    id: int
    email: str
    role: str

    @property
    def can_write(self) -> bool:
        return self.role in WRITE_ROLES


def decode_token(token: str) -> CurrentUser:
    """
    Verify a JWT and extract the caller.

    Raises:
        JWTError: bad signature, expired token or malformed JWT
        ValueError: a required claim is missing or ``sub`` is not numeric
    """
    claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    missing = [claim for claim in ("sub", "email", "role") if claims.get(claim) is None]
    if missing:
        raise ValueError(f"token is missing claims: {', '.join(missing)}")
    return CurrentUser(id=int(claims["sub"]), email=claims["email"], role=claims["role"])


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> CurrentUser:
    """
    FastAPI dependency resolving the caller of a request.

    Raises:
        HTTPException: 401 if the token cannot be validated
    """
    try:
        return decode_token(credentials.credentials)
    except (JWTError, ValueError) as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_writer(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    FastAPI dependency for endpoints that change stock.

    Raises:
        HTTPException: 403 if the caller's role may not modify inventory
    """
    if not current_user.can_write:
        logger.warning(f"User {current_user.id} ({current_user.role}) attempted an inventory write")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inventory write privileges required"
        )
    return current_user
