"""FastAPI dependencies for bearer authentication and role checks."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from product_catalog.models.user import RoleName
from product_catalog.services.token_service import TokenError, TokenService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Roles accepted per capability
READ_ROLES = frozenset({RoleName.READER})
WRITE_ROLES = frozenset({RoleName.WRITER, RoleName.READER})


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as described by its token."""
    username: str
    roles: frozenset


@lru_cache
def get_token_service() -> TokenService:
    return TokenService()


def _parse_roles(claim) -> frozenset:
    if isinstance(claim, str):
        claim = [claim]
    roles = set()
    for value in claim or ():
        try:
            roles.add(RoleName(value))
        except ValueError:
            continue
    return frozenset(roles)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """Resolve the caller from the Authorization header or answer 401."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise unauthorized

    try:
        claims = tokens.decode(credentials.credentials)
    except TokenError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise unauthorized

    return Principal(username=claims["sub"], roles=_parse_roles(claims.get("roles")))


def require_roles(allowed: frozenset):
    """Build a dependency that admits callers holding any of the allowed roles."""

    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.roles & allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return principal

    return checker
