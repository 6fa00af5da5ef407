from pydantic import Field
from typing import Optional

from product_catalog.schemas.product import CamelModel


class RegisterRequest(CamelModel):
    """Schema for registering a new account."""
    username: str = Field(..., min_length=1, max_length=256, description="Username, also used as email")
    password: str = Field(..., min_length=1, description="Plain-text password")
    roles: Optional[list[str]] = Field(None, description="Role names to attach, Reader or Writer")


class LoginRequest(CamelModel):
    """Schema for exchanging credentials for a token."""
    username: str = Field(..., min_length=1, max_length=256)
    password: str = Field(..., min_length=1)


class LoginResponse(CamelModel):
    jwt_token: str
