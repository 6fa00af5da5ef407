import time
import uuid
from typing import Any, Iterable

from authlib.jose import JoseError, jwt

from product_catalog.config import Settings, get_settings
from product_catalog.models.user import User, RoleName


class TokenError(Exception):
    """Exception raised when a bearer token is malformed, forged or expired."""
    pass


class TokenService:
    """Issues and checks the signed bearer tokens handed out at login."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def issue(self, user: User, roles: Iterable[RoleName]) -> str:
        """
        Sign a token for the user carrying its role claims.

        The token expires JWT_EXPIRE_MINUTES after issue; there is no
        refresh, a new login is needed afterwards.
        """
        now = int(time.time())
        payload = {
            "sub": user.username,
            "email": user.email,
            "roles": [RoleName(role).value for role in roles],
            "iss": self.settings.JWT_ISSUER,
            "aud": self.settings.JWT_AUDIENCE,
            "iat": now,
            "exp": now + self.settings.JWT_EXPIRE_MINUTES * 60,
            "jti": uuid.uuid4().hex,
        }
        header = {"alg": self.settings.JWT_ALGORITHM, "typ": "JWT"}
        token = jwt.encode(header, payload, self.settings.JWT_SECRET_KEY)
        return token.decode("utf-8")

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify signature, expiry, issuer and audience.

        Raises:
            TokenError: If any check fails
        """
        claims_options = {
            "iss": {"essential": True, "value": self.settings.JWT_ISSUER},
            "aud": {"essential": True, "value": self.settings.JWT_AUDIENCE},
            "exp": {"essential": True},
            "sub": {"essential": True},
        }
        try:
            claims = jwt.decode(
                token,
                self.settings.JWT_SECRET_KEY,
                claims_options=claims_options,
            )
            claims.validate()
        except JoseError as e:
            raise TokenError(str(e)) from e
        except ValueError as e:
            # undecodable segments
            raise TokenError("Malformed token") from e

        if claims.header.get("alg") != self.settings.JWT_ALGORITHM:
            raise TokenError("Disallowed JWT algorithm")

        return dict(claims)
