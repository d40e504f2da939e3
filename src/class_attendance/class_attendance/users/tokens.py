from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .model import User


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a bearer token."""

    user_id: int
    name: str
    email: str
    role: Role


class TokenService:
    """Issue and verify HS256 bearer tokens."""

    algorithm = "HS256"

    def __init__(self, secret: str, *, expires_hours: int = 24):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._ttl = timedelta(hours=int(expires_hours))

    def issue(self, user: User, *, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "id": user.user_id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenClaims:
        try:
            data = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Token is invalid")

        try:
            return TokenClaims(
                user_id=int(data["id"]),
                name=str(data.get("name", "")),
                email=str(data.get("email", "")),
                role=Role(data["role"]),
            )
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Token is invalid")
