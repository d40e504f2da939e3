from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_AVATAR_URL
from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account.

    Plain data object, no DB access code.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    avatar_url: str = DEFAULT_AVATAR_URL
    created_at: Optional[datetime] = None
    reset_token: Optional[str] = None
    reset_token_expiry: Optional[datetime] = None

    def public(self) -> dict:
        """Shape sent to clients (never includes hashes or tokens)."""
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "avatarUrl": self.avatar_url,
        }
