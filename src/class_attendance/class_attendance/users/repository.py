from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_reset_token(self, token: str, *, now: datetime) -> Optional[User]:
        """Return the user holding ``token`` if it has not expired at ``now``."""

        raise NotImplementedError

    def create_user(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        raise NotImplementedError

    def update_password(self, user_id: int, *, password_hash: str) -> bool:
        """Store a new hash and clear any pending reset token."""

        raise NotImplementedError

    def set_reset_token(self, user_id: int, *, token: Optional[str], expiry: Optional[datetime]) -> bool:
        raise NotImplementedError

    def update_avatar(self, user_id: int, *, avatar_url: str) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError

    def count(self, *, role: Optional[Role] = None) -> int:
        raise NotImplementedError
