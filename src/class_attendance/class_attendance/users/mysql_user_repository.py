from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.constants import DEFAULT_AVATAR_URL
from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, name, email, password_hash, role, avatar_url, created_at, reset_token, reset_token_expiry"


def _to_user(row: dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        avatar_url=row.get("avatar_url") or DEFAULT_AVATAR_URL,
        created_at=row.get("created_at"),
        reset_token=row.get("reset_token"),
        reset_token_expiry=row.get("reset_token_expiry"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where}", params)
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id=%s", (int(user_id),))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email=%s", (email,))

    def get_by_reset_token(self, token: str, *, now: datetime) -> Optional[User]:
        return self._get_one("reset_token=%s AND reset_token_expiry > %s", (token, now))

    def create_user(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(name, email, password_hash, role, avatar_url)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (name, email, password_hash, role.value, DEFAULT_AVATAR_URL),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("A user with this email already exists.") from e
            raise

    def update_password(self, user_id: int, *, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET password_hash=%s, reset_token=NULL, reset_token_expiry=NULL
                WHERE user_id=%s
                """,
                (password_hash, int(user_id)),
            )
            return cur.rowcount > 0

    def set_reset_token(self, user_id: int, *, token: Optional[str], expiry: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET reset_token=%s, reset_token_expiry=%s WHERE user_id=%s",
                (token, expiry, int(user_id)),
            )
            return cur.rowcount > 0

    def update_avatar(self, user_id: int, *, avatar_url: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET avatar_url=%s WHERE user_id=%s", (avatar_url, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE role=%s ORDER BY name ASC", (role.value,))
            return [_to_user(r) for r in fetchall(cur)]

    def count(self, *, role: Optional[Role] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute("SELECT COUNT(*) AS n FROM users")
            else:
                cur.execute("SELECT COUNT(*) AS n FROM users WHERE role=%s", (role.value,))
            row = fetchone(cur)
            return int(row["n"]) if row else 0
