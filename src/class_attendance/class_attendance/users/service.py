from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH, RESET_TOKEN_TTL_MINUTES
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..realtime.notifier import DashboardNotifier, NullNotifier
from .avatars import AvatarStorage, AvatarUpload
from .mailer import Mailer
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a reset link has been sent."


def _verify_password(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password or "")
    except (ValueError, TypeError):
        # e.g. placeholder or corrupted hashes
        return False


class AuthService:
    """Use cases: register, login, password change and password reset."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        *,
        mailer: Mailer,
        notifier: Optional[DashboardNotifier] = None,
        frontend_url: str = "http://localhost:5173",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._users = users
        self._tokens = tokens
        self._mailer = mailer
        self._notifier = notifier or NullNotifier()
        self._frontend_url = frontend_url.rstrip("/")
        self._clock = clock

    def register(self, *, name: str, email: str, password: str, role: str = Role.STUDENT.value) -> str:
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        try:
            role_e = Role(role or Role.STUDENT.value)
        except ValueError:
            raise ValidationError("Role is invalid")
        if role_e == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be self-registered")

        if self._users.get_by_email(email):
            raise ConflictError("User already exists")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role_e,
        )
        self._notifier.dashboard_changed(f"New {role_e.value} registered", actor=name)

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return self._tokens.issue(user)

    def login(self, *, email: str, password: str) -> str:
        if not (email or "").strip() or not password:
            raise ValidationError("Please provide an email and password")

        user = self._users.get_by_email(email.strip().lower())
        if not user or not _verify_password(user.password_hash, password):
            raise AuthenticationError("Invalid credentials")
        return self._tokens.issue(user)

    def update_password(self, *, user_id: int, current_password: str, new_password: str) -> None:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if not _verify_password(user.password_hash, current_password):
            raise AuthenticationError("Incorrect current password.")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)

        self._users.update_password(user.user_id, password_hash=generate_password_hash(new_password))

    def forgot_password(self, *, email: str) -> str:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            # Same answer whether or not the account exists.
            return RESET_REQUESTED_MESSAGE

        token = secrets.token_hex(32)
        expiry = self._clock() + timedelta(minutes=RESET_TOKEN_TTL_MINUTES)
        self._users.set_reset_token(user.user_id, token=token, expiry=expiry)

        reset_url = f"{self._frontend_url}/reset-password/{token}"
        html = (
            f"<h2>Hello {user.name or 'User'},</h2>"
            "<p>You requested to reset your password.</p>"
            f"<p>Click below to reset (valid for {RESET_TOKEN_TTL_MINUTES // 60} hour):</p>"
            f'<a href="{reset_url}" target="_blank">{reset_url}</a>'
            "<br><br><p>If you didn't request this, ignore this email.</p>"
        )
        try:
            self._mailer.send(to=user.email, subject="Password Reset Request", html=html)
        except Exception:
            self._users.set_reset_token(user.user_id, token=None, expiry=None)
            raise
        logger.info("password reset mail sent to %s", user.email)
        return RESET_REQUESTED_MESSAGE

    def reset_password(self, *, token: str, password: str) -> None:
        token = (token or "").strip()
        user = self._users.get_by_reset_token(token, now=self._clock()) if token else None
        if not user:
            raise ValidationError("Reset link is invalid or expired.")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        self._users.update_password(user.user_id, password_hash=generate_password_hash(password))
        logger.info("password reset completed for %s", user.email)


class UserService:
    """Use cases: admin-created teachers and own profile management."""

    def __init__(
        self,
        users: UserRepository,
        *,
        avatars: AvatarStorage,
        notifier: Optional[DashboardNotifier] = None,
    ):
        self._users = users
        self._avatars = avatars
        self._notifier = notifier or NullNotifier()

    def create_teacher(self, *, name: str, email: str, password: str) -> int:
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ConflictError("A user with this email already exists.")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.TEACHER,
        )
        self._notifier.dashboard_changed("Teacher account created", actor=name)
        return user_id

    def get_profile(self, *, user_id: int) -> dict:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found.")
        return user.public()

    def update_avatar(self, *, user_id: int, upload: AvatarUpload) -> dict:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found.")

        new_url = self._avatars.save(user_id=user.user_id, upload=upload)
        self._users.update_avatar(user.user_id, avatar_url=new_url)
        self._avatars.delete(user.avatar_url)

        updated = self._users.get_by_id(user.user_id)
        return (updated or user).public()
