from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

from flask import g, jsonify, request

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..users.tokens import TokenClaims, TokenService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def status_for(exc: DomainError) -> int:
    for exc_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            return status
    return 400


def error_response(exc: DomainError):
    return jsonify({"success": False, "message": str(exc)}), status_for(exc)


def server_error(message: str):
    logger.exception(message)
    return jsonify({"success": False, "message": message}), 500


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user() -> TokenClaims:
    return g.current_user


@dataclass(frozen=True)
class Guards:
    """Route decorators bound to one token service."""

    tokens: TokenService

    def login_required(self, view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            header = request.headers.get("Authorization", "")
            scheme, _, token = header.partition(" ")
            if scheme.lower() != "bearer" or not token.strip():
                return jsonify({"success": False, "message": "Not authorized, token missing"}), 401
            try:
                g.current_user = self.tokens.decode(token.strip())
            except AuthenticationError as e:
                return jsonify({"success": False, "message": str(e)}), 401
            return view(*args, **kwargs)

        return wrapper

    def role_required(self, *roles: Role) -> Callable[[Callable], Callable]:
        allowed = frozenset(roles)

        def decorator(view: Callable) -> Callable:
            @wraps(view)
            def checked(*args, **kwargs):
                if g.current_user.role not in allowed:
                    names = " or ".join(r.value for r in roles)
                    return jsonify({"success": False, "message": f"User role {names} is required"}), 403
                return view(*args, **kwargs)

            return self.login_required(checked)

        return decorator

    @property
    def teacher_required(self) -> Callable[[Callable], Callable]:
        return self.role_required(Role.TEACHER)

    @property
    def admin_required(self) -> Callable[[Callable], Callable]:
        return self.role_required(Role.ADMIN)
