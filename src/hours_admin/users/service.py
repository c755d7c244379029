from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ValidationError
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    auth0_id: Optional[str] = None

    def to_session(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.full_name,
            "role": self.role.value,
            "auth0_id": self.auth0_id,
        }

    @classmethod
    def from_session(cls, data: Mapping[str, Any]) -> "SessionUser":
        return cls(
            user_id=int(data["user_id"]),
            full_name=str(data.get("name") or ""),
            role=Role(data.get("role")),
            auth0_id=data.get("auth0_id"),
        )


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            logger.info("Failed login for %s", user.username)
            raise AuthenticationError("Invalid username or password")

        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role, auth0_id=user.auth0_id)

    def register(
        self,
        *,
        username: str,
        full_name: str,
        password: str,
        role: Role,
        auth0_id: Optional[str] = None,
    ) -> int:
        username = require_non_empty(username, "Username")
        full_name = require_non_empty(full_name, "Full name")
        if not password or len(password) < 6:
            raise ValidationError("Password must be at least 6 characters")
        if role == Role.COMPANY and not (auth0_id or "").strip():
            raise ValidationError("Company accounts need an auth0 id")
        if self._users.get_by_username(username):
            raise ValidationError(f'Username "{username}" already exists')

        return self._users.create(
            username=username,
            full_name=full_name,
            password_hash=generate_password_hash(password),
            role=role,
            auth0_id=(auth0_id or "").strip() or None,
        )
