from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create(
        self,
        *,
        username: str,
        full_name: str,
        password_hash: str,
        role: Role,
        auth0_id: Optional[str] = None,
    ) -> int:
        raise NotImplementedError
