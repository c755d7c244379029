from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a login account.

    Company accounts carry the auth0 id of the company whose hours they may see.
    """

    user_id: int
    username: str
    full_name: str
    password_hash: str
    role: Role
    auth0_id: Optional[str] = None
    is_active: bool = True
