from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.schema import UserModel
from .model import User
from .repository import UserRepository


def _to_user(row: UserModel) -> User:
    return User(
        user_id=int(row.id),
        username=row.username,
        full_name=row.full_name,
        password_hash=row.password_hash,
        role=Role(row.role),
        auth0_id=row.auth0_id,
        is_active=bool(row.is_active),
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._conn_factory.session() as session:
            row = session.get(UserModel, int(user_id))
            return _to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with self._conn_factory.session() as session:
            row = session.execute(select(UserModel).where(UserModel.username == username)).scalar_one_or_none()
            return _to_user(row) if row else None

    def create(
        self,
        *,
        username: str,
        full_name: str,
        password_hash: str,
        role: Role,
        auth0_id: Optional[str] = None,
    ) -> int:
        with self._conn_factory.session() as session:
            row = UserModel(
                username=username,
                full_name=full_name,
                password_hash=password_hash,
                role=role.value,
                auth0_id=auth0_id,
                is_active=True,
            )
            session.add(row)
            session.flush()
            return int(row.id)
