from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .database.connection import DatabaseConnection
from .database.transactions import RetryPolicy
from .time_entries.service import TimeEntryService
from .time_entries.sqlalchemy_time_entry_repository import SqlAlchemyTimeEntryRepository
from .users.service import AuthService
from .users.sqlalchemy_user_repository import SqlAlchemyUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: SqlAlchemyUserRepository
    time_entries_repo: SqlAlchemyTimeEntryRepository

    auth_service: AuthService
    time_entry_service: TimeEntryService


def build_container(
    *,
    db_config: dict,
    database_url: Optional[str] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> Container:
    conn = DatabaseConnection.from_settings(db_config=db_config, database_url=database_url)

    users_repo = SqlAlchemyUserRepository(conn)
    time_entries_repo = SqlAlchemyTimeEntryRepository(conn, retry_policy=retry_policy)

    auth_service = AuthService(users_repo)
    time_entry_service = TimeEntryService(time_entries_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        time_entries_repo=time_entries_repo,
        auth_service=auth_service,
        time_entry_service=time_entry_service,
    )
