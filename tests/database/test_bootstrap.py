from __future__ import annotations

import logging
from datetime import date

from hours_admin.database.bootstrap import list_tables, seed_demo_data
from hours_admin.database.connection import DatabaseConnection, DBConfig
from hours_admin.time_entries.model import TimeEntryFilters
from hours_admin.time_entries.sqlalchemy_time_entry_repository import SqlAlchemyTimeEntryRepository
from hours_admin.users.service import AuthService
from hours_admin.users.sqlalchemy_user_repository import SqlAlchemyUserRepository


def test_schema_has_all_tables(conn):
    assert list_tables(conn.engine) == ["assistants", "companies", "time_entries", "users"]


def test_seed_is_idempotent(conn):
    seed_demo_data(conn, today=date(2024, 3, 20))
    seed_demo_data(conn, today=date(2024, 3, 20))

    _, count = SqlAlchemyTimeEntryRepository(conn).list(TimeEntryFilters())
    admin = AuthService(SqlAlchemyUserRepository(conn)).authenticate("admin", "admin123")

    assert count == 20
    assert admin.full_name == "Admin Demo"


def test_db_config_builds_mysql_url():
    config = DBConfig.from_dict({"host": "db", "port": "3307", "user": "app", "password": "p@ss word", "database": "hours"})

    assert config.url() == "mysql+mysqlconnector://app:p%40ss+word@db:3307/hours"


def test_from_settings_prefers_database_url():
    conn = DatabaseConnection.from_settings(db_config={"host": "db"}, database_url="sqlite://")

    assert conn.url == "sqlite://"
    conn.dispose()


def test_engine_creation_is_logged_without_password(caplog):
    caplog.set_level(logging.DEBUG, logger="hours_admin.database.connection")

    conn = DatabaseConnection("mysql+mysqlconnector://app:secret@db:3306/hours")
    conn.dispose()

    assert "Creating engine for mysql+mysqlconnector://app:***@db:3306/hours" in caplog.text
    assert "secret" not in caplog.text
