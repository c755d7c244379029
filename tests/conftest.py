from __future__ import annotations

from datetime import date, datetime

import pytest

from hours_admin.core.enums import Role
from hours_admin.database.bootstrap import create_schema
from hours_admin.database.connection import DatabaseConnection
from hours_admin.database.schema import AssistantModel, CompanyModel, TimeEntryModel
from hours_admin.main import create_app, get_container
from hours_admin.users.service import SessionUser


def seed_hours(conn: DatabaseConnection) -> dict:
    """Two assistants with linked hours, one assistant without, plus one unlinked entry."""

    with conn.session() as session:
        anna = AssistantModel(first_name="Anna", last_name="Schmidt", harvest_user_id=101)
        ben = AssistantModel(first_name="Ben", last_name="Meyer", harvest_user_id=102)
        carla = AssistantModel(first_name="Carla", last_name="Ortiz", harvest_user_id=103)
        acme = CompanyModel(name="Acme GmbH", auth0_id="auth0|acme", harvest_client_id=201)
        globex = CompanyModel(name="Globex AG", auth0_id="auth0|globex", harvest_client_id=202)
        session.add_all([anna, ben, carla, acme, globex])
        session.flush()

        def entry(assistant, company, harvest_user_id, harvest_client_id, spent, hours, task, created):
            row = TimeEntryModel(
                harvest_user_id=harvest_user_id,
                harvest_client_id=harvest_client_id,
                assistant_id=assistant.id if assistant else None,
                company_id=company.id if company else None,
                spent_date=spent,
                hours_tracked=hours,
                task_name=task,
                created_at=created,
            )
            session.add(row)
            return row

        e1 = entry(anna, acme, 101, 201, date(2024, 3, 1), 2.0, "Inbox triage", datetime(2024, 3, 1, 10))
        e2 = entry(anna, globex, 101, 202, date(2024, 3, 2), 1.5, "Travel booking", datetime(2024, 3, 2, 10))
        e3 = entry(ben, acme, 102, 201, date(2024, 3, 3), 3.0, "Invoice review", datetime(2024, 3, 3, 10))
        e4 = entry(ben, acme, 102, 201, date(2024, 2, 20), 0.5, "Inbox cleanup", datetime(2024, 2, 20, 10))
        e5 = entry(None, acme, 103, 201, date(2024, 3, 4), 4.0, "Unassigned work", datetime(2024, 3, 4, 10))
        session.flush()

        return {
            "anna": anna.id,
            "ben": ben.id,
            "carla": carla.id,
            "acme": acme.id,
            "globex": globex.id,
            "e1": e1.id,
            "e2": e2.id,
            "e3": e3.id,
            "e4": e4.id,
            "e5": e5.id,
        }


@pytest.fixture
def conn():
    connection = DatabaseConnection("sqlite://")
    create_schema(connection.engine)
    yield connection
    connection.dispose()


@pytest.fixture
def ids(conn):
    return seed_hours(conn)


@pytest.fixture
def admin_user() -> SessionUser:
    return SessionUser(user_id=1, full_name="Admin", role=Role.ADMIN)


@pytest.fixture
def acme_user() -> SessionUser:
    return SessionUser(user_id=2, full_name="Acme Manager", role=Role.COMPANY, auth0_id="auth0|acme")


@pytest.fixture
def app():
    flask_app = create_app("hours_admin.config.testing")
    yield flask_app
    get_container(flask_app).conn.dispose()


@pytest.fixture
def container(app):
    return get_container(app)


@pytest.fixture
def app_ids(container):
    return seed_hours(container.conn)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(user: SessionUser) -> None:
        with client.session_transaction() as sess:
            sess.update(user.to_session())

    return _login
