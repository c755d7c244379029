from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import inspect, select
from sqlalchemy.engine import Engine

from ..core.enums import Role
from ..users.service import AuthService
from ..users.sqlalchemy_user_repository import SqlAlchemyUserRepository
from .connection import DatabaseConnection
from .schema import AssistantModel, Base, CompanyModel, TimeEntryModel

logger = logging.getLogger(__name__)

DEMO_ADMIN = ("admin", "Admin Demo", "admin123")
DEMO_COMPANY_USER = ("acme", "Acme Manager", "acme123")
DEMO_COMPANY_AUTH0_ID = "auth0|acme"


def create_schema(engine: Engine) -> None:
    """Create missing tables (idempotent)."""
    Base.metadata.create_all(engine)


def list_tables(engine: Engine) -> List[str]:
    return sorted(inspect(engine).get_table_names())


def seed_demo_data(conn: DatabaseConnection, *, today: Optional[date] = None) -> None:
    """Insert demo assistants, companies, hours and logins unless already present."""

    today = today or date.today()

    with conn.session() as session:
        if session.execute(select(AssistantModel.id).limit(1)).first() is None:
            anna = AssistantModel(first_name="Anna", last_name="Schmidt", harvest_user_id=101)
            ben = AssistantModel(first_name="Ben", last_name="Meyer", harvest_user_id=102)
            acme = CompanyModel(name="Acme GmbH", auth0_id=DEMO_COMPANY_AUTH0_ID, harvest_client_id=201)
            globex = CompanyModel(name="Globex AG", auth0_id="auth0|globex", harvest_client_id=202)
            session.add_all([anna, ben, acme, globex])
            session.flush()

            tasks = ["Inbox triage", "Travel booking", "Invoice review", "Meeting notes"]
            for offset in range(20):
                assistant = anna if offset % 2 == 0 else ben
                company = acme if offset % 3 else globex
                session.add(
                    TimeEntryModel(
                        harvest_id=1000 + offset,
                        harvest_user_id=assistant.harvest_user_id,
                        harvest_client_id=company.harvest_client_id,
                        assistant_id=assistant.id,
                        company_id=company.id,
                        spent_date=today - timedelta(days=offset),
                        hours_tracked=0.5 + (offset % 4) * 0.75,
                        task_name=tasks[offset % len(tasks)],
                    )
                )
            logger.info("Seeded demo assistants, companies and time entries")

    users = SqlAlchemyUserRepository(conn)
    auth = AuthService(users)
    if users.get_by_username(DEMO_ADMIN[0]) is None:
        auth.register(username=DEMO_ADMIN[0], full_name=DEMO_ADMIN[1], password=DEMO_ADMIN[2], role=Role.ADMIN)
    if users.get_by_username(DEMO_COMPANY_USER[0]) is None:
        auth.register(
            username=DEMO_COMPANY_USER[0],
            full_name=DEMO_COMPANY_USER[1],
            password=DEMO_COMPANY_USER[2],
            role=Role.COMPANY,
            auth0_id=DEMO_COMPANY_AUTH0_ID,
        )
