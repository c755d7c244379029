"""Example: use the service layer without Flask.

Controllers are a thin layer; the listing logic lives in services and repositories.
"""

import importlib

from hours_admin.config import get_settings_module
from hours_admin.container import build_container
from hours_admin.core.enums import Role
from hours_admin.time_entries.service import HoursQuery
from hours_admin.users.service import SessionUser


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, database_url=getattr(settings, "DATABASE_URL", None))
    admin = SessionUser(user_id=1, full_name="Admin", role=Role.ADMIN)

    page = container.time_entry_service.list_hours(
        current_user=admin,
        query=HoursQuery.from_args({"perPage": 5, "sortBy": "hoursTracked", "direction": "DESC"}),
    )
    for entry in page.entries:
        print(entry.spent_date, entry.assistant.full_name if entry.assistant else "-", entry.hours_tracked)
    print(f"{page.count} entries, {page.total_hours_tracked:.2f} hours")


if __name__ == "__main__":
    main()
