from __future__ import annotations

import importlib

from dotenv import load_dotenv

from hours_admin.config import get_settings_module
from hours_admin.database.bootstrap import create_schema, seed_demo_data
from hours_admin.database.connection import DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.from_settings(
        db_config=dict(settings.DB_CONFIG),
        database_url=getattr(settings, "DATABASE_URL", None),
    )

    create_schema(conn.engine)
    seed_demo_data(conn)

    print(f"OK: Seeded database -> {conn.engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    main()
