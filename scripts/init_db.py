from __future__ import annotations

import importlib

from dotenv import load_dotenv

from hours_admin.config import get_settings_module
from hours_admin.database.bootstrap import create_schema, list_tables
from hours_admin.database.connection import DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.from_settings(
        db_config=dict(settings.DB_CONFIG),
        database_url=getattr(settings, "DATABASE_URL", None),
    )

    create_schema(conn.engine)
    tables = list_tables(conn.engine)
    print(f"OK: Created schema -> {conn.engine.url.render_as_string(hide_password=True)} (tables={len(tables)})")


if __name__ == "__main__":
    main()
