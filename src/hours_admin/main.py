from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import create_schema, list_tables, seed_demo_data
from .database.transactions import RetryPolicy
from .time_entries.controller import register as register_time_entries
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger("hours_admin").setLevel(level)


def create_app(settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    db_config = getattr(settings, "DB_CONFIG")
    database_url = getattr(settings, "DATABASE_URL", None)
    retry_policy = RetryPolicy(
        max_retries=int(getattr(settings, "TX_MAX_RETRIES", 5)),
        base_delay=float(getattr(settings, "TX_RETRY_BASE_DELAY", 0.05)),
        max_delay=float(getattr(settings, "TX_RETRY_MAX_DELAY", 1.0)),
    )

    container = build_container(db_config=db_config, database_url=database_url, retry_policy=retry_policy)
    app.extensions["hours_admin"] = container

    logger.info("settings=%s db=%s", settings_module, container.conn.engine.url.render_as_string(hide_password=True))

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        create_schema(container.conn.engine)
        logger.info("schema ready (tables=%s)", len(list_tables(container.conn.engine)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        seed_demo_data(container.conn)
        logger.info("demo seed ready")

    register_users(app, container)
    register_time_entries(app, container)

    return app


def get_container(app: Flask) -> Container:
    return app.extensions["hours_admin"]


if __name__ == "__main__":
    create_app().run()
