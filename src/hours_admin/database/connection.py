from __future__ import annotations

import logging
import urllib.parse
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from sqlalchemy import create_engine, make_url
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "hours_admin")),
        )

    def url(self) -> str:
        password = urllib.parse.quote_plus(self.password)
        return f"mysql+mysqlconnector://{self.user}:{password}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Engine plus session factory shared by all repositories.

    Note: Sessions are short-lived, one per repository operation.
    """

    def __init__(self, url: str, *, echo: bool = False):
        self._url = url
        self.engine = self._create_engine(url, echo=echo)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_settings(cls, *, db_config: dict, database_url: Optional[str] = None) -> "DatabaseConnection":
        url = database_url or DBConfig.from_dict(db_config).url()
        return cls(url)

    @staticmethod
    def _create_engine(url: str, *, echo: bool) -> Engine:
        if url in {"sqlite://", "sqlite:///:memory:"}:
            # In-memory SQLite only lives as long as its single connection.
            logger.debug("Using a single shared connection for in-memory SQLite")
            return create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        logger.debug("Creating engine for %s", make_url(url).render_as_string(hide_password=True))
        return create_engine(url, echo=echo, pool_pre_ping=True)

    @property
    def url(self) -> str:
        return self._url

    def new_session(self) -> Session:
        """Get a SQLAlchemy session (caller must close it)."""
        return self._session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.new_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
