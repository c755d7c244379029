"""SQLAlchemy table definitions.

Repositories map these rows to the frozen dataclasses of each feature
package; nothing outside `database/` and the repositories imports them.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ..common.datetime_utils import now_local


class Base(DeclarativeBase):
    pass


class AssistantModel(Base):
    __tablename__ = "assistants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    harvest_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, unique=True)

    time_entries: Mapped[List["TimeEntryModel"]] = relationship(back_populates="assistant")


class CompanyModel(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    auth0_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, unique=True)
    harvest_client_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, unique=True)

    time_entries: Mapped[List["TimeEntryModel"]] = relationship(back_populates="company")


class TimeEntryModel(Base):
    __tablename__ = "time_entries"
    __table_args__ = (
        Index("ix_time_entries_harvest_pair", "harvest_user_id", "harvest_client_id"),
        Index("ix_time_entries_spent_date", "spent_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    harvest_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    harvest_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    harvest_client_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    assistant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("assistants.id", ondelete="SET NULL"), nullable=True, index=True
    )
    company_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    spent_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours_tracked: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    task_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_local)

    assistant: Mapped[Optional[AssistantModel]] = relationship(back_populates="time_entries")
    company: Mapped[Optional[CompanyModel]] = relationship(back_populates="time_entries")


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="company")
    auth0_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
