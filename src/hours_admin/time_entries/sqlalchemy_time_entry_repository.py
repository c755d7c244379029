from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import String, delete, func, insert, select, update
from sqlalchemy.orm import Session, contains_eager

from ..common.datetime_utils import now_local
from ..common.validators import normalize_name_query
from ..core.constants import DEFAULT_ITEMS_PER_PAGE
from ..core.enums import AggregatedSort, SortDirection, TimeEntrySort
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.schema import AssistantModel, CompanyModel, TimeEntryModel
from ..database.transactions import RetryPolicy, serializable_transaction_with_retry
from .model import (
    AggregatedTimeEntry,
    AssistantSummary,
    CompanySummary,
    NewTimeEntry,
    TimeEntry,
    TimeEntryFilters,
)
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)

_LIST_SORT_COLUMNS = {
    TimeEntrySort.ASSISTANT: (AssistantModel.first_name, AssistantModel.last_name),
    TimeEntrySort.COMPANY: (CompanyModel.name,),
    TimeEntrySort.DESCRIPTION: (TimeEntryModel.task_name,),
    TimeEntrySort.SPENT_DATE: (TimeEntryModel.spent_date,),
    TimeEntrySort.HOURS_TRACKED: (TimeEntryModel.hours_tracked,),
}

_HOURS_SUM = func.coalesce(func.sum(TimeEntryModel.hours_tracked), 0)

_AGGREGATED_SORT_COLUMNS = {
    AggregatedSort.ASSISTANT: (AssistantModel.first_name, AssistantModel.last_name),
    AggregatedSort.COMPANY: (CompanyModel.name,),
    AggregatedSort.HOURS_TRACKED: (_HOURS_SUM,),
}


def _order(columns, direction: SortDirection, *, nulls_last: bool = False) -> List[Any]:
    clauses: List[Any] = []
    for column in columns:
        if nulls_last:
            # Portable NULLS LAST: false (0) sorts before true (1)
            clauses.append(column.is_(None))
        clauses.append(column.desc() if direction is SortDirection.DESC else column.asc())
    return clauses


def _offset(page: int, per_page: int) -> int:
    return per_page * (page - 1)


def _linked_only() -> List[Any]:
    return [TimeEntryModel.assistant_id.is_not(None), TimeEntryModel.company_id.is_not(None)]


def _filter_conditions(filters: TimeEntryFilters) -> List[Any]:
    conditions = _linked_only()

    if filters.auth0_id:
        conditions.append(CompanyModel.auth0_id == filters.auth0_id)

    if filters.assistant_id is not None:
        conditions.append(AssistantModel.id == int(filters.assistant_id))

    if filters.company_id is not None:
        conditions.append(CompanyModel.id == int(filters.company_id))

    if filters.assistant_name:
        name = normalize_name_query(filters.assistant_name)
        if name:
            full_name = func.lower(AssistantModel.first_name + " " + AssistantModel.last_name, type_=String)
            conditions.append(full_name.contains(name, autoescape=True))

    if filters.company_name:
        conditions.append(
            func.lower(CompanyModel.name, type_=String).contains(filters.company_name.lower(), autoescape=True)
        )

    if filters.date_from is not None:
        conditions.append(TimeEntryModel.spent_date >= filters.date_from)

    if filters.date_to is not None:
        conditions.append(TimeEntryModel.spent_date <= filters.date_to)

    if filters.description:
        conditions.append(
            func.lower(TimeEntryModel.task_name, type_=String).contains(filters.description.lower(), autoescape=True)
        )

    return conditions


def _to_entry(row: TimeEntryModel) -> TimeEntry:
    assistant = None
    if row.assistant is not None:
        assistant = AssistantSummary(
            assistant_id=int(row.assistant.id),
            first_name=row.assistant.first_name,
            last_name=row.assistant.last_name,
            image_url=row.assistant.image_url,
        )

    company = None
    if row.company is not None:
        company = CompanySummary(
            company_id=int(row.company.id),
            name=row.company.name,
            auth0_id=row.company.auth0_id,
        )

    return TimeEntry(
        entry_id=int(row.id),
        harvest_id=row.harvest_id,
        harvest_user_id=row.harvest_user_id,
        harvest_client_id=row.harvest_client_id,
        assistant_id=row.assistant_id,
        company_id=row.company_id,
        spent_date=row.spent_date,
        hours_tracked=float(row.hours_tracked or 0),
        task_name=row.task_name,
        created_at=row.created_at,
        assistant=assistant,
        company=company,
    )


def _insert_params(entry: NewTimeEntry, now: datetime) -> Dict[str, Any]:
    return {
        "harvest_id": entry.harvest_id,
        "harvest_user_id": entry.harvest_user_id,
        "harvest_client_id": entry.harvest_client_id,
        "assistant_id": entry.assistant_id,
        "company_id": entry.company_id,
        "spent_date": entry.spent_date,
        "hours_tracked": float(entry.hours_tracked),
        "task_name": entry.task_name,
        "created_at": entry.created_at or now,
    }


class SqlAlchemyTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, retry_policy: Optional[RetryPolicy] = None):
        self._conn_factory = conn_factory
        self._retry_policy = retry_policy or RetryPolicy()

    def _joined(self, stmt):
        return stmt.outerjoin(TimeEntryModel.assistant).outerjoin(TimeEntryModel.company)

    def get(self, entry_id: int) -> TimeEntry:
        stmt = self._joined(select(TimeEntryModel)).options(
            contains_eager(TimeEntryModel.assistant),
            contains_eager(TimeEntryModel.company),
        )
        with self._conn_factory.session() as session:
            row = session.execute(stmt.where(TimeEntryModel.id == int(entry_id))).scalar_one_or_none()
            if row is None:
                raise NotFoundError(f"Time entry {entry_id} not found")
            return _to_entry(row)

    def sync(
        self,
        *,
        time_entries: Sequence[NewTimeEntry],
        harvest_client_id: int,
        harvest_user_id: int,
        date_from: Optional[date] = None,
        session: Optional[Session] = None,
    ) -> Sequence[NewTimeEntry]:
        entries = list(time_entries)

        def work(db: Session) -> Sequence[NewTimeEntry]:
            conditions = [
                TimeEntryModel.harvest_user_id == int(harvest_user_id),
                TimeEntryModel.harvest_client_id == int(harvest_client_id),
            ]
            if date_from is not None:
                conditions.append(TimeEntryModel.created_at >= datetime.combine(date_from, time.min))

            deleted = db.execute(
                delete(TimeEntryModel).where(*conditions).execution_options(synchronize_session=False)
            ).rowcount

            if entries:
                now = now_local()
                db.execute(insert(TimeEntryModel), [_insert_params(e, now) for e in entries])

            logger.info(
                "Synced harvest user=%s client=%s: deleted=%s inserted=%s",
                harvest_user_id,
                harvest_client_id,
                deleted,
                len(entries),
            )
            return entries

        return serializable_transaction_with_retry(
            self._conn_factory, work, session=session, policy=self._retry_policy
        )

    def list(
        self,
        filters: TimeEntryFilters,
        *,
        page: int = 1,
        per_page: int = DEFAULT_ITEMS_PER_PAGE,
        sort_by: TimeEntrySort = TimeEntrySort.SPENT_DATE,
        direction: SortDirection = SortDirection.ASC,
    ) -> Tuple[Sequence[TimeEntry], int]:
        conditions = _filter_conditions(filters)

        data_stmt = (
            self._joined(select(TimeEntryModel))
            .options(contains_eager(TimeEntryModel.assistant), contains_eager(TimeEntryModel.company))
            .where(*conditions)
            .order_by(*_order(_LIST_SORT_COLUMNS[sort_by], direction), TimeEntryModel.id.asc())
            .limit(per_page)
            .offset(_offset(page, per_page))
        )
        count_stmt = self._joined(select(func.count(TimeEntryModel.id)).select_from(TimeEntryModel)).where(
            *conditions
        )

        logger.debug("Listing time entries page=%s per_page=%s sort=%s %s", page, per_page, sort_by.value, direction.value)
        with self._conn_factory.session() as session:
            rows = session.execute(data_stmt).scalars().all()
            count = session.execute(count_stmt).scalar_one()
            return [_to_entry(r) for r in rows], int(count)

    def get_total_hours_tracked(self, filters: TimeEntryFilters) -> float:
        stmt = self._joined(select(_HOURS_SUM).select_from(TimeEntryModel)).where(*_filter_conditions(filters))

        with self._conn_factory.session() as session:
            total = session.execute(stmt).scalar_one()
            logger.debug("Total hours tracked=%s", total)
            return float(total or 0)

    def list_aggregated(
        self,
        *,
        date_from: date,
        page: int = 1,
        per_page: int = DEFAULT_ITEMS_PER_PAGE,
        sort_by: AggregatedSort = AggregatedSort.ASSISTANT,
        direction: SortDirection = SortDirection.ASC,
    ) -> Tuple[Sequence[AggregatedTimeEntry], int]:
        conditions = [TimeEntryModel.spent_date >= date_from, *_linked_only()]

        data_stmt = (
            self._joined(
                select(
                    AssistantModel.id.label("assistant_id"),
                    CompanyModel.id.label("company_id"),
                    AssistantModel.first_name,
                    AssistantModel.last_name,
                    CompanyModel.name.label("company_name"),
                    AssistantModel.image_url,
                    _HOURS_SUM.label("hours_tracked"),
                ).select_from(TimeEntryModel)
            )
            .where(*conditions)
            .group_by(
                AssistantModel.id,
                AssistantModel.first_name,
                AssistantModel.last_name,
                AssistantModel.image_url,
                CompanyModel.id,
                CompanyModel.name,
            )
            .order_by(
                *_order(_AGGREGATED_SORT_COLUMNS[sort_by], direction, nulls_last=True),
                AssistantModel.id.asc(),
                CompanyModel.id.asc(),
            )
            .limit(per_page)
            .offset(_offset(page, per_page))
        )

        pairs = (
            select(TimeEntryModel.assistant_id, TimeEntryModel.company_id)
            .where(*conditions)
            .distinct()
            .subquery()
        )
        count_stmt = select(func.count()).select_from(pairs)

        with self._conn_factory.session() as session:
            rows = session.execute(data_stmt).all()
            count = session.execute(count_stmt).scalar_one()

        return [
            AggregatedTimeEntry(
                assistant_id=int(r.assistant_id),
                company_id=int(r.company_id),
                first_name=r.first_name,
                last_name=r.last_name,
                company_name=r.company_name,
                image_url=r.image_url,
                hours_tracked=float(r.hours_tracked or 0),
            )
            for r in rows
        ], int(count)

    def set_assistant_id(self, *, assistant_id: Optional[int], harvest_user_id: int) -> int:
        with self._conn_factory.session() as session:
            result = session.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.harvest_user_id == int(harvest_user_id))
                .values(assistant_id=assistant_id)
                .execution_options(synchronize_session=False)
            )
            return int(result.rowcount)

    def update_assistant_relation(self, *, assistant_id: int, harvest_user_id: int) -> int:
        def work(db: Session) -> int:
            db.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.assistant_id == int(assistant_id))
                .values(assistant_id=None)
                .execution_options(synchronize_session=False)
            )
            result = db.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.harvest_user_id == int(harvest_user_id))
                .values(assistant_id=int(assistant_id))
                .execution_options(synchronize_session=False)
            )
            return int(result.rowcount)

        updated = serializable_transaction_with_retry(self._conn_factory, work, policy=self._retry_policy)
        logger.info("Assistant %s now owns %s entries of harvest user %s", assistant_id, updated, harvest_user_id)
        return updated

    def set_company_id(self, *, company_id: Optional[int], harvest_client_id: int) -> int:
        with self._conn_factory.session() as session:
            result = session.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.harvest_client_id == int(harvest_client_id))
                .values(company_id=company_id)
                .execution_options(synchronize_session=False)
            )
            return int(result.rowcount)

    def update_company_relation(self, *, company_id: int, harvest_client_id: int) -> int:
        def work(db: Session) -> int:
            db.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.company_id == int(company_id))
                .values(company_id=None)
                .execution_options(synchronize_session=False)
            )
            result = db.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.harvest_client_id == int(harvest_client_id))
                .values(company_id=int(company_id))
                .execution_options(synchronize_session=False)
            )
            return int(result.rowcount)

        updated = serializable_transaction_with_retry(self._conn_factory, work, policy=self._retry_policy)
        logger.info("Company %s now owns %s entries of harvest client %s", company_id, updated, harvest_client_id)
        return updated
