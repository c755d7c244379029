from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..common.datetime_utils import first_day_of_month, parse_iso_date
from ..common.validators import optional_int, optional_text, parse_int
from ..core.constants import DEFAULT_ITEMS_PER_PAGE, MAX_EXPORT_ROWS, MAX_ITEMS_PER_PAGE
from ..core.enums import AggregatedSort, Role, SortDirection, TimeEntrySort
from ..core.exceptions import AuthorizationError, ValidationError
from ..users.service import SessionUser
from .model import AggregatedPage, NewTimeEntry, TimeEntry, TimeEntryFilters, TimeEntryPage
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)


def _arg(args: Mapping[str, Any], key: str) -> Optional[str]:
    value = args.get(key)
    if value is None:
        return None
    return str(value)


def _parse_direction(value: Optional[str], default: SortDirection) -> SortDirection:
    if not value:
        return default
    try:
        return SortDirection(value.upper())
    except ValueError:
        raise ValidationError("direction must be ASC or DESC")


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    value = optional_text(value)
    return parse_iso_date(value) if value else None


def _parse_paging(args: Mapping[str, Any]) -> Tuple[int, int]:
    page = parse_int(_arg(args, "page") or 1, "page", minimum=1)
    per_page = parse_int(
        _arg(args, "perPage") or DEFAULT_ITEMS_PER_PAGE, "perPage", minimum=1, maximum=MAX_ITEMS_PER_PAGE
    )
    return page, per_page


@dataclass(frozen=True)
class HoursQuery:
    """Validated parameters of an hours listing request."""

    filters: TimeEntryFilters = field(default_factory=TimeEntryFilters)
    page: int = 1
    per_page: int = DEFAULT_ITEMS_PER_PAGE
    sort_by: TimeEntrySort = TimeEntrySort.SPENT_DATE
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "HoursQuery":
        page, per_page = _parse_paging(args)

        sort_value = _arg(args, "sortBy") or TimeEntrySort.SPENT_DATE.value
        try:
            sort_by = TimeEntrySort(sort_value)
        except ValueError:
            raise ValidationError(f"Cannot sort by {sort_value!r}")

        date_from = _parse_optional_date(_arg(args, "from"))
        date_to = _parse_optional_date(_arg(args, "to"))
        if date_from and date_to and date_to < date_from:
            raise ValidationError("'to' cannot be before 'from'")

        filters = TimeEntryFilters(
            assistant_id=optional_int(args.get("assistantId"), "assistantId"),
            company_id=optional_int(args.get("companyId"), "companyId"),
            assistant_name=optional_text(_arg(args, "assistantName")),
            company_name=optional_text(_arg(args, "companyName")),
            date_from=date_from,
            date_to=date_to,
            description=optional_text(_arg(args, "description")),
        )
        return cls(
            filters=filters,
            page=page,
            per_page=per_page,
            sort_by=sort_by,
            direction=_parse_direction(_arg(args, "direction"), SortDirection.ASC),
        )


@dataclass(frozen=True)
class AggregatedQuery:
    date_from: date
    page: int = 1
    per_page: int = DEFAULT_ITEMS_PER_PAGE
    sort_by: AggregatedSort = AggregatedSort.ASSISTANT
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def from_args(cls, args: Mapping[str, Any], *, today: date) -> "AggregatedQuery":
        page, per_page = _parse_paging(args)

        sort_value = _arg(args, "sortBy") or AggregatedSort.ASSISTANT.value
        try:
            sort_by = AggregatedSort(sort_value)
        except ValueError:
            raise ValidationError(f"Cannot sort by {sort_value!r}")

        return cls(
            date_from=_parse_optional_date(_arg(args, "from")) or first_day_of_month(today),
            page=page,
            per_page=per_page,
            sort_by=sort_by,
            direction=_parse_direction(_arg(args, "direction"), SortDirection.ASC),
        )


class TimeEntryService:
    """Use cases of the hours admin: listing, export, Harvest sync and relinking."""

    def __init__(self, time_entries: TimeEntryRepository, *, today: Callable[[], date] = date.today):
        self._time_entries = time_entries
        self._today = today

    @staticmethod
    def _require_admin(current_user: SessionUser) -> None:
        if current_user.role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

    @staticmethod
    def _scope(filters: TimeEntryFilters, current_user: SessionUser) -> TimeEntryFilters:
        if current_user.role == Role.ADMIN:
            return filters
        if not current_user.auth0_id:
            raise AuthorizationError("Account is not linked to a company")
        return filters.scoped_to(current_user.auth0_id)

    def list_hours(self, *, current_user: SessionUser, query: HoursQuery) -> TimeEntryPage:
        filters = self._scope(query.filters, current_user)

        entries, count = self._time_entries.list(
            filters,
            page=query.page,
            per_page=query.per_page,
            sort_by=query.sort_by,
            direction=query.direction,
        )
        total = self._time_entries.get_total_hours_tracked(filters)

        return TimeEntryPage(
            entries=entries,
            count=count,
            total_hours_tracked=total,
            page=query.page,
            per_page=query.per_page,
        )

    def list_aggregated(self, *, current_user: SessionUser, args: Mapping[str, Any]) -> AggregatedPage:
        self._require_admin(current_user)
        query = AggregatedQuery.from_args(args, today=self._today())

        rows, count = self._time_entries.list_aggregated(
            date_from=query.date_from,
            page=query.page,
            per_page=query.per_page,
            sort_by=query.sort_by,
            direction=query.direction,
        )
        return AggregatedPage(rows=rows, count=count, page=query.page, per_page=query.per_page, date_from=query.date_from)

    def get_entry(self, *, current_user: SessionUser, entry_id: int) -> TimeEntry:
        entry = self._time_entries.get(int(entry_id))
        if current_user.role != Role.ADMIN:
            owner = entry.company.auth0_id if entry.company else None
            if not current_user.auth0_id or owner != current_user.auth0_id:
                raise AuthorizationError("You cannot view this time entry")
        return entry

    def export_rows(self, *, current_user: SessionUser, query: HoursQuery) -> List[Dict[str, Any]]:
        """Flat rows of every entry matching the query (paging ignored)."""

        filters = self._scope(query.filters, current_user)
        entries, count = self._time_entries.list(
            filters,
            page=1,
            per_page=MAX_EXPORT_ROWS,
            sort_by=query.sort_by,
            direction=query.direction,
        )
        if count > MAX_EXPORT_ROWS:
            logger.warning("Export truncated to %s of %s rows", MAX_EXPORT_ROWS, count)

        return [
            {
                "Date": e.spent_date.strftime("%Y-%m-%d"),
                "Assistant": e.assistant.full_name if e.assistant else "",
                "Company": e.company.name if e.company else "",
                "Description": e.task_name or "",
                "Hours": round(e.hours_tracked, 2),
            }
            for e in entries
        ]

    @staticmethod
    def parse_sync_entries(
        items: Sequence[Mapping[str, Any]], *, harvest_user_id: int, harvest_client_id: int
    ) -> List[NewTimeEntry]:
        entries: List[NewTimeEntry] = []
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                raise ValidationError(f"timeEntries[{index}] must be an object")
            spent = _arg(item, "spentDate")
            if not spent:
                raise ValidationError(f"timeEntries[{index}].spentDate is required")
            try:
                hours = float(item.get("hoursTracked", 0) or 0)
            except (TypeError, ValueError):
                raise ValidationError(f"timeEntries[{index}].hoursTracked must be a number")
            if hours < 0:
                raise ValidationError(f"timeEntries[{index}].hoursTracked cannot be negative")

            created_at = None
            created_raw = optional_text(_arg(item, "createdAt"))
            if created_raw:
                try:
                    created_at = datetime.fromisoformat(created_raw)
                except ValueError:
                    raise ValidationError(f"timeEntries[{index}].createdAt is not an ISO datetime")

            entries.append(
                NewTimeEntry(
                    harvest_user_id=int(harvest_user_id),
                    harvest_client_id=int(harvest_client_id),
                    spent_date=parse_iso_date(spent),
                    hours_tracked=hours,
                    task_name=optional_text(_arg(item, "taskName")),
                    harvest_id=optional_int(item.get("harvestId"), "harvestId"),
                    assistant_id=optional_int(item.get("assistantId"), "assistantId"),
                    company_id=optional_int(item.get("companyId"), "companyId"),
                    created_at=created_at,
                )
            )
        return entries

    def sync_entries(self, *, current_user: SessionUser, payload: Mapping[str, Any]) -> int:
        self._require_admin(current_user)

        harvest_user_id = parse_int(payload.get("harvestUserId"), "harvestUserId", minimum=1)
        harvest_client_id = parse_int(payload.get("harvestClientId"), "harvestClientId", minimum=1)
        items = payload.get("timeEntries") or []
        if not isinstance(items, list):
            raise ValidationError("timeEntries must be a list")

        entries = self.parse_sync_entries(
            items, harvest_user_id=harvest_user_id, harvest_client_id=harvest_client_id
        )
        synced = self._time_entries.sync(
            time_entries=entries,
            harvest_client_id=harvest_client_id,
            harvest_user_id=harvest_user_id,
            date_from=_parse_optional_date(_arg(payload, "from")),
        )
        return len(synced)

    def link_assistant(self, *, current_user: SessionUser, assistant_id: int, harvest_user_id: Any) -> int:
        self._require_admin(current_user)
        return self._time_entries.update_assistant_relation(
            assistant_id=int(assistant_id),
            harvest_user_id=parse_int(harvest_user_id, "harvestUserId", minimum=1),
        )

    def link_company(self, *, current_user: SessionUser, company_id: int, harvest_client_id: Any) -> int:
        self._require_admin(current_user)
        return self._time_entries.update_company_relation(
            company_id=int(company_id),
            harvest_client_id=parse_int(harvest_client_id, "harvestClientId", minimum=1),
        )
