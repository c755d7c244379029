from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_ITEMS_PER_PAGE
from ..core.enums import AggregatedSort, SortDirection, TimeEntrySort
from .model import AggregatedTimeEntry, NewTimeEntry, TimeEntry, TimeEntryFilters


class TimeEntryRepository(Protocol):
    def get(self, entry_id: int) -> TimeEntry:
        """Raises NotFoundError when the entry does not exist."""

        raise NotImplementedError

    def sync(
        self,
        *,
        time_entries: Sequence[NewTimeEntry],
        harvest_client_id: int,
        harvest_user_id: int,
        date_from: Optional[date] = None,
        session: Optional[Session] = None,
    ) -> Sequence[NewTimeEntry]:
        """Replace the stored entries of one Harvest (user, client) pair."""

        raise NotImplementedError

    def list(
        self,
        filters: TimeEntryFilters,
        *,
        page: int = 1,
        per_page: int = DEFAULT_ITEMS_PER_PAGE,
        sort_by: TimeEntrySort = TimeEntrySort.SPENT_DATE,
        direction: SortDirection = SortDirection.ASC,
    ) -> Tuple[Sequence[TimeEntry], int]:
        raise NotImplementedError

    def get_total_hours_tracked(self, filters: TimeEntryFilters) -> float:
        raise NotImplementedError

    def list_aggregated(
        self,
        *,
        date_from: date,
        page: int = 1,
        per_page: int = DEFAULT_ITEMS_PER_PAGE,
        sort_by: AggregatedSort = AggregatedSort.ASSISTANT,
        direction: SortDirection = SortDirection.ASC,
    ) -> Tuple[Sequence[AggregatedTimeEntry], int]:
        raise NotImplementedError

    def set_assistant_id(self, *, assistant_id: Optional[int], harvest_user_id: int) -> int:
        raise NotImplementedError

    def update_assistant_relation(self, *, assistant_id: int, harvest_user_id: int) -> int:
        """Move an assistant onto the entries of a Harvest user, atomically."""

        raise NotImplementedError

    def set_company_id(self, *, company_id: Optional[int], harvest_client_id: int) -> int:
        raise NotImplementedError

    def update_company_relation(self, *, company_id: int, harvest_client_id: int) -> int:
        """Move a company onto the entries of a Harvest client, atomically."""

        raise NotImplementedError
