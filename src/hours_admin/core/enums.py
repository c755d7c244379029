from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Login roles used for authorization."""

    ADMIN = "admin"
    COMPANY = "company"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class TimeEntrySort(str, Enum):
    """Sortable columns of the time entry listing."""

    SPENT_DATE = "spentDate"
    ASSISTANT = "assistant"
    COMPANY = "company"
    HOURS_TRACKED = "hoursTracked"
    DESCRIPTION = "description"


class AggregatedSort(str, Enum):
    """Sortable columns of the per assistant/company aggregation."""

    ASSISTANT = "assistant"
    COMPANY = "company"
    HOURS_TRACKED = "hoursTracked"
