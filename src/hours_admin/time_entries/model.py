from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional, Sequence


@dataclass(frozen=True)
class AssistantSummary:
    assistant_id: int
    first_name: str
    last_name: str
    image_url: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class CompanySummary:
    company_id: int
    name: str
    auth0_id: Optional[str] = None


@dataclass(frozen=True)
class TimeEntry:
    """Domain entity: hours an assistant logged against a client company."""

    entry_id: int
    harvest_id: Optional[int]
    harvest_user_id: Optional[int]
    harvest_client_id: Optional[int]
    assistant_id: Optional[int]
    company_id: Optional[int]
    spent_date: date
    hours_tracked: float
    task_name: Optional[str]
    created_at: Optional[datetime] = None
    assistant: Optional[AssistantSummary] = None
    company: Optional[CompanySummary] = None


@dataclass(frozen=True)
class NewTimeEntry:
    """A time entry imported from Harvest, not stored yet."""

    harvest_user_id: int
    harvest_client_id: int
    spent_date: date
    hours_tracked: float
    task_name: Optional[str] = None
    harvest_id: Optional[int] = None
    assistant_id: Optional[int] = None
    company_id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AggregatedTimeEntry:
    """Read-model: hours summed per (assistant, company) pair."""

    assistant_id: int
    company_id: int
    first_name: Optional[str]
    last_name: Optional[str]
    company_name: Optional[str]
    image_url: Optional[str]
    hours_tracked: float


@dataclass(frozen=True)
class TimeEntryFilters:
    """Optional listing filters; None means "do not filter"."""

    auth0_id: Optional[str] = None
    assistant_id: Optional[int] = None
    company_id: Optional[int] = None
    assistant_name: Optional[str] = None
    company_name: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    description: Optional[str] = None

    def scoped_to(self, auth0_id: str) -> "TimeEntryFilters":
        return replace(self, auth0_id=auth0_id)


@dataclass(frozen=True)
class TimeEntryPage:
    entries: Sequence[TimeEntry]
    count: int
    total_hours_tracked: float
    page: int
    per_page: int

    @property
    def page_count(self) -> int:
        if self.per_page <= 0:
            return 0
        return (self.count + self.per_page - 1) // self.per_page


@dataclass(frozen=True)
class AggregatedPage:
    rows: Sequence[AggregatedTimeEntry]
    count: int
    page: int
    per_page: int
    date_from: date
