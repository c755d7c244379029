"""State of the hours listing page.

The page keeps its filter/sort/page state in the URL query string. Every
state change produces a new URL; rendering that URL fetches the matching
page of time entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import display_to_iso
from ..common.validators import optional_int, parse_int
from ..core.constants import DEFAULT_ITEMS_PER_PAGE, MAX_ITEMS_PER_PAGE
from ..core.enums import SortDirection, TimeEntrySort
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class SortColumn:
    key: str
    title: str


@dataclass(frozen=True)
class FilterColumn:
    key: str
    placeholder: str
    type: str


SORT_COLUMNS: Sequence[SortColumn] = (
    SortColumn(key=TimeEntrySort.DESCRIPTION.value, title="Description"),
    SortColumn(key=TimeEntrySort.ASSISTANT.value, title="Assistant"),
    SortColumn(key=TimeEntrySort.SPENT_DATE.value, title="Date"),
    SortColumn(key=TimeEntrySort.HOURS_TRACKED.value, title="Hours"),
)

FILTER_COLUMNS: Sequence[FilterColumn] = (
    FilterColumn(key="description", placeholder="Description", type="text"),
    FilterColumn(key="assistant", placeholder="Assistant", type="text"),
    FilterColumn(key="startDate", placeholder="Start date (DD.MM.YYYY)", type="date"),
    FilterColumn(key="endDate", placeholder="End date (DD.MM.YYYY)", type="date"),
)


@dataclass(frozen=True)
class SortState:
    field: str = TimeEntrySort.SPENT_DATE.value
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class HoursFilters:
    description: str = ""
    assistant: str = ""
    start_date: str = ""
    end_date: str = ""

    def as_list(self) -> List[str]:
        return [self.description, self.assistant, self.start_date, self.end_date]


@dataclass(frozen=True)
class HoursListing:
    """Filter/sort/page state; `page` is zero-based like the table pager."""

    page: int = 0
    per_page: int = DEFAULT_ITEMS_PER_PAGE
    sort: SortState = field(default_factory=SortState)
    filters: HoursFilters = field(default_factory=HoursFilters)

    def toggle_sort(self, field_key: str) -> "HoursListing":
        if self.sort.field == field_key:
            return replace(self, sort=SortState(field=field_key, direction=self.sort.direction.flipped()))
        return replace(self, sort=SortState(field=field_key, direction=SortDirection.ASC))

    def with_filters(self, values: Sequence[str]) -> "HoursListing":
        description, assistant, start_date, end_date = (list(values) + ["", "", "", ""])[:4]
        return replace(
            self,
            filters=HoursFilters(
                description=description or "",
                assistant=assistant or "",
                start_date=start_date or "",
                end_date=end_date or "",
            ),
        )

    def with_page(self, page: int) -> "HoursListing":
        return replace(self, page=max(0, int(page)))

    def to_request_params(self, assistant_id: Optional[int] = None) -> Dict[str, object]:
        """Parameters of the hours fetch for the current state."""

        params: Dict[str, object] = {
            "page": self.page + 1,
            "perPage": self.per_page,
            "sortBy": self.sort.field,
            "direction": self.sort.direction.value,
        }
        if self.filters.description:
            params["description"] = self.filters.description
        if self.filters.assistant:
            params["assistantName"] = self.filters.assistant
        if assistant_id is not None:
            params["assistantId"] = int(assistant_id)
        if self.filters.start_date:
            params["from"] = display_to_iso(self.filters.start_date)
        if self.filters.end_date:
            params["to"] = display_to_iso(self.filters.end_date)
        return params

    def to_url_args(self) -> Dict[str, object]:
        """Query string that reproduces this state on the page itself."""

        args: Dict[str, object] = {
            "page": self.page,
            "perPage": self.per_page,
            "sort": self.sort.field,
            "direction": self.sort.direction.value,
        }
        for key, value in zip(("description", "assistant", "startDate", "endDate"), self.filters.as_list()):
            if value:
                args[key] = value
        return args

    @classmethod
    def from_url_args(cls, args: Mapping[str, str]) -> "HoursListing":
        sort_field = args.get("sort") or TimeEntrySort.SPENT_DATE.value
        if sort_field not in {c.key for c in SORT_COLUMNS}:
            raise ValidationError(f"Cannot sort by {sort_field!r}")

        try:
            direction = SortDirection((args.get("direction") or SortDirection.DESC.value).upper())
        except ValueError:
            raise ValidationError("direction must be ASC or DESC")

        listing = cls(
            page=parse_int(args.get("page") or 0, "page", minimum=0),
            per_page=parse_int(args.get("perPage") or DEFAULT_ITEMS_PER_PAGE, "perPage", minimum=1, maximum=MAX_ITEMS_PER_PAGE),
            sort=SortState(field=sort_field, direction=direction),
        )
        return listing.with_filters(
            [
                (args.get("description") or "").strip(),
                (args.get("assistant") or "").strip(),
                (args.get("startDate") or "").strip(),
                (args.get("endDate") or "").strip(),
            ]
        )


def assistant_id_from_url(args: Mapping[str, str]) -> Optional[int]:
    return optional_int(args.get("assistantId"), "assistantId")
