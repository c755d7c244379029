from __future__ import annotations

from datetime import date
from typing import Optional

import pytest

from hours_admin.core.enums import AggregatedSort, Role, SortDirection, TimeEntrySort
from hours_admin.core.exceptions import AuthorizationError, ValidationError
from hours_admin.time_entries.model import (
    AssistantSummary,
    CompanySummary,
    TimeEntry,
    TimeEntryFilters,
)
from hours_admin.time_entries.service import HoursQuery, TimeEntryService
from hours_admin.users.service import SessionUser


def _entry(entry_id: int, *, auth0_id: str = "auth0|acme", hours: float = 1.25) -> TimeEntry:
    return TimeEntry(
        entry_id=entry_id,
        harvest_id=None,
        harvest_user_id=101,
        harvest_client_id=201,
        assistant_id=1,
        company_id=1,
        spent_date=date(2024, 3, 1),
        hours_tracked=hours,
        task_name="Inbox triage",
        assistant=AssistantSummary(assistant_id=1, first_name="Anna", last_name="Schmidt"),
        company=CompanySummary(company_id=1, name="Acme GmbH", auth0_id=auth0_id),
    )


class InMemoryTimeEntries:
    """Records the arguments each call received."""

    def __init__(self, entries=None):
        self.entries = list(entries or [])
        self.calls = {}

    def get(self, entry_id: int) -> TimeEntry:
        self.calls["get"] = entry_id
        for e in self.entries:
            if e.entry_id == entry_id:
                return e
        raise AssertionError("unexpected id")

    def list(self, filters, *, page=1, per_page=10, sort_by=TimeEntrySort.SPENT_DATE, direction=SortDirection.ASC):
        self.calls["list"] = dict(filters=filters, page=page, per_page=per_page, sort_by=sort_by, direction=direction)
        return self.entries, len(self.entries)

    def get_total_hours_tracked(self, filters) -> float:
        self.calls["total"] = filters
        return sum(e.hours_tracked for e in self.entries)

    def list_aggregated(self, **kwargs):
        self.calls["list_aggregated"] = kwargs
        return [], 0

    def sync(self, *, time_entries, harvest_client_id, harvest_user_id, date_from=None, session=None):
        self.calls["sync"] = dict(
            time_entries=list(time_entries),
            harvest_client_id=harvest_client_id,
            harvest_user_id=harvest_user_id,
            date_from=date_from,
        )
        return time_entries

    def update_assistant_relation(self, *, assistant_id: int, harvest_user_id: int) -> int:
        self.calls["update_assistant_relation"] = (assistant_id, harvest_user_id)
        return 3

    def update_company_relation(self, *, company_id: int, harvest_client_id: int) -> int:
        self.calls["update_company_relation"] = (company_id, harvest_client_id)
        return 2


def _service(repo: Optional[InMemoryTimeEntries] = None) -> TimeEntryService:
    return TimeEntryService(repo or InMemoryTimeEntries(), today=lambda: date(2024, 3, 17))


def test_hours_query_defaults():
    query = HoursQuery.from_args({})

    assert query.page == 1
    assert query.per_page == 10
    assert query.sort_by is TimeEntrySort.SPENT_DATE
    assert query.direction is SortDirection.ASC
    assert query.filters == TimeEntryFilters()


def test_hours_query_parses_filters():
    query = HoursQuery.from_args(
        {
            "page": "2",
            "perPage": "25",
            "sortBy": "hoursTracked",
            "direction": "desc",
            "assistantName": " anna ",
            "companyId": "4",
            "from": "2024-03-01",
            "to": "2024-03-31",
        }
    )

    assert (query.page, query.per_page) == (2, 25)
    assert query.sort_by is TimeEntrySort.HOURS_TRACKED
    assert query.direction is SortDirection.DESC
    assert query.filters.assistant_name == "anna"
    assert query.filters.company_id == 4
    assert query.filters.date_from == date(2024, 3, 1)
    assert query.filters.date_to == date(2024, 3, 31)


@pytest.mark.parametrize(
    "args",
    [
        {"sortBy": "createdAt"},
        {"direction": "sideways"},
        {"perPage": "500"},
        {"page": "0"},
        {"from": "01.03.2024"},
        {"from": "2024-03-10", "to": "2024-03-01"},
        {"assistantId": "abc"},
    ],
)
def test_hours_query_rejects_invalid_args(args):
    with pytest.raises(ValidationError):
        HoursQuery.from_args(args)


def test_list_hours_for_admin_forwards_filters(admin_user):
    repo = InMemoryTimeEntries([_entry(1, hours=1.5), _entry(2, hours=2.0)])
    query = HoursQuery.from_args({"description": "inbox", "page": "3", "perPage": "5"})

    page = _service(repo).list_hours(current_user=admin_user, query=query)

    assert page.count == 2
    assert page.total_hours_tracked == pytest.approx(3.5)
    assert repo.calls["list"]["page"] == 3
    assert repo.calls["list"]["per_page"] == 5
    assert repo.calls["list"]["filters"].description == "inbox"
    assert repo.calls["list"]["filters"].auth0_id is None


def test_list_hours_scopes_company_user(acme_user):
    repo = InMemoryTimeEntries()
    query = HoursQuery.from_args({})

    _service(repo).list_hours(current_user=acme_user, query=query)

    assert repo.calls["list"]["filters"].auth0_id == "auth0|acme"
    assert repo.calls["total"].auth0_id == "auth0|acme"


def test_list_hours_rejects_company_user_without_auth0_id():
    user = SessionUser(user_id=9, full_name="Lost", role=Role.COMPANY)

    with pytest.raises(AuthorizationError):
        _service().list_hours(current_user=user, query=HoursQuery())


def test_list_aggregated_defaults_to_first_of_month(admin_user):
    repo = InMemoryTimeEntries()

    page = _service(repo).list_aggregated(current_user=admin_user, args={"sortBy": "hoursTracked", "direction": "DESC"})

    assert page.date_from == date(2024, 3, 1)
    assert repo.calls["list_aggregated"]["sort_by"] is AggregatedSort.HOURS_TRACKED
    assert repo.calls["list_aggregated"]["direction"] is SortDirection.DESC


def test_list_aggregated_requires_admin(acme_user):
    with pytest.raises(AuthorizationError):
        _service().list_aggregated(current_user=acme_user, args={})


def test_get_entry_of_other_company_is_forbidden(acme_user):
    repo = InMemoryTimeEntries([_entry(7, auth0_id="auth0|globex")])

    with pytest.raises(AuthorizationError):
        _service(repo).get_entry(current_user=acme_user, entry_id=7)


def test_export_rows_are_flat(acme_user):
    repo = InMemoryTimeEntries([_entry(1, hours=1.256)])

    rows = _service(repo).export_rows(current_user=acme_user, query=HoursQuery())

    assert rows == [
        {"Date": "2024-03-01", "Assistant": "Anna Schmidt", "Company": "Acme GmbH", "Description": "Inbox triage", "Hours": 1.26}
    ]
    assert repo.calls["list"]["filters"].auth0_id == "auth0|acme"


def test_sync_entries_parses_payload(admin_user):
    repo = InMemoryTimeEntries()
    payload = {
        "harvestUserId": "101",
        "harvestClientId": 201,
        "from": "2024-03-01",
        "timeEntries": [
            {"spentDate": "2024-03-04", "hoursTracked": "1.5", "taskName": "Calls", "harvestId": 9001},
            {"spentDate": "2024-03-05", "hoursTracked": 2, "createdAt": "2024-03-05T08:30:00"},
        ],
    }

    synced = _service(repo).sync_entries(current_user=admin_user, payload=payload)

    call = repo.calls["sync"]
    assert synced == 2
    assert call["harvest_user_id"] == 101
    assert call["harvest_client_id"] == 201
    assert call["date_from"] == date(2024, 3, 1)
    assert call["time_entries"][0].hours_tracked == 1.5
    assert call["time_entries"][0].harvest_id == 9001
    assert call["time_entries"][1].created_at.hour == 8


@pytest.mark.parametrize(
    "item",
    [
        {"hoursTracked": 1},
        {"spentDate": "2024-03-04", "hoursTracked": "lots"},
        {"spentDate": "2024-03-04", "hoursTracked": -1},
        {"spentDate": "2024-03-04", "createdAt": "yesterday"},
        "not an object",
    ],
)
def test_sync_entries_rejects_bad_items(admin_user, item):
    payload = {"harvestUserId": 101, "harvestClientId": 201, "timeEntries": [item]}

    with pytest.raises(ValidationError):
        _service().sync_entries(current_user=admin_user, payload=payload)


def test_sync_entries_requires_admin(acme_user):
    with pytest.raises(AuthorizationError):
        _service().sync_entries(current_user=acme_user, payload={"harvestUserId": 1, "harvestClientId": 2})


def test_link_assistant_and_company(admin_user):
    repo = InMemoryTimeEntries()
    service = _service(repo)

    assert service.link_assistant(current_user=admin_user, assistant_id=5, harvest_user_id="101") == 3
    assert service.link_company(current_user=admin_user, company_id=6, harvest_client_id=201) == 2
    assert repo.calls["update_assistant_relation"] == (5, 101)
    assert repo.calls["update_company_relation"] == (6, 201)


def test_link_assistant_validates_harvest_id(admin_user, acme_user):
    with pytest.raises(ValidationError):
        _service().link_assistant(current_user=admin_user, assistant_id=5, harvest_user_id=None)
    with pytest.raises(AuthorizationError):
        _service().link_assistant(current_user=acme_user, assistant_id=5, harvest_user_id=101)
