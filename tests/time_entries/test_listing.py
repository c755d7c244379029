from __future__ import annotations

import pytest

from hours_admin.core.enums import SortDirection
from hours_admin.core.exceptions import ValidationError
from hours_admin.time_entries.listing import HoursListing, SortState, assistant_id_from_url


def test_initial_state_requests_first_page_newest_first():
    params = HoursListing().to_request_params()

    assert params == {"page": 1, "perPage": 10, "sortBy": "spentDate", "direction": "DESC"}


def test_toggle_sort_flips_same_column_and_resets_new_one():
    listing = HoursListing()

    flipped = listing.toggle_sort("spentDate")
    other = flipped.toggle_sort("assistant")

    assert flipped.sort == SortState(field="spentDate", direction=SortDirection.ASC)
    assert flipped.toggle_sort("spentDate").sort.direction is SortDirection.DESC
    assert other.sort == SortState(field="assistant", direction=SortDirection.ASC)


def test_filters_are_converted_to_request_params():
    listing = HoursListing().with_page(2).with_filters(["inbox", "Anna", "01.03.2024", "31.03.2024"])

    params = listing.to_request_params(assistant_id=7)

    assert params["page"] == 3
    assert params["description"] == "inbox"
    assert params["assistantName"] == "Anna"
    assert params["assistantId"] == 7
    assert params["from"] == "2024-03-01"
    assert params["to"] == "2024-03-31"


def test_blank_filters_are_omitted_and_page_is_kept():
    listing = HoursListing().with_page(4).with_filters(["", "", "", ""])

    params = listing.to_request_params()

    assert params["page"] == 5
    assert not {"description", "assistantName", "assistantId", "from", "to"} & set(params)


def test_invalid_display_date_is_rejected():
    listing = HoursListing().with_filters(["", "", "2024-03-01", ""])

    with pytest.raises(ValidationError):
        listing.to_request_params()


def test_url_args_round_trip():
    listing = HoursListing(page=1, per_page=25).toggle_sort("hoursTracked").with_filters(["calls", "", "", "31.03.2024"])

    restored = HoursListing.from_url_args({k: str(v) for k, v in listing.to_url_args().items()})

    assert restored == listing


@pytest.mark.parametrize("args", [{"sort": "createdAt"}, {"direction": "up"}, {"page": "-1"}, {"perPage": "1000"}])
def test_from_url_args_rejects_invalid_state(args):
    with pytest.raises(ValidationError):
        HoursListing.from_url_args(args)


def test_assistant_id_from_url():
    assert assistant_id_from_url({"assistantId": "12"}) == 12
    assert assistant_id_from_url({}) is None
