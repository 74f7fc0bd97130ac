"""Unit tests for the semantic tour diff."""

import copy
from decimal import Decimal

import pytest

from tour_update.schemas.tour import UpdateRequest
from tour_update.services.diff_reconciler import (
    TRACKED_FIELDS,
    TourDiffReconciler,
    canonical,
    canonical_day,
    diff_tours,
)


@pytest.fixture
def reconciler():
    return TourDiffReconciler()


@pytest.fixture
def proposed(sample_original_tour):
    return copy.deepcopy(sample_original_tour)


def test_canonical_values():
    assert canonical(" 12 ") == Decimal("12")
    assert canonical(250) == canonical("250.0")
    assert canonical("") is None
    assert canonical("  Hanoi ") == "Hanoi"
    assert canonical(["b", "a"]) == canonical(["b", "a"])


def test_identical_tours_have_no_changes(reconciler, sample_original_tour, proposed, today):
    diff = reconciler.diff(sample_original_tour, proposed, today)

    assert diff.changed_fields == []
    assert set(diff.fields) == set(TRACKED_FIELDS)
    assert all(day.display_value is None for day in diff.itinerary)


def test_changed_field_carries_display_value(reconciler, sample_original_tour, proposed, today):
    proposed["tourName"] = "Ha Long Bay Deluxe"

    diff = reconciler.diff(sample_original_tour, proposed, today)

    assert diff.changed_fields == ["tourName"]
    assert diff.fields["tourName"].display_value == "Ha Long Bay Deluxe"
    assert diff.fields["tourType"].display_value is None


def test_whitespace_and_number_formatting_ignored(reconciler, sample_original_tour, proposed, today):
    proposed["tourName"] = "  Ha Long Bay Explorer  "
    proposed["adultPrice"] = "250"
    proposed["amount"] = "20"

    assert reconciler.diff(sample_original_tour, proposed, today).changed_fields == []


def test_description_representation_ignored(reconciler, sample_original_tour, proposed, today):
    proposed["tourDescription"] = "Three days on the bay"

    diff = reconciler.diff(sample_original_tour, proposed, today)

    assert not diff.is_changed("tourDescription")


def test_description_text_change_detected(reconciler, sample_original_tour, proposed, today):
    proposed["tourDescription"] = "<p>Four days on the bay</p>"

    assert reconciler.diff(sample_original_tour, proposed, today).is_changed("tourDescription")


def test_refund_floor_never_changed(reconciler, sample_original_tour, proposed, today):
    proposed["refundFloor"] = 80

    assert reconciler.diff(sample_original_tour, proposed, today).changed_fields == []


def test_stale_balance_payment_days_masked(reconciler, today):
    original = {"minAdvancedDays": 10, "tourCheckDays": 3, "balancePaymentDays": 7}
    proposed = {"minAdvancedDays": 10, "tourCheckDays": 3, "balancePaymentDays": 0}

    diff = reconciler.diff(original, proposed, today)

    assert not diff.is_changed("balancePaymentDays")
    assert diff.changed_fields == []


def test_check_days_change_moves_balance(reconciler, sample_original_tour, proposed, today):
    proposed["tourCheckDays"] = 5

    diff = reconciler.diff(sample_original_tour, proposed, today)

    assert diff.changed_fields == ["balancePaymentDays", "tourCheckDays"]


def test_same_expiration_date_in_other_format(reconciler, sample_original_tour, proposed, today):
    proposed["tourExpirationDate"] = "2025-06-21"
    proposed["minAdvancedDays"] = 4

    diff = reconciler.diff(sample_original_tour, proposed, today)

    assert not diff.is_changed("tourExpirationDate")
    assert not diff.is_changed("minAdvancedDays")


def test_moved_expiration_changes_derived_fields(reconciler, sample_original_tour, proposed, today):
    proposed["tourExpirationDate"] = "2025-06-25"

    diff = reconciler.diff(sample_original_tour, proposed, today)

    assert diff.is_changed("tourExpirationDate")
    assert diff.is_changed("minAdvancedDays")
    assert diff.is_changed("balancePaymentDays")
    assert diff.fields["tourExpirationDate"].display_value == "2025-06-25"


def test_int_duration_follows_duration_text(reconciler, sample_original_tour, proposed, today):
    proposed["tourIntDuration"] = 9

    assert not reconciler.diff(sample_original_tour, proposed, today).is_changed("tourIntDuration")

    proposed["tourDuration"] = "4 days 3 nights"
    diff = reconciler.diff(sample_original_tour, proposed, today)

    assert diff.is_changed("tourDuration")
    assert diff.is_changed("tourIntDuration")


class TestItinerary:
    def test_color_case_and_defaults_ignored(self, reconciler, sample_original_tour, proposed, today):
        proposed["contents"][1]["dayColor"] = "#10b981"
        del proposed["contents"][0]["titleAlignment"]
        del proposed["contents"][0]["dayColor"]

        diff = reconciler.diff(sample_original_tour, proposed, today)

        assert [day.changed for day in diff.itinerary] == [False, False]

    def test_day_change_detected_by_position(self, reconciler, sample_original_tour, proposed, today):
        proposed["contents"][1]["images"].append("/uploads/kayak.jpg")

        diff = reconciler.diff(sample_original_tour, proposed, today)

        assert diff.changed_fields == ["contents.1"]
        assert diff.itinerary[1].display_value["images"] == ["/uploads/cruise.jpg", "/uploads/kayak.jpg"]

    def test_added_day_is_changed(self, reconciler, sample_original_tour, proposed, today):
        proposed["contents"].append({"tourContentTitle": "Departure", "tourContentDescription": "Fly home"})

        diff = reconciler.diff(sample_original_tour, proposed, today)

        assert len(diff.itinerary) == 3
        assert diff.changed_fields == ["contents.2"]

    def test_removed_day_is_changed_without_display_value(self, reconciler, sample_original_tour, proposed, today):
        proposed["contents"].pop()

        diff = reconciler.diff(sample_original_tour, proposed, today)

        assert diff.itinerary[1].changed
        assert diff.itinerary[1].display_value is None

    def test_form_and_stored_shapes_compare_equal(self):
        stored = {"tourContentTitle": "Arrival", "tourContentDescription": "<p>Hotel</p>", "images": []}
        form = {"title": "Arrival", "description": "Hotel", "dayColor": "#10B981", "titleAlignment": "LEFT"}

        assert canonical_day(stored) == canonical_day(form)


def test_diff_update_request(reconciler, sample_original_tour, proposed, today):
    proposed["babyPrice"] = 50
    request = UpdateRequest.model_validate({
        "id": 3,
        "originalTour": sample_original_tour,
        "updatedTour": proposed,
        "status": "PENDING",
    })

    diff = reconciler.diff_update_request(request, today)

    assert diff.changed_fields == ["babyPrice"]


def test_custom_rules_extend_the_table(sample_original_tour, proposed, today):
    reconciler = TourDiffReconciler(rules={"tourName": lambda original, updated, today: False})
    proposed["tourName"] = "Renamed"

    assert reconciler.diff(sample_original_tour, proposed, today).changed_fields == []


def test_missing_snapshot_treated_as_empty(today):
    diff = diff_tours(None, {"tourName": "New"}, today)

    assert diff.changed_fields == ["tourName"]


def test_non_finite_numbers_are_stable(today):
    tour = {"adultPrice": float("nan"), "tourCheckDays": float("inf"), "minAdvancedDays": "Infinity"}

    assert diff_tours(tour, dict(tour), today).changed_fields == []


def test_non_finite_proposal_shown_as_text(today):
    diff = diff_tours({"tourCheckDays": 3}, {"tourCheckDays": float("inf")}, today)

    assert diff.changed_fields == ["tourCheckDays"]
    assert diff.fields["tourCheckDays"].display_value == "inf"
