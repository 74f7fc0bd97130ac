"""Unit tests for draft validation, payload building and the submit guard."""

import asyncio
from datetime import date

import httpx
import pytest

from tour_update.core.exceptions import (
    RequiredFieldMissingError,
    SubmissionInProgressError,
    UpstreamSubmitError,
)
from tour_update.services.submission import SubmissionService, build_update_payload, validate_draft
from tour_update.services.update_request_client import UpdateRequestClient


class TestValidateDraft:
    def test_complete_draft_passes(self, sample_draft):
        validate_draft(sample_draft)

    def test_reports_every_missing_field(self, sample_draft):
        draft = sample_draft.model_copy(update={
            "tour_name": "",
            "tour_vehicle": "   ",
            "tour_description": "<p></p>",
            "adult_price": None,
        })

        with pytest.raises(RequiredFieldMissingError) as exc_info:
            validate_draft(draft)

        assert exc_info.value.missing == ["tourName", "tourDescription", "tourVehicle", "adultPrice"]
        assert exc_info.value.status_code == 422
        assert "tourName, tourDescription" in exc_info.value.problem_details["detail"]

    def test_schedule_fields_required(self, sample_draft):
        schedule = sample_draft.schedule.model_copy(update={"nights": None, "check_days": None})

        with pytest.raises(RequiredFieldMissingError) as exc_info:
            validate_draft(sample_draft.model_copy(update={"schedule": schedule}))

        assert exc_info.value.missing == ["nights", "checkDays"]

    def test_refund_floor_required_only_when_refundable(self, sample_draft):
        schedule = sample_draft.schedule.model_copy(update={"allow_refundable_after_balance_payment": True})

        with pytest.raises(RequiredFieldMissingError) as exc_info:
            validate_draft(sample_draft.model_copy(update={"schedule": schedule}))

        assert exc_info.value.missing == ["refundFloor"]

    def test_itinerary_days_checked(self, sample_draft, sample_itinerary):
        itinerary = [sample_itinerary[0], sample_itinerary[1].model_copy(update={"title": "", "description": ""})]

        with pytest.raises(RequiredFieldMissingError) as exc_info:
            validate_draft(sample_draft.model_copy(update={"itinerary": itinerary}))

        assert exc_info.value.missing == ["itinerary[2].title", "itinerary[2].description"]

    def test_empty_itinerary_rejected(self, sample_draft):
        with pytest.raises(RequiredFieldMissingError) as exc_info:
            validate_draft(sample_draft.model_copy(update={"itinerary": []}))

        assert exc_info.value.missing == ["itinerary"]

    def test_cover_image_from_upload(self, sample_draft):
        draft = sample_draft.model_copy(update={"tour_img_path": ""})

        with pytest.raises(RequiredFieldMissingError):
            validate_draft(draft)
        validate_draft(draft, has_cover_image=True)


class TestBuildUpdatePayload:
    def test_payload_shape(self, sample_draft, today):
        payload = build_update_payload(sample_draft, "New prices", today)

        tour = payload["updatedTour"]
        assert payload["note"] == "New prices"
        assert tour["tourDuration"] == "3 days 2 nights"
        assert tour["tourIntDuration"] == 3
        assert tour["tourExpirationDate"] == "2025-06-21"
        assert tour["minAdvancedDays"] == 10
        assert tour["tourCheckDays"] == 3
        assert tour["balancePaymentDays"] == 7
        assert tour["amount"] == 20
        assert tour["refundFloor"] == 0
        assert [day["tourContentTitle"] for day in tour["contents"]] == ["Arrival", "Ha Long Bay", "Departure"]
        assert tour["contents"][0]["titleAlignment"] == "left"

    def test_min_advance_recomputed_against_today(self, sample_draft):
        tour = build_update_payload(sample_draft, today=date(2025, 6, 15))["updatedTour"]

        assert tour["minAdvancedDays"] == 5
        assert tour["balancePaymentDays"] == 2

    def test_check_days_kept_within_recomputed_min_advance(self, sample_draft, today):
        schedule = sample_draft.schedule.model_copy(update={
            "expiration_date": date(2025, 6, 4),
            "min_advance_days": 10,
            "check_days": 6,
        })
        draft = sample_draft.model_copy(update={"schedule": schedule})

        tour = build_update_payload(draft, today=today)["updatedTour"]

        assert tour["minAdvancedDays"] == 2
        assert tour["tourCheckDays"] == 2
        assert tour["balancePaymentDays"] == 0

    def test_blank_day_title_defaults_to_position(self, sample_draft, sample_itinerary):
        itinerary = [sample_itinerary[0], sample_itinerary[1].model_copy(update={"title": " "})]
        draft = sample_draft.model_copy(update={"itinerary": itinerary})

        tour = build_update_payload(draft, today=date(2025, 6, 1))["updatedTour"]

        assert tour["contents"][1]["tourContentTitle"] == "Day 2"


class TestSubmissionService:
    @pytest.mark.asyncio
    async def test_submit_sends_multipart_request(self, upstream, sample_draft, today):
        service = SubmissionService(client_factory=upstream.client_factory("Bearer company-token"))

        result = await service.submit("form-1", "42", sample_draft, "Price update", today=today)

        assert result["upstream"] == {"id": 7, "status": "PENDING"}
        request = upstream.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/tour/42/update-request"
        assert request.headers["authorization"] == "Bearer company-token"
        assert upstream.submitted_data() == result["payload"]
        assert not service.is_in_flight("form-1")

    @pytest.mark.asyncio
    async def test_cover_image_uploaded(self, upstream, sample_draft, today):
        service = SubmissionService(client_factory=upstream.client_factory())
        draft = sample_draft.model_copy(update={"tour_img_path": ""})

        await service.submit("form-1", "42", draft, cover_image=("cover.jpg", b"jpeg-bytes", "image/jpeg"), today=today)

        assert upstream.submitted_part("tourImg") == b"jpeg-bytes"
        assert upstream.submitted_data()["updatedTour"]["tourImgPath"] is None

    @pytest.mark.asyncio
    async def test_incomplete_draft_not_sent(self, upstream, sample_draft, today):
        service = SubmissionService(client_factory=upstream.client_factory())

        with pytest.raises(RequiredFieldMissingError):
            await service.submit("form-1", "42", sample_draft.model_copy(update={"tour_name": ""}), today=today)

        assert upstream.requests == []
        assert not service.is_in_flight("form-1")

    @pytest.mark.asyncio
    async def test_upstream_failure_is_retryable(self, upstream, sample_draft, today):
        service = SubmissionService(client_factory=upstream.client_factory())
        upstream.fail_with = 500

        with pytest.raises(UpstreamSubmitError) as exc_info:
            await service.submit("form-1", "42", sample_draft, today=today)

        assert exc_info.value.status_code == 502
        assert exc_info.value.problem_details["retryable"] is True
        assert exc_info.value.problem_details["upstream_status"] == 500
        assert not service.is_in_flight("form-1")

        upstream.fail_with = None
        result = await service.submit("form-1", "42", sample_draft, today=today)
        assert result["upstream"]["id"] == 7

    @pytest.mark.asyncio
    async def test_second_submit_rejected_while_in_flight(self, upstream, sample_draft, today):
        release = asyncio.Event()

        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return upstream.handler(request)

        transport = httpx.MockTransport(slow_handler)
        service = SubmissionService(
            client_factory=lambda: UpdateRequestClient(base_url="http://tour-api.test/api/tour", transport=transport)
        )

        first = asyncio.create_task(service.submit("form-1", "42", sample_draft, today=today))
        while not service.is_in_flight("form-1"):
            await asyncio.sleep(0)

        with pytest.raises(SubmissionInProgressError) as exc_info:
            await service.submit("form-1", "42", sample_draft, today=today)
        assert exc_info.value.status_code == 409

        release.set()
        result = await first

        assert result["upstream"]["id"] == 7
        assert len(upstream.requests) == 1
        assert not service.is_in_flight("form-1")

    @pytest.mark.asyncio
    async def test_other_forms_not_blocked(self, upstream, sample_draft, today):
        release = asyncio.Event()

        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return upstream.handler(request)

        transport = httpx.MockTransport(slow_handler)
        service = SubmissionService(
            client_factory=lambda: UpdateRequestClient(base_url="http://tour-api.test/api/tour", transport=transport)
        )

        first = asyncio.create_task(service.submit("form-1", "42", sample_draft, today=today))
        second = asyncio.create_task(service.submit("form-2", "43", sample_draft, today=today))
        while not (service.is_in_flight("form-1") and service.is_in_flight("form-2")):
            await asyncio.sleep(0)

        release.set()
        await asyncio.gather(first, second)

        assert len(upstream.requests) == 2
