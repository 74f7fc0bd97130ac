"""Test configuration and fixtures."""

import json
from datetime import date
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient

from tour_update.schemas.itinerary import ItineraryDay
from tour_update.schemas.schedule import ScheduleState
from tour_update.schemas.tour import TourDraft
from tour_update.services.update_request_client import UpdateRequestClient

TODAY = date(2025, 6, 1)
API_URL = "http://tour-api.test/api/tour"


@pytest.fixture
def today():
    """Fixed current date so lead-day arithmetic is deterministic."""
    return TODAY


@pytest.fixture
def sample_schedule():
    """A consistent schedule: 3 days 2 nights, bookable until 2025-06-21."""
    return ScheduleState(
        duration_days=3,
        nights=2,
        int_duration=3,
        expiration_date=date(2025, 6, 21),
        min_advance_days=10,
        check_days=3,
        balance_payment_days=7,
        deposit_percentage=30,
        refund_floor=None,
        allow_refundable_after_balance_payment=False,
        max_capacity=20,
    )


@pytest.fixture
def sample_itinerary():
    return [
        ItineraryDay(day_number=1, title="Arrival", description="<p>Check in at the hotel</p>"),
        ItineraryDay(day_number=2, title="Ha Long Bay", description="<p>Cruise</p><p>Kayaking</p>"),
        ItineraryDay(day_number=3, title="Departure", description="Transfer to the airport"),
    ]


@pytest.fixture
def sample_draft(sample_schedule, sample_itinerary):
    """A complete draft that passes submit validation."""
    return TourDraft(
        tour_name="Ha Long Bay Explorer",
        tour_description="<p>Three days on the bay</p>",
        tour_departure_point="Hanoi",
        tour_vehicle="Bus",
        tour_type="Domestic",
        tour_schedule="Day 1 arrival, day 2 cruise, day 3 departure",
        tour_img_path="/uploads/halong.jpg",
        adult_price=250.0,
        children_price=180.0,
        baby_price=0.0,
        schedule=sample_schedule,
        itinerary=sample_itinerary,
    )


@pytest.fixture
def sample_original_tour():
    """A tour as the external API stores it."""
    return {
        "tourId": 42,
        "tourImgPath": "/uploads/halong.jpg",
        "tourName": "Ha Long Bay Explorer",
        "tourDescription": "<p>Three days on the bay</p>",
        "tourDeparturePoint": "Hanoi",
        "tourDuration": "3 days 2 nights",
        "tourIntDuration": 3,
        "adultPrice": 250.0,
        "childrenPrice": 180.0,
        "babyPrice": 0,
        "amount": 20,
        "tourExpirationDate": "2025-06-21T00:00:00",
        "minAdvancedDays": 10,
        "tourCheckDays": 3,
        "balancePaymentDays": 7,
        "depositPercentage": 30,
        "refundFloor": 50,
        "tourVehicle": "Bus",
        "tourType": "Domestic",
        "tourSchedule": "Day 1 arrival, day 2 cruise, day 3 departure",
        "contents": [
            {
                "tourContentTitle": "Arrival",
                "tourContentDescription": "<p>Check in at the hotel</p>",
                "images": [],
                "dayColor": "#10b981",
                "titleAlignment": "left",
            },
            {
                "tourContentTitle": "Ha Long Bay",
                "tourContentDescription": "<p>Cruise</p><p>Kayaking</p>",
                "images": ["/uploads/cruise.jpg"],
                "dayColor": "#10B981",
                "titleAlignment": "left",
            },
        ],
    }


class UpstreamStub:
    """Records calls to the external update-request endpoints and answers them."""

    def __init__(self):
        self.requests = []
        self.pending = []
        self.fail_with = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "upstream failure"})
        if request.method == "GET" and request.url.path.endswith("/update-requests/pending"):
            return httpx.Response(200, json=self.pending)
        if request.method == "POST" and request.url.path.endswith("/update-request"):
            return httpx.Response(200, json={"id": 7, "status": "PENDING"})
        return httpx.Response(404, json={"message": "not found"})

    def client_factory(self, authorization=None):
        transport = httpx.MockTransport(self.handler)
        return lambda: UpdateRequestClient(base_url=API_URL, authorization=authorization, transport=transport)

    def submitted_part(self, name: str, index: int = -1) -> bytes:
        """Raw content of one part of a recorded multipart submit."""
        request = self.requests[index]
        boundary = request.headers["content-type"].split("boundary=", 1)[1].encode()
        for part in request.read().split(b"--" + boundary):
            headers, _, content = part.partition(b"\r\n\r\n")
            if f'name="{name}"'.encode() in headers:
                return content.rstrip(b"\r\n")
        raise KeyError(name)

    def submitted_data(self, index: int = -1) -> dict:
        return json.loads(self.submitted_part("data", index).decode("utf-8"))


@pytest.fixture
def upstream():
    return UpstreamStub()


@pytest_asyncio.fixture(scope="function")
async def test_app(upstream):
    """Application with the external tour API replaced by a stub."""
    from tour_update.core.dependencies import (
        get_authorization,
        get_submission_service,
        get_update_request_client_factory,
    )
    from tour_update.main import create_app
    from tour_update.services.submission import SubmissionService

    app = create_app()

    def override_client_factory(authorization: Optional[str] = Depends(get_authorization)):
        return upstream.client_factory(authorization)

    submissions = SubmissionService()
    app.dependency_overrides[get_update_request_client_factory] = override_client_factory
    app.dependency_overrides[get_submission_service] = lambda: submissions

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
