"""Submit-time validation, payload building and the single in-flight submit guard."""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Set

import structlog

from ..core.exceptions import RequiredFieldMissingError, SubmissionInProgressError, UpstreamSubmitError
from ..core.observability import metrics_collector
from ..schemas.tour import TourDraft
from .schedule_resolver import balance_payment_days, int_duration
from .text import format_duration, html_to_text, lead_days, utc_today
from .update_request_client import CoverImage, UpdateRequestClient, UpdateRequestClientError

logger = logging.getLogger(__name__)
audit_logger = structlog.get_logger(__name__)

ClientFactory = Callable[[], UpdateRequestClient]


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def validate_draft(draft: TourDraft, has_cover_image: bool = False) -> None:
    """
    Check every required field and report all problems together.

    Raises:
        RequiredFieldMissingError: Listing each missing or invalid field
    """
    missing: List[str] = []

    for label, value in (
        ("tourName", draft.tour_name),
        ("tourDescription", html_to_text(draft.tour_description)),
        ("tourDeparturePoint", draft.tour_departure_point),
        ("tourVehicle", draft.tour_vehicle),
        ("tourType", draft.tour_type),
        ("tourSchedule", draft.tour_schedule),
    ):
        if _blank(value):
            missing.append(label)

    schedule = draft.schedule
    if schedule.max_capacity is None or schedule.max_capacity < 1:
        missing.append("amount")
    for label, price in (
        ("adultPrice", draft.adult_price),
        ("childrenPrice", draft.children_price),
        ("babyPrice", draft.baby_price),
    ):
        if price is None or price < 0:
            missing.append(label)

    for label, value in (
        ("durationDays", schedule.duration_days),
        ("nights", schedule.nights),
        ("expirationDate", schedule.expiration_date),
        ("minAdvanceDays", schedule.min_advance_days),
        ("checkDays", schedule.check_days),
        ("balancePaymentDays", schedule.balance_payment_days),
        ("depositPercentage", schedule.deposit_percentage),
    ):
        if value is None:
            missing.append(label)

    if schedule.allow_refundable_after_balance_payment and schedule.refund_floor is None:
        missing.append("refundFloor")

    if not draft.itinerary:
        missing.append("itinerary")
    for position, day in enumerate(draft.itinerary, start=1):
        if _blank(day.title):
            missing.append(f"itinerary[{position}].title")
        if _blank(html_to_text(day.description)):
            missing.append(f"itinerary[{position}].description")
        if _blank(day.day_color):
            missing.append(f"itinerary[{position}].dayColor")

    if _blank(draft.tour_img_path) and not has_cover_image:
        missing.append("coverImage")

    if missing:
        logger.warning("Update request draft incomplete", extra={"missing": missing})
        raise RequiredFieldMissingError(missing)


def build_update_payload(draft: TourDraft, note: str = "", today: Optional[date] = None) -> Dict[str, Any]:
    """
    Serialize a draft into the external update-request payload.

    Derived fields are recomputed rather than trusted, so the stored request
    always carries consistent values.
    """
    schedule = draft.schedule
    days = schedule.duration_days or 0
    nights = schedule.nights or 0

    min_advance = schedule.min_advance_days
    if min_advance is not None and schedule.expiration_date is not None:
        lead = lead_days(schedule.expiration_date, today or utc_today())
        if min_advance >= lead:
            min_advance = max(0, lead - 1)
    check = schedule.check_days
    if check is not None and min_advance is not None:
        check = min(check, min_advance)

    updated_tour: Dict[str, Any] = {
        "tourName": draft.tour_name.strip(),
        "tourDescription": draft.tour_description,
        "tourDuration": format_duration(days, nights),
        "tourIntDuration": int_duration(days, nights),
        "tourDeparturePoint": draft.tour_departure_point.strip(),
        "tourVehicle": draft.tour_vehicle.strip(),
        "tourType": draft.tour_type.strip(),
        "tourSchedule": draft.tour_schedule,
        "tourImgPath": draft.tour_img_path or None,
        "amount": schedule.max_capacity,
        "adultPrice": draft.adult_price,
        "childrenPrice": draft.children_price,
        "babyPrice": draft.baby_price,
        "tourExpirationDate": schedule.expiration_date.isoformat() if schedule.expiration_date else None,
        "minAdvancedDays": min_advance,
        "tourCheckDays": check or 0,
        "balancePaymentDays": balance_payment_days(min_advance, check),
        "depositPercentage": schedule.deposit_percentage or 0,
        "allowRefundableAfterBalancePayment": schedule.allow_refundable_after_balance_payment,
        "refundFloor": schedule.refund_floor if schedule.allow_refundable_after_balance_payment else 0,
        "contents": [
            {
                "tourContentTitle": day.title.strip() or f"Day {position}",
                "tourContentDescription": day.description,
                "images": list(day.images),
                "dayColor": day.day_color,
                "titleAlignment": day.title_alignment.value,
            }
            for position, day in enumerate(draft.itinerary, start=1)
        ],
    }
    return {"updatedTour": updated_tour, "note": note}


class SubmissionService:
    """
    Submits update requests with at most one in-flight submit per form instance.

    The guard is released whether the submit succeeds or fails, so a failed
    submit leaves the form editable and retryable.
    """

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        self.client_factory = client_factory or UpdateRequestClient
        self._in_flight: Set[str] = set()

    def is_in_flight(self, form_id: str) -> bool:
        return form_id in self._in_flight

    async def submit(
        self,
        form_id: str,
        tour_id: str,
        draft: TourDraft,
        note: str = "",
        cover_image: Optional[CoverImage] = None,
        today: Optional[date] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> Dict[str, Any]:
        """
        Validate, serialize and send an update request.

        Returns:
            Dict with the sent payload and the external API's response body

        Raises:
            SubmissionInProgressError: If this form already has a submit in flight
            RequiredFieldMissingError: If the draft is incomplete
            UpstreamSubmitError: If the external API fails
        """
        log = audit_logger.bind(form_id=form_id, tour_id=tour_id)
        if form_id in self._in_flight:
            log.warning("duplicate_submit_rejected")
            metrics_collector.record_submission("duplicate")
            raise SubmissionInProgressError(form_id)

        validate_draft(draft, has_cover_image=cover_image is not None)
        payload = build_update_payload(draft, note, today)

        self._in_flight.add(form_id)
        try:
            async with (client_factory or self.client_factory)() as client:
                upstream = await client.create_update_request(tour_id, payload, cover_image)
        except UpdateRequestClientError as e:
            log.error("update_request_submit_failed", upstream_status=e.status_code, error=str(e))
            metrics_collector.record_submission("failed")
            raise UpstreamSubmitError(upstream_status=e.status_code) from e
        finally:
            self._in_flight.discard(form_id)

        log.info("update_request_submitted", note_length=len(note))
        metrics_collector.record_submission("submitted")
        return {"payload": payload, "upstream": upstream}
