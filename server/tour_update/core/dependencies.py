"""FastAPI dependencies for the editing services and the external tour API."""

from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Header

from ..services.diff_reconciler import TourDiffReconciler
from ..services.itinerary_editor import ItineraryListEditor
from ..services.schedule_resolver import ScheduleConstraintResolver
from ..services.submission import SubmissionService
from ..services.update_request_client import UpdateRequestClient


def get_schedule_resolver() -> ScheduleConstraintResolver:
    return ScheduleConstraintResolver()


def get_itinerary_editor() -> ItineraryListEditor:
    return ItineraryListEditor()


def get_reconciler() -> TourDiffReconciler:
    return TourDiffReconciler()


@lru_cache
def get_submission_service() -> SubmissionService:
    """
    Process-wide submission service.

    A single instance holds the in-flight guard, so it must be shared by
    every request.
    """
    return SubmissionService()


async def get_authorization(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Optional[str]:
    """
    Caller's Authorization header, forwarded untouched to the external API.

    Authentication is enforced by the external API, not here.
    """
    return authorization


def get_update_request_client_factory(
    authorization: Optional[str] = Depends(get_authorization),
) -> Callable[[], UpdateRequestClient]:
    """Factory for clients that carry the caller's credentials."""
    return lambda: UpdateRequestClient(authorization=authorization)


ScheduleResolver = Depends(get_schedule_resolver)
ItineraryEditor = Depends(get_itinerary_editor)
Reconciler = Depends(get_reconciler)
Submissions = Depends(get_submission_service)
UpdateRequestClientFactory = Depends(get_update_request_client_factory)
