"""Service layer package."""

from .diff_reconciler import TourDiffReconciler, diff_tours
from .itinerary_editor import ItineraryListEditor
from .schedule_resolver import ScheduleConstraintResolver
from .submission import SubmissionService, build_update_payload, validate_draft
from .update_request_client import UpdateRequestClient, UpdateRequestClientError

__all__ = [
    "ItineraryListEditor",
    "ScheduleConstraintResolver",
    "SubmissionService",
    "TourDiffReconciler",
    "UpdateRequestClient",
    "UpdateRequestClientError",
    "build_update_payload",
    "diff_tours",
    "validate_draft",
]
