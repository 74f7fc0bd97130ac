"""Update request router: diffs for review and submission of edited tours."""

import logging
from typing import Callable, List

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import Reconciler, Submissions, UpdateRequestClientFactory
from ..core.exceptions import UpstreamSubmitError
from ..schemas.common import Problem
from ..schemas.diff import DiffRequest, DiffResponse, PendingUpdateRequest
from ..schemas.tour import SubmitUpdateRequest, SubmitUpdateResponse
from ..services.diff_reconciler import TourDiffReconciler
from ..services.submission import SubmissionService
from ..services.update_request_client import UpdateRequestClient, UpdateRequestClientError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/update-request", tags=["update-request"])


@router.post("/diff", response_model=DiffResponse)
async def diff_update_request(
    request: DiffRequest,
    reconciler: TourDiffReconciler = Reconciler,
) -> JSONResponse:
    """Mark which fields and itinerary days of ``updatedTour`` differ in meaning from ``originalTour``."""
    diff = reconciler.diff(request.original_tour, request.updated_tour)
    response_data = DiffResponse(diff=diff, changed_fields=diff.changed_fields)
    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json", by_alias=True)
    )


@router.get("/pending", response_model=List[PendingUpdateRequest], responses={502: {"model": Problem}})
async def list_pending(
    reconciler: TourDiffReconciler = Reconciler,
    client_factory: Callable[[], UpdateRequestClient] = UpdateRequestClientFactory,
) -> JSONResponse:
    """Pending update requests from the tour API, each with its diff."""
    try:
        async with client_factory() as client:
            requests = await client.list_pending_update_requests()
    except UpdateRequestClientError as e:
        logger.error("Failed to load pending update requests", extra={"error": str(e)})
        raise UpstreamSubmitError(
            detail="Pending update requests could not be loaded, please try again",
            upstream_status=e.status_code,
        ) from e

    items = []
    for update_request in requests:
        diff = reconciler.diff_update_request(update_request)
        items.append(
            PendingUpdateRequest(
                request=update_request,
                diff=diff,
                changed_fields=diff.changed_fields,
            ).model_dump(mode="json", by_alias=True)
        )

    logger.info("Pending update requests listed", extra={"count": len(items)})
    return JSONResponse(status_code=200, content=items)


@router.post(
    "/submit",
    response_model=SubmitUpdateResponse,
    responses={409: {"model": Problem}, 422: {"model": Problem}, 502: {"model": Problem}},
)
async def submit_update_request(
    request: SubmitUpdateRequest,
    submissions: SubmissionService = Submissions,
    client_factory: Callable[[], UpdateRequestClient] = UpdateRequestClientFactory,
) -> JSONResponse:
    """
    Validate a draft and submit it as an update request.

    Only one submit per ``formId`` may be in flight; a second one is rejected
    with 409 until the first completes.
    """
    result = await submissions.submit(
        form_id=request.form_id,
        tour_id=request.tour_id,
        draft=request.draft,
        note=request.note,
        today=request.today,
        client_factory=client_factory,
    )
    response_data = SubmitUpdateResponse(
        form_id=request.form_id,
        tour_id=request.tour_id,
        payload=result["payload"],
        upstream=result["upstream"],
    )
    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json", by_alias=True)
    )
