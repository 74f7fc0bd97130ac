"""Schedule router: constraint resolution for duration, booking window and pricing fields."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import ScheduleResolver
from ..schemas.common import Problem
from ..schemas.schedule import (
    AllowedNightsRequest,
    AllowedNightsResponse,
    EditOutcome,
    ScheduleEditRequest,
)
from ..services.schedule_resolver import ScheduleConstraintResolver, allowed_nights, nights_range

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/schedule", tags=["schedule"])


@router.post("/edit", response_model=EditOutcome, responses={422: {"model": Problem}})
async def edit_schedule(
    request: ScheduleEditRequest,
    resolver: ScheduleConstraintResolver = ScheduleResolver,
) -> JSONResponse:
    """
    Apply one field edit to a schedule snapshot.

    Out-of-range values are snapped and reported in ``warnings``; an unusable
    expiration date is rejected with a 422 Problem Details response.
    """
    outcome = resolver.apply_edit(request.state, request.field, request.value, request.today)
    return JSONResponse(
        status_code=200,
        content=outcome.model_dump(mode="json", by_alias=True)
    )


@router.post("/allowed-nights", response_model=AllowedNightsResponse)
async def get_allowed_nights(request: AllowedNightsRequest) -> JSONResponse:
    """Allowed nights and the suggested default for a duration."""
    bounds = nights_range(request.duration_days)
    response_data = AllowedNightsResponse(
        allowed=list(allowed_nights(request.duration_days)),
        min=bounds.min,
        max=bounds.max,
        suggest=bounds.suggest,
    )
    return JSONResponse(status_code=200, content=response_data.model_dump())
