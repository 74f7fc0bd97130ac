"""Itinerary router for positional day edits."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import ItineraryEditor
from ..schemas.common import Problem
from ..schemas.itinerary import ItineraryEditRequest, ItineraryResponse
from ..services.itinerary_editor import ItineraryListEditor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/itinerary", tags=["itinerary"])


def _respond(days) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content=ItineraryResponse(days=days).model_dump(mode="json", by_alias=True)
    )


@router.post("/insert-after", response_model=ItineraryResponse, responses={404: {"model": Problem}})
async def insert_after(
    request: ItineraryEditRequest,
    editor: ItineraryListEditor = ItineraryEditor,
) -> JSONResponse:
    """Insert an empty day right after ``index``."""
    return _respond(editor.insert_after(request.days, request.index))


@router.post(
    "/remove",
    response_model=ItineraryResponse,
    responses={404: {"model": Problem}, 409: {"model": Problem}},
)
async def remove(
    request: ItineraryEditRequest,
    editor: ItineraryListEditor = ItineraryEditor,
) -> JSONResponse:
    """
    Remove the day at ``index``.

    The last remaining day cannot be removed.
    """
    return _respond(editor.remove_at(request.days, request.index))


@router.post("/append", response_model=ItineraryResponse)
async def append(
    request: ItineraryEditRequest,
    editor: ItineraryListEditor = ItineraryEditor,
) -> JSONResponse:
    return _respond(editor.append(request.days))
