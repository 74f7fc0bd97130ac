"""Tour snapshot, draft and update-request schemas."""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .itinerary import ItineraryDay
from .schedule import ScheduleState


class UpdateRequestStatus(str, Enum):
    """Lifecycle of an update request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class UpdateRequest(BaseModel):
    """
    A proposed replacement for an existing tour, paired with the original.

    Both snapshots are kept exactly as the external API returns them so the
    diff sees the stored representation, HTML and stale derived values included.
    """

    id: Optional[Any] = Field(None, description="Identifier assigned by the external API")
    original_tour: Dict[str, Any] = Field(default_factory=dict, description="Reference state")
    updated_tour: Dict[str, Any] = Field(default_factory=dict, description="Candidate state")
    status: UpdateRequestStatus = Field(UpdateRequestStatus.PENDING, description="Request status")
    note: Optional[str] = Field(None, description="Note left by the requesting company")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }


class TourDraft(BaseModel):
    """The edit form a company fills in before submitting an update request."""

    tour_name: str = Field("", description="Tour name")
    tour_description: str = Field("", description="Rich text or plain description")
    tour_departure_point: str = Field("", description="Departure point")
    tour_vehicle: str = Field("", description="Vehicle")
    tour_type: str = Field("", description="Tour type")
    tour_schedule: str = Field("", description="Free text schedule summary")
    tour_img_path: str = Field("", description="Existing cover image path")
    adult_price: Optional[float] = Field(None, description="Adult price")
    children_price: Optional[float] = Field(None, description="Children price")
    baby_price: Optional[float] = Field(None, description="Baby price")
    schedule: ScheduleState = Field(default_factory=ScheduleState, description="Schedule fields")
    itinerary: List[ItineraryDay] = Field(default_factory=list, description="Itinerary days")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class SubmitUpdateRequest(BaseModel):
    """Request schema for submitting an update request for an existing tour."""

    form_id: str = Field(..., min_length=1, max_length=255, description="Edit form instance identifier")
    tour_id: str = Field(..., min_length=1, max_length=255, description="Tour being edited")
    draft: TourDraft = Field(..., description="Edited tour")
    note: str = Field("", max_length=2000, description="Note for the reviewer")
    today: Optional[date] = Field(None, description="Override for the current UTC date")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class SubmitUpdateResponse(BaseModel):
    """Response after a successful submission."""

    form_id: str
    tour_id: str
    payload: Dict[str, Any] = Field(..., description="Payload sent to the external API")
    upstream: Optional[Any] = Field(None, description="Body returned by the external API")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
