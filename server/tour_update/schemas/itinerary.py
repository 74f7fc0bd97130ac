"""Itinerary day schemas."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from ..core.config import settings


class TitleAlignment(str, Enum):
    """Alignment of a day title."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ItineraryDay(BaseModel):
    """One day of a tour itinerary."""

    day_number: int = Field(1, ge=1, description="Position in the itinerary, starting at 1")
    title: str = Field("", description="Day title")
    description: str = Field("", description="Rich text description")
    images: List[str] = Field(default_factory=list, description="Ordered image asset references")
    day_color: str = Field(
        default_factory=lambda: settings.default_day_color, description="Accent colour for the day"
    )
    title_alignment: TitleAlignment = Field(TitleAlignment.LEFT, description="Title alignment")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class ItineraryEditRequest(BaseModel):
    """Request schema for positional itinerary edits."""

    days: List[ItineraryDay] = Field(default_factory=list, description="Current itinerary")
    index: int = Field(0, description="Index the edit applies to")


class ItineraryResponse(BaseModel):
    """Itinerary after an edit."""

    days: List[ItineraryDay]
