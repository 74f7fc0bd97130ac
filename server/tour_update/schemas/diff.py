"""Diff result schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .tour import UpdateRequest


class FieldDiff(BaseModel):
    """Verdict for one tracked tour field."""

    changed: bool = Field(..., description="Whether the field changed semantically")
    display_value: Optional[Any] = Field(None, description="Proposed value, only when changed")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class DayDiff(BaseModel):
    """Verdict for one itinerary position."""

    index: int = Field(..., ge=0, description="Position in the itinerary")
    changed: bool = Field(..., description="Whether the day changed semantically")
    display_value: Optional[Dict[str, Any]] = Field(None, description="Proposed day, only when changed")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class TourDiff(BaseModel):
    """Per-field and per-day verdicts for an original/proposed tour pair."""

    fields: Dict[str, FieldDiff] = Field(default_factory=dict)
    itinerary: List[DayDiff] = Field(default_factory=list)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def changed_fields(self) -> List[str]:
        """Names of changed fields; itinerary days appear as ``contents.<index>``."""
        names = sorted(name for name, verdict in self.fields.items() if verdict.changed)
        names.extend(f"contents.{day.index}" for day in self.itinerary if day.changed)
        return names

    def is_changed(self, name: str) -> bool:
        verdict = self.fields.get(name)
        return bool(verdict and verdict.changed)


class DiffRequest(BaseModel):
    """Request schema for diffing two tour snapshots."""

    original_tour: Dict[str, Any] = Field(default_factory=dict, description="Reference state")
    updated_tour: Dict[str, Any] = Field(default_factory=dict, description="Candidate state")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class DiffResponse(BaseModel):
    """Diff plus the list of changed field names."""

    diff: TourDiff
    changed_fields: List[str]

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class PendingUpdateRequest(BaseModel):
    """A pending update request with its diff."""

    request: UpdateRequest
    diff: TourDiff
    changed_fields: List[str]

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
