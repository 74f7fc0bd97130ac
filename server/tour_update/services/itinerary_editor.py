"""Positional editing of itinerary days."""

import logging
from typing import Any, List, Optional, Sequence

from ..core.config import settings
from ..core.exceptions import ItineraryFloorViolationError, ItineraryIndexError
from ..schemas.itinerary import ItineraryDay

logger = logging.getLogger(__name__)

MIN_DAYS = 1


class ItineraryListEditor:
    """
    Ordered list of itinerary days.

    Day numbers are positional and recomputed after every insert or removal.
    Inputs are never mutated; each operation returns a new list.
    """

    def __init__(self, default_day_color: Optional[str] = None):
        self.default_day_color = default_day_color or settings.default_day_color

    def new_day(self, day_number: int = 1) -> ItineraryDay:
        return ItineraryDay(day_number=day_number, day_color=self.default_day_color)

    @staticmethod
    def renumber(days: Sequence[ItineraryDay]) -> List[ItineraryDay]:
        """Set every day number to its position plus one."""
        return [
            day if day.day_number == position else day.model_copy(update={"day_number": position})
            for position, day in enumerate(days, start=1)
        ]

    def insert_after(self, days: Sequence[ItineraryDay], index: int) -> List[ItineraryDay]:
        """
        Insert an empty day right after ``index``.

        Raises:
            ItineraryIndexError: If index does not address an existing day
        """
        self._check_index(days, index)
        updated = list(days)
        updated.insert(index + 1, self.new_day())
        logger.debug("Itinerary day inserted", extra={"after_index": index, "length": len(updated)})
        return self.renumber(updated)

    def append(self, days: Sequence[ItineraryDay]) -> List[ItineraryDay]:
        """Add an empty day at the end; creates the first day of an empty itinerary."""
        if not days:
            return [self.new_day()]
        return self.insert_after(days, len(days) - 1)

    def remove_at(self, days: Sequence[ItineraryDay], index: int) -> List[ItineraryDay]:
        """
        Remove the day at ``index``.

        Raises:
            ItineraryFloorViolationError: If the itinerary has one day or fewer
            ItineraryIndexError: If index does not address an existing day
        """
        if len(days) <= MIN_DAYS:
            logger.warning(
                "Itinerary removal rejected - last day",
                extra={"index": index, "length": len(days)}
            )
            raise ItineraryFloorViolationError(length=len(days), minimum=MIN_DAYS)
        self._check_index(days, index)
        updated = [day for position, day in enumerate(days) if position != index]
        logger.debug("Itinerary day removed", extra={"index": index, "length": len(updated)})
        return self.renumber(updated)

    def update_day(self, days: Sequence[ItineraryDay], index: int, **changes: Any) -> List[ItineraryDay]:
        """Replace fields of one day, keeping its position."""
        self._check_index(days, index)
        changes.pop("day_number", None)
        updated = list(days)
        updated[index] = ItineraryDay.model_validate(
            {**updated[index].model_dump(), **changes}
        )
        return self.renumber(updated)

    @staticmethod
    def _check_index(days: Sequence[ItineraryDay], index: int) -> None:
        if not 0 <= index < len(days):
            raise ItineraryIndexError(index=index, length=len(days))
