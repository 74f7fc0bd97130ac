"""Semantic diff between an original tour and a proposed replacement."""

import json
import logging
import math
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..core.config import settings
from ..core.observability import metrics_collector
from ..schemas.diff import DayDiff, FieldDiff, TourDiff
from ..schemas.itinerary import TitleAlignment
from ..schemas.tour import UpdateRequest
from .text import derived_min_advance_days, html_to_text, parse_date, parse_duration, utc_today

logger = logging.getLogger(__name__)

# Returns True when the field changed between (original, proposed)
Comparator = Callable[[Mapping[str, Any], Mapping[str, Any], date], bool]

_NUMERIC = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

TRACKED_FIELDS = (
    "tourImgPath",
    "tourName",
    "tourDescription",
    "tourDeparturePoint",
    "tourDuration",
    "tourIntDuration",
    "adultPrice",
    "childrenPrice",
    "babyPrice",
    "amount",
    "tourExpirationDate",
    "minAdvancedDays",
    "tourCheckDays",
    "balancePaymentDays",
    "depositPercentage",
    "refundFloor",
    "tourVehicle",
    "tourType",
    "tourSchedule",
)

def canonical(value: Any) -> Any:
    """
    Reduce a stored value to a comparable form.

    Strings are trimmed, numeric strings and numbers become Decimals, empty
    strings become None, and containers become canonical JSON.
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
        # NaN never equals itself and infinities cannot become ints
        return number if number.is_finite() else str(number)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if _NUMERIC.match(text):
            try:
                number = Decimal(text)
                return number if number.is_finite() else text
            except InvalidOperation:
                return text
        return text
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)
    return str(value)


def display(value: Any) -> Any:
    """Proposed value as shown to a reviewer; non-finite floats become text so it stays valid JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, Mapping):
        return {key: display(item) for key, item in value.items()}
    if isinstance(value, list):
        return [display(item) for item in value]
    return value


def _number(value: Any) -> Optional[int]:
    value = canonical(value)
    if isinstance(value, Decimal) and value.is_finite():
        return int(value)
    return None


def scalar(name: str) -> Comparator:
    def compare(original: Mapping[str, Any], proposed: Mapping[str, Any], today: date) -> bool:
        return canonical(original.get(name)) != canonical(proposed.get(name))
    return compare


def _expiration_changed(original: Mapping[str, Any], proposed: Mapping[str, Any], today: date) -> bool:
    before = parse_date(original.get("tourExpirationDate"))
    after = parse_date(proposed.get("tourExpirationDate"))
    if before is not None and after is not None:
        return before != after
    return scalar("tourExpirationDate")(original, proposed, today)


def _int_duration_changed(original: Mapping[str, Any], proposed: Mapping[str, Any], today: date) -> bool:
    before = parse_duration(original.get("tourDuration")).int_duration
    after = parse_duration(proposed.get("tourDuration")).int_duration
    return before != after


def _min_advance_changed(original: Mapping[str, Any], proposed: Mapping[str, Any], today: date) -> bool:
    # The stored number is recomputed from the date, so only a date change counts
    if not _expiration_changed(original, proposed, today):
        return False
    before = derived_min_advance_days(original.get("tourExpirationDate"), today)
    after = derived_min_advance_days(proposed.get("tourExpirationDate"), today)
    return before != after


def effective_min_advance_days(tour: Mapping[str, Any], today: date) -> int:
    derived = derived_min_advance_days(tour.get("tourExpirationDate"), today)
    if derived is not None:
        return derived
    return _number(tour.get("minAdvancedDays")) or 0


def effective_balance_payment_days(tour: Mapping[str, Any], today: date) -> int:
    check = _number(tour.get("tourCheckDays")) or 0
    return max(0, effective_min_advance_days(tour, today) - check)


def _balance_changed(original: Mapping[str, Any], proposed: Mapping[str, Any], today: date) -> bool:
    return effective_balance_payment_days(original, today) != effective_balance_payment_days(proposed, today)


def _description_changed(original: Mapping[str, Any], proposed: Mapping[str, Any], today: date) -> bool:
    return html_to_text(original.get("tourDescription")) != html_to_text(proposed.get("tourDescription"))


def _never_changed(original: Mapping[str, Any], proposed: Mapping[str, Any], today: date) -> bool:
    return False


DEFAULT_RULES: Dict[str, Comparator] = {
    "tourIntDuration": _int_duration_changed,
    "tourExpirationDate": _expiration_changed,
    "minAdvancedDays": _min_advance_changed,
    "balancePaymentDays": _balance_changed,
    "tourDescription": _description_changed,
    # Set by platform policy; the company cannot edit it
    "refundFloor": _never_changed,
}


def canonical_day(day: Mapping[str, Any]) -> Dict[str, Any]:
    """Comparable form of one itinerary entry, stored or form-shaped."""
    title = day.get("tourContentTitle", day.get("title"))
    description = day.get("tourContentDescription", day.get("description"))
    color = canonical(day.get("dayColor")) or settings.default_day_color
    alignment = canonical(day.get("titleAlignment")) or TitleAlignment.LEFT.value
    return {
        "title": canonical(title),
        "description": html_to_text(description),
        "images": [str(image) for image in (day.get("images") or [])],
        "dayColor": str(color).lower(),
        "titleAlignment": str(alignment).lower(),
    }


def _contents(tour: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    contents = tour.get("contents")
    if not isinstance(contents, list):
        return []
    return [day if isinstance(day, Mapping) else {} for day in contents]


def _as_mapping(tour: Any) -> Mapping[str, Any]:
    if tour is None:
        return {}
    if hasattr(tour, "model_dump"):
        return tour.model_dump(by_alias=True)
    return tour


class TourDiffReconciler:
    """
    Decides which tour fields changed in meaning between two snapshots.

    Each tracked field is compared by a rule from a table; fields without a
    rule use plain inequality after canonicalisation. Itinerary days are
    aligned by position.
    """

    def __init__(self, rules: Optional[Mapping[str, Comparator]] = None, fields=TRACKED_FIELDS):
        self.rules: Dict[str, Comparator] = dict(DEFAULT_RULES)
        if rules:
            self.rules.update(rules)
        self.fields = tuple(fields)

    def diff(self, original: Any, proposed: Any, today: Optional[date] = None) -> TourDiff:
        """
        Compare two tour snapshots.

        Args:
            original: Reference snapshot (mapping with external field names)
            proposed: Candidate snapshot
            today: Current UTC date for date-derived fields

        Returns:
            TourDiff with one verdict per tracked field and per itinerary day
        """
        original = _as_mapping(original)
        proposed = _as_mapping(proposed)
        today = today or utc_today()

        fields: Dict[str, FieldDiff] = {}
        for name in self.fields:
            compare = self.rules.get(name) or scalar(name)
            changed = compare(original, proposed, today)
            fields[name] = FieldDiff(
                changed=changed,
                display_value=display(proposed.get(name)) if changed else None,
            )

        result = TourDiff(fields=fields, itinerary=self._diff_itinerary(original, proposed))
        changed_fields = result.changed_fields

        logger.info(
            "Tour diff computed",
            extra={"changed_fields": changed_fields, "changed_count": len(changed_fields)}
        )
        metrics_collector.record_diff(changed_fields)
        return result

    def diff_update_request(self, request: UpdateRequest, today: Optional[date] = None) -> TourDiff:
        return self.diff(request.original_tour, request.updated_tour, today)

    @staticmethod
    def _diff_itinerary(original: Mapping[str, Any], proposed: Mapping[str, Any]) -> List[DayDiff]:
        before = _contents(original)
        after = _contents(proposed)
        days: List[DayDiff] = []
        for index in range(max(len(before), len(after))):
            old = before[index] if index < len(before) else None
            new = after[index] if index < len(after) else None
            if old is None or new is None:
                changed = True
            else:
                changed = canonical_day(old) != canonical_day(new)
            days.append(DayDiff(
                index=index,
                changed=changed,
                display_value=display(dict(new)) if changed and new is not None else None,
            ))
        return days


_default_reconciler = TourDiffReconciler()


def diff_tours(original: Any, proposed: Any, today: Optional[date] = None) -> TourDiff:
    """Diff two snapshots with the default rule table."""
    return _default_reconciler.diff(original, proposed, today)
