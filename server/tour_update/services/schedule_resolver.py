"""Constraint resolution for the interdependent schedule fields of a tour form."""

import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from ..core.config import settings
from ..core.exceptions import InvalidDateError
from ..core.observability import metrics_collector
from ..schemas.schedule import (
    EditOutcome,
    FieldWarning,
    ScheduleField,
    ScheduleState,
)
from .text import lead_days, parse_date, parse_numeric, utc_today

logger = logging.getLogger(__name__)

_ATTRIBUTES: Dict[ScheduleField, str] = {
    ScheduleField.DURATION_DAYS: "duration_days",
    ScheduleField.NIGHTS: "nights",
    ScheduleField.EXPIRATION_DATE: "expiration_date",
    ScheduleField.MIN_ADVANCE_DAYS: "min_advance_days",
    ScheduleField.CHECK_DAYS: "check_days",
    ScheduleField.BALANCE_PAYMENT_DAYS: "balance_payment_days",
    ScheduleField.DEPOSIT_PERCENTAGE: "deposit_percentage",
    ScheduleField.REFUND_FLOOR: "refund_floor",
    ScheduleField.MAX_CAPACITY: "max_capacity",
}


class NightsRange(NamedTuple):
    min: int
    max: int
    suggest: int


def allowed_nights(duration_days: int) -> Tuple[int, ...]:
    """
    Nights a tour of ``duration_days`` may have, ascending.

    Zero days allows exactly one night; otherwise one night fewer, equal, or
    one more than the number of days.
    """
    d = max(0, duration_days)
    if d == 0:
        return (1,)
    return (d - 1, d, d + 1)


def nights_range(duration_days: int) -> NightsRange:
    d = max(0, duration_days)
    if d == 0:
        return NightsRange(1, 1, 1)
    low = max(0, d - 1)
    return NightsRange(low, d + 1, low)


def resolve_nights(duration_days: int, nights: int) -> int:
    """
    Snap ``nights`` to the nearest allowed value.

    Ties go to the value that comes first in ascending order.
    """
    return min(allowed_nights(duration_days), key=lambda choice: abs(choice - nights))


def int_duration(duration_days: Optional[int], nights: Optional[int]) -> Optional[int]:
    if duration_days is None and nights is None:
        return None
    return max(duration_days or 0, nights or 0)


def balance_payment_days(min_advance_days: Optional[int], check_days: Optional[int]) -> int:
    if min_advance_days is None:
        return 0
    return max(0, min_advance_days - (check_days or 0))


class _Edit:
    """Working copy of a snapshot while one edit is resolved."""

    def __init__(self, state: ScheduleState, today: date):
        self.state = state
        self.today = today
        self.values: Dict[str, Any] = {}
        self.warnings: List[FieldWarning] = []
        self.cleared: List[ScheduleField] = []

    def get(self, field: ScheduleField) -> Any:
        name = _ATTRIBUTES[field]
        if name in self.values:
            return self.values[name]
        return getattr(self.state, name)

    def set(self, field: ScheduleField, value: Any) -> None:
        self.values[_ATTRIBUTES[field]] = value

    def clear(self, field: ScheduleField) -> None:
        if field not in self.cleared:
            self.cleared.append(field)

    def adjust(self, field: ScheduleField, requested: int, applied: int) -> int:
        """Store ``applied`` and report it when it differs from what was asked for."""
        if applied != requested:
            self.warnings.append(FieldWarning(field=field, requested=requested, applied=applied))
        self.set(field, applied)
        return applied

    def clamp(
        self,
        field: ScheduleField,
        requested: int,
        low: int,
        high: Optional[int] = None,
    ) -> int:
        applied = max(low, requested)
        if high is not None:
            applied = min(high, applied)
        return self.adjust(field, requested, applied)

    def outcome(self) -> EditOutcome:
        return EditOutcome(
            state=self.state.model_copy(update=self.values),
            warnings=self.warnings,
            cleared=self.cleared,
        )


class ScheduleConstraintResolver:
    """
    Keeps duration, booking window and pricing fields consistent while one of
    them is edited.

    Every edit is resolved against an immutable snapshot and produces a new
    snapshot; nothing is partially applied. Out-of-range values are snapped and
    reported as warnings; only an unusable expiration date is an error.
    """

    def __init__(self, max_days: Optional[int] = None, max_capacity: Optional[int] = None):
        self.max_days = max_days if max_days is not None else settings.max_schedule_days
        self.max_capacity = max_capacity if max_capacity is not None else settings.max_capacity
        self._handlers: Dict[ScheduleField, Callable[[_Edit, Any], None]] = {
            ScheduleField.DURATION_DAYS: self._on_duration_days,
            ScheduleField.NIGHTS: self._on_nights,
            ScheduleField.EXPIRATION_DATE: self._on_expiration_date,
            ScheduleField.MIN_ADVANCE_DAYS: self._on_min_advance_days,
            ScheduleField.CHECK_DAYS: self._on_check_days,
            ScheduleField.BALANCE_PAYMENT_DAYS: self._on_balance_payment_days,
            ScheduleField.DEPOSIT_PERCENTAGE: self._on_deposit_percentage,
            ScheduleField.REFUND_FLOOR: self._on_refund_floor,
            ScheduleField.MAX_CAPACITY: self._on_max_capacity,
        }

    def apply_edit(
        self,
        state: ScheduleState,
        field: ScheduleField | str,
        value: Any,
        today: Optional[date] = None,
    ) -> EditOutcome:
        """
        Apply one field edit and re-derive every dependent field.

        Args:
            state: Current snapshot
            field: Field being edited
            value: Raw input value
            today: Current UTC date, defaults to the real one

        Returns:
            EditOutcome with the new snapshot, warnings and cleared fields

        Raises:
            InvalidDateError: If an expiration date is unparsable, past, or
                leaves no lead time for the minimum advance days
        """
        field = ScheduleField(field)
        edit = _Edit(state, today or utc_today())
        self._handlers[field](edit, value)
        outcome = edit.outcome()

        if outcome.warnings:
            logger.info(
                "Schedule edit adjusted values",
                extra={
                    "field": field.value,
                    "adjusted": [
                        {"field": w.field.value, "requested": w.requested, "applied": w.applied}
                        for w in outcome.warnings
                    ],
                }
            )
        else:
            logger.debug("Schedule edit applied", extra={"field": field.value})

        metrics_collector.record_schedule_edit(field.value, outcome.clamped_fields)
        return outcome

    def apply_edits(
        self,
        state: ScheduleState,
        edits: Iterable[Tuple[ScheduleField | str, Any]],
        today: Optional[date] = None,
    ) -> EditOutcome:
        """Apply edits in order, collecting all warnings."""
        warnings: List[FieldWarning] = []
        cleared: List[ScheduleField] = []
        for field, value in edits:
            outcome = self.apply_edit(state, field, value, today)
            state = outcome.state
            warnings.extend(outcome.warnings)
            cleared.extend(f for f in outcome.cleared if f not in cleared)
        return EditOutcome(state=state, warnings=warnings, cleared=cleared)

    # Duration

    def _on_duration_days(self, edit: _Edit, raw: Any) -> None:
        days = parse_numeric(raw)
        if days is None:
            edit.set(ScheduleField.DURATION_DAYS, None)
            edit.values["int_duration"] = int_duration(None, edit.get(ScheduleField.NIGHTS))
            return

        days = edit.clamp(ScheduleField.DURATION_DAYS, days, 0, self.max_days)
        nights = edit.get(ScheduleField.NIGHTS)
        bounds = nights_range(days)

        if nights is None:
            edit.set(ScheduleField.NIGHTS, 1 if days == 1 else bounds.suggest)
        elif nights not in allowed_nights(days):
            nights = edit.clamp(ScheduleField.NIGHTS, nights, bounds.min, bounds.max)
        edit.clear(ScheduleField.NIGHTS)

        edit.values["int_duration"] = int_duration(days, edit.get(ScheduleField.NIGHTS))

    def _on_nights(self, edit: _Edit, raw: Any) -> None:
        days = edit.get(ScheduleField.DURATION_DAYS)
        nights = parse_numeric(raw)
        if nights is None:
            edit.set(ScheduleField.NIGHTS, None)
            edit.values["int_duration"] = int_duration(days, None)
            return

        snapped = resolve_nights(days or 0, nights)
        edit.adjust(ScheduleField.NIGHTS, nights, snapped)
        if snapped == nights:
            edit.clear(ScheduleField.NIGHTS)
        edit.values["int_duration"] = int_duration(days or 0, snapped)

    # Booking window

    def _on_expiration_date(self, edit: _Edit, raw: Any) -> None:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            edit.set(ScheduleField.EXPIRATION_DATE, None)
            return

        expiration = parse_date(raw)
        if expiration is None:
            raise InvalidDateError(raw)
        lead = lead_days(expiration, edit.today)
        if lead < 0:
            raise InvalidDateError(raw, "date is in the past")

        min_advance = edit.get(ScheduleField.MIN_ADVANCE_DAYS)
        if min_advance is not None and min_advance >= lead:
            if lead == 0:
                raise InvalidDateError(raw, "date leaves no valid lead time")
            edit.adjust(ScheduleField.MIN_ADVANCE_DAYS, min_advance, max(0, lead - 1))
            self._rebalance(edit)
        if min_advance is not None:
            edit.clear(ScheduleField.MIN_ADVANCE_DAYS)

        edit.set(ScheduleField.EXPIRATION_DATE, expiration)
        edit.clear(ScheduleField.EXPIRATION_DATE)

    def _on_min_advance_days(self, edit: _Edit, raw: Any) -> None:
        min_advance = parse_numeric(raw)
        if min_advance is None:
            edit.set(ScheduleField.MIN_ADVANCE_DAYS, None)
            edit.set(ScheduleField.BALANCE_PAYMENT_DAYS, 0)
            return

        requested = min_advance
        min_advance = max(0, min(self.max_days, min_advance))
        expiration = edit.get(ScheduleField.EXPIRATION_DATE)
        if expiration is not None:
            lead = lead_days(expiration, edit.today)
            if min_advance >= lead:
                min_advance = max(0, lead - 1)
        edit.adjust(ScheduleField.MIN_ADVANCE_DAYS, requested, min_advance)
        edit.clear(ScheduleField.MIN_ADVANCE_DAYS)
        self._rebalance(edit)

    def _on_check_days(self, edit: _Edit, raw: Any) -> None:
        min_advance = edit.get(ScheduleField.MIN_ADVANCE_DAYS)
        check = parse_numeric(raw)
        if check is None:
            edit.set(ScheduleField.CHECK_DAYS, None)
        else:
            edit.clamp(ScheduleField.CHECK_DAYS, check, 0, min_advance)
            edit.clear(ScheduleField.CHECK_DAYS)
        edit.set(
            ScheduleField.BALANCE_PAYMENT_DAYS,
            balance_payment_days(min_advance, edit.get(ScheduleField.CHECK_DAYS)),
        )
        edit.clear(ScheduleField.BALANCE_PAYMENT_DAYS)

    def _on_balance_payment_days(self, edit: _Edit, raw: Any) -> None:
        balance = parse_numeric(raw)
        if balance is None:
            edit.set(ScheduleField.BALANCE_PAYMENT_DAYS, None)
            return

        min_advance = edit.get(ScheduleField.MIN_ADVANCE_DAYS)
        check = edit.get(ScheduleField.CHECK_DAYS)
        high = max(0, min_advance - (check or 0)) if min_advance is not None else None
        edit.clamp(ScheduleField.BALANCE_PAYMENT_DAYS, balance, 0, high)
        edit.clear(ScheduleField.BALANCE_PAYMENT_DAYS)

    def _rebalance(self, edit: _Edit) -> None:
        """Keep check days within the minimum advance days and re-derive the balance window."""
        min_advance = edit.get(ScheduleField.MIN_ADVANCE_DAYS)
        check = edit.get(ScheduleField.CHECK_DAYS)
        if min_advance is not None and check is not None and check > min_advance:
            check = edit.adjust(ScheduleField.CHECK_DAYS, check, min_advance)
        edit.set(ScheduleField.BALANCE_PAYMENT_DAYS, balance_payment_days(min_advance, check))

    # Pricing and capacity

    def _on_deposit_percentage(self, edit: _Edit, raw: Any) -> None:
        self._clamped_or_empty(edit, ScheduleField.DEPOSIT_PERCENTAGE, raw, 0, 100)

    def _on_refund_floor(self, edit: _Edit, raw: Any) -> None:
        self._clamped_or_empty(edit, ScheduleField.REFUND_FLOOR, raw, 1, 100)

    def _on_max_capacity(self, edit: _Edit, raw: Any) -> None:
        self._clamped_or_empty(edit, ScheduleField.MAX_CAPACITY, raw, 1, self.max_capacity)

    def _clamped_or_empty(self, edit: _Edit, field: ScheduleField, raw: Any, low: int, high: int) -> None:
        value = parse_numeric(raw)
        if value is None:
            edit.set(field, None)
            return
        edit.clamp(field, value, low, high)
        edit.clear(field)
