"""Schedule form state and edit schemas."""

from datetime import date
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ScheduleField(str, Enum):
    """Editable schedule fields, named as the form sends them."""

    DURATION_DAYS = "durationDays"
    NIGHTS = "nights"
    EXPIRATION_DATE = "expirationDate"
    MIN_ADVANCE_DAYS = "minAdvanceDays"
    CHECK_DAYS = "checkDays"
    BALANCE_PAYMENT_DAYS = "balancePaymentDays"
    DEPOSIT_PERCENTAGE = "depositPercentage"
    REFUND_FLOOR = "refundFloor"
    MAX_CAPACITY = "maxCapacity"


class WarningKind(str, Enum):
    """Non-blocking outcomes of an edit."""

    OUT_OF_RANGE_CLAMPED = "OutOfRangeClamped"


class ScheduleState(BaseModel):
    """
    Immutable snapshot of the interdependent schedule fields of a tour form.

    Duration: duration_days, nights, int_duration (derived).
    Booking window: expiration_date, min_advance_days, check_days,
    balance_payment_days (derived).
    Pricing policy: deposit_percentage, refund_floor.
    """

    duration_days: Optional[int] = Field(None, ge=0, description="Tour length in days")
    nights: Optional[int] = Field(None, ge=0, description="Number of nights")
    int_duration: Optional[int] = Field(None, ge=0, description="max(duration_days, nights)")

    expiration_date: Optional[date] = Field(None, description="Last date the tour can be booked")
    min_advance_days: Optional[int] = Field(None, ge=0, description="Minimum lead time required to book")
    check_days: Optional[int] = Field(None, ge=0, description="Days before departure headcount is confirmed")
    balance_payment_days: Optional[int] = Field(None, ge=0, description="Window for paying the balance")

    deposit_percentage: Optional[int] = Field(None, ge=0, le=100, description="Deposit share of the price")
    refund_floor: Optional[int] = Field(None, ge=1, le=100, description="Minimum refundable percentage")
    allow_refundable_after_balance_payment: bool = Field(
        False, description="Whether refunds remain possible after the balance payment"
    )

    max_capacity: Optional[int] = Field(None, ge=1, description="Seats offered")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class FieldWarning(BaseModel):
    """A value that was snapped to the nearest legal value."""

    kind: WarningKind = Field(WarningKind.OUT_OF_RANGE_CLAMPED, description="Warning kind")
    field: ScheduleField = Field(..., description="Field that was adjusted")
    requested: Optional[int] = Field(None, description="Value before adjustment")
    applied: Optional[int] = Field(None, description="Value after adjustment")

    model_config = {"frozen": True}


class EditOutcome(BaseModel):
    """Result of applying one edit to a schedule snapshot."""

    state: ScheduleState
    warnings: List[FieldWarning] = Field(default_factory=list)
    cleared: List[ScheduleField] = Field(
        default_factory=list,
        description="Fields whose previously reported errors no longer apply"
    )

    @property
    def clamped_fields(self) -> List[str]:
        return [warning.field.value for warning in self.warnings]


class ScheduleEditRequest(BaseModel):
    """Request schema for applying one schedule edit."""

    state: ScheduleState = Field(default_factory=ScheduleState, description="Current form snapshot")
    field: ScheduleField = Field(..., description="Field being edited")
    value: Any = Field(None, description="Raw input; non-digits are stripped for numeric fields")
    today: Optional[date] = Field(None, description="Override for the current UTC date")


class AllowedNightsRequest(BaseModel):
    """Request schema for the allowed nights lookup."""

    duration_days: int = Field(..., ge=0, alias="durationDays", description="Tour length in days")

    model_config = {"populate_by_name": True}


class AllowedNightsResponse(BaseModel):
    """Allowed nights for a duration."""

    allowed: List[int] = Field(..., description="Allowed nights in ascending order")
    min: int = Field(..., description="Lowest allowed value")
    max: int = Field(..., description="Highest allowed value")
    suggest: int = Field(..., description="Value proposed when nights is empty")
