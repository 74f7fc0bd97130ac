"""Parsing helpers shared by the schedule resolver, the diff and the submit flow."""

import re
from datetime import date, datetime, timezone
from typing import Any, NamedTuple, Optional

_BR_TAG = re.compile(r"<\s*br\s*/?\s*>", re.IGNORECASE)
_P_CLOSE_TAG = re.compile(r"<\s*/p\s*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")
_BLANK_RUN = re.compile(r"\n{3,}")
_NON_DIGIT = re.compile(r"[^0-9]")

# "3 ngày 2 đêm", "3 days 2 nights"
_DAYS_NIGHTS = re.compile(r"(\d+)\s*(?:ngày|days?)\s+(\d+)\s*(?:đêm|nights?)", re.IGNORECASE)
_NUMBER = re.compile(r"\d+")


class Duration(NamedTuple):
    days: int
    nights: int

    @property
    def int_duration(self) -> int:
        return max(self.days, self.nights)


def html_to_text(html: Any) -> str:
    """
    Reduce rich text to plain text.

    ``<br>`` and ``</p>`` become newlines, every other tag is dropped and runs
    of three or more newlines collapse to two.
    """
    if html is None or html == "":
        return ""
    text = _BR_TAG.sub("\n", str(html))
    text = _P_CLOSE_TAG.sub("\n", text)
    text = _ANY_TAG.sub("", text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


def parse_duration(value: Any) -> Duration:
    """Parse a free-text duration such as ``"3 days 2 nights"`` into days and nights."""
    if value is None:
        return Duration(0, 0)
    normalized = str(value).strip().lower()
    if not normalized:
        return Duration(0, 0)

    match = _DAYS_NIGHTS.search(normalized)
    if match:
        return Duration(int(match.group(1)), int(match.group(2)))

    numbers = _NUMBER.findall(normalized)
    if len(numbers) >= 2:
        return Duration(int(numbers[0]), int(numbers[1]))
    if len(numbers) == 1:
        return Duration(int(numbers[0]), 0)
    return Duration(0, 0)


def format_duration(days: int, nights: int) -> str:
    return f"{days} days {nights} nights"


def parse_numeric(value: Any) -> Optional[int]:
    """
    Parse form input the way the numeric inputs do: strip every non-digit.

    Returns None for empty input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        value = int(value)
    digits = _NON_DIGIT.sub("", str(value))
    if not digits:
        return None
    return int(digits)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date from a ``date``, ``datetime`` or ISO string.

    Returns None when the value is empty or cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def lead_days(expiration: date, today: Optional[date] = None) -> int:
    """Whole days from today (UTC) to the expiration date; negative when it has passed."""
    return (expiration - (today or utc_today())).days


def derived_min_advance_days(expiration: Any, today: Optional[date] = None) -> Optional[int]:
    """
    Largest minimum advance days an expiration date allows, ``lead_days - 1``.

    Returns None when the date is missing, unparsable or already past.
    """
    parsed = parse_date(expiration)
    if parsed is None:
        return None
    lead = lead_days(parsed, today)
    if lead < 0:
        return None
    return max(0, lead - 1)
