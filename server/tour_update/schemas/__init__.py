"""Pydantic schemas for request/response validation."""

from .common import *  # noqa: F403
from .diff import *  # noqa: F403
from .health import *  # noqa: F403
from .itinerary import *  # noqa: F403
from .schedule import *  # noqa: F403
from .tour import *  # noqa: F403
