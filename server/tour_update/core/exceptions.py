"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

from typing import Any, Dict, List, Optional
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uuid
from datetime import datetime, timezone

from ..schemas.common import Problem, Violation


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )


class InvalidDateError(ProblemDetailsException):
    """Expiration date is unparsable, in the past, or leaves no lead time."""

    def __init__(
        self,
        value: Any,
        reason: str = "date is not a valid calendar date",
        field: str = "expirationDate",
    ):
        self.value = value
        self.reason = reason
        self.field = field
        super().__init__(
            status_code=422,
            title="Invalid Date",
            detail=f"Invalid value {value!r} for {field}: {reason}",
            type_uri="https://example.com/problems/invalid-date",
            extensions={
                "code": "INVALID_DATE",
                "retryable": False,
                "field": field,
                "value": str(value),
            },
        )


class ItineraryFloorViolationError(ProblemDetailsException):
    """Attempt to shrink an itinerary below one day."""

    def __init__(self, length: int, minimum: int = 1):
        self.length = length
        self.minimum = minimum
        super().__init__(
            status_code=409,
            title="Itinerary Floor Violation",
            detail=f"An itinerary must keep at least {minimum} day(s); it currently has {length}",
            type_uri="https://example.com/problems/itinerary-floor-violation",
            extensions={
                "code": "ITINERARY_FLOOR_VIOLATION",
                "retryable": False,
                "length": length,
                "minimum": minimum,
            },
        )


class ItineraryIndexError(ProblemDetailsException):
    """Day index does not address an existing itinerary entry."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(
            status_code=404,
            title="Itinerary Day Not Found",
            detail=f"Day index {index} is out of range for an itinerary of {length} day(s)",
            type_uri="https://example.com/problems/itinerary-day-not-found",
            extensions={
                "code": "ITINERARY_INDEX_OUT_OF_RANGE",
                "retryable": False,
                "index": index,
                "length": length,
            },
        )


class RequiredFieldMissingError(ProblemDetailsException):
    """Submit-time validation failure listing every missing or invalid field at once."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            status_code=422,
            title="Required Fields Missing",
            detail="Please complete all required fields: " + ", ".join(self.missing),
            type_uri="https://example.com/problems/required-field-missing",
            extensions={
                "code": "REQUIRED_FIELD_MISSING",
                "retryable": False,
                "missing": self.missing,
            },
        )


class SubmissionInProgressError(ProblemDetailsException):
    """A submit for the same form instance is already in flight."""

    def __init__(self, form_id: str):
        self.form_id = form_id
        super().__init__(
            status_code=409,
            title="Submission In Progress",
            detail=f"An update request for form '{form_id}' is already being submitted",
            type_uri="https://example.com/problems/submission-in-progress",
            extensions={
                "code": "SUBMISSION_IN_PROGRESS",
                "retryable": True,
                "form_id": form_id,
            },
        )


class UpstreamSubmitError(ProblemDetailsException):
    """The external update-request endpoint failed or could not be reached."""

    def __init__(
        self,
        detail: str = "The update request could not be submitted, please try again",
        upstream_status: Optional[int] = None,
    ):
        self.upstream_status = upstream_status
        extensions: Dict[str, Any] = {
            "code": "UPSTREAM_SUBMIT_FAILED",
            "retryable": True,
        }
        if upstream_status is not None:
            extensions["upstream_status"] = upstream_status

        super().__init__(
            status_code=502,
            title="Upstream Submit Failed",
            detail=detail,
            type_uri="https://example.com/problems/upstream-submit-failed",
            extensions=extensions,
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Convert request body validation failures into Problem Details with violations.

    Args:
        request: FastAPI request object
        exc: Validation error raised by FastAPI

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem = Problem(
        type="https://example.com/problems/validation-error",
        title="Validation Error",
        status=422,
        detail="The request data failed validation",
        instance=str(request.url),
        violations=[
            Violation(
                path=".".join(str(part) for part in error.get("loc", ())),
                message=error.get("msg", "Invalid value"),
            )
            for error in exc.errors()
        ],
    )
    return JSONResponse(status_code=422, content=problem.model_dump(exclude_none=True))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": error_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
    )
