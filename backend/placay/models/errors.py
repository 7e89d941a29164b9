"""Error taxonomy for Placay.

Domain exceptions raised by the planner services, and the pydantic error
envelope the API returns for them.

- ValidationError: bad input, rejected before any network call
- NotFoundError: stale local reference to a tour or favorite
- TransientNetworkError: a gateway call failed; nothing was applied locally
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes shared by exceptions and API responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_COORDINATE = "INVALID_COORDINATE"
    NO_TOUR_SELECTED = "NO_TOUR_SELECTED"
    MISSING_START_DATE = "MISSING_START_DATE"
    NOT_FOUND = "NOT_FOUND"
    TOUR_NOT_FOUND = "TOUR_NOT_FOUND"
    FAVORITE_NOT_FOUND = "FAVORITE_NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    API_ERROR = "API_ERROR"


class RecoveryOption(BaseModel):
    """An action the UI can offer next to an error message."""

    label: str
    action: str


class AppError(BaseModel):
    """Error payload returned to API clients."""

    code: ErrorCode
    message: str = Field(..., description="Developer-facing detail")
    user_message: str = Field(..., description="Message safe to show the user")
    recovery_options: list[RecoveryOption] = Field(default_factory=list)


class PlacayError(Exception):
    """Base class for all planner errors."""

    code: ErrorCode = ErrorCode.API_ERROR
    user_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if user_message is not None:
            self.user_message = user_message

    def to_app_error(self) -> AppError:
        return AppError(
            code=self.code,
            message=self.message,
            user_message=self.user_message,
            recovery_options=self.recovery_options(),
        )

    def recovery_options(self) -> list[RecoveryOption]:
        return []


class ValidationError(PlacayError):
    code = ErrorCode.VALIDATION_ERROR
    user_message = "Invalid request. Please check your input."


class InvalidCoordinate(ValidationError):
    """Latitude/longitude missing, not a finite number, or out of range."""

    code = ErrorCode.INVALID_COORDINATE
    user_message = "Invalid latitude or longitude"


class NoTourSelected(ValidationError):
    code = ErrorCode.NO_TOUR_SELECTED
    user_message = "Please select a tour for this favorite"


class MissingStartDate(ValidationError):
    code = ErrorCode.MISSING_START_DATE
    user_message = "This tour has no start date to place the first day on"


class NotFoundError(PlacayError):
    code = ErrorCode.NOT_FOUND
    user_message = "That item no longer exists."


class TourNotFound(NotFoundError):
    code = ErrorCode.TOUR_NOT_FOUND
    user_message = "Selected tour not found"


class FavoriteNotFound(NotFoundError):
    code = ErrorCode.FAVORITE_NOT_FOUND
    user_message = "Favorite not found"


class TransientNetworkError(PlacayError):
    """A gateway request failed. The core never retries it."""

    code = ErrorCode.NETWORK_ERROR
    user_message = "We couldn't reach the server. Please try again."

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, user_message)
        self.status_code = status_code

    def recovery_options(self) -> list[RecoveryOption]:
        return [RecoveryOption(label="Try again", action="retry")]
