from typing import Any, Optional

from fastapi import status


class WaitlistError(Exception):
    """Base error for the waitlist feature. Carries the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class SignupValidationError(WaitlistError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Valid email required"


class UpstreamFailure(WaitlistError):
    """The directory rejected the contact create; the signup did not happen."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Failed to join waitlist. Please try again."


class BestEffortFailure(WaitlistError):
    """A step after the upsert failed. Recorded and logged, never returned to the caller."""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"{step} failed: {cause}")


class DirectoryError(Exception):
    """Error from the contact directory API."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class UpstreamConflict(DirectoryError):
    """The contact already exists in the directory."""

    def __init__(self, payload: Any = None):
        super().__init__("Contact already exists", status_code=status.HTTP_409_CONFLICT, payload=payload)
