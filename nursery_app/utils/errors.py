"""
Submission errors - converted to the {success, message, errors} envelope in main.py
"""
from typing import List, Optional
from fastapi import status


class SubmissionError(Exception):
    """A user-correctable failure with its own HTTP status"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_content(self) -> dict:
        return {"success": False, "message": self.message, "errors": self.errors}


class ValidationFailed(SubmissionError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: List[str], message: str = "Validation failed"):
        super().__init__(message, errors)


class ConflictError(SubmissionError):
    status_code = status.HTTP_409_CONFLICT


class RateLimited(SubmissionError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class NotFound(SubmissionError):
    status_code = status.HTTP_404_NOT_FOUND


class ServerError(SubmissionError):
    """Generic 500 - the message is safe to show, the cause is logged only"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str = "An internal server error occurred. Please try again later.",
        errors: Optional[List[str]] = None,
    ):
        super().__init__(message, errors or ["Server error - please contact support if this persists"])
