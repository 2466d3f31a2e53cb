"""
University Exam Service Exceptions

This module provides the exception hierarchy raised by the exam services.
Every exception carries an HTTP status code and a machine readable error code
so the REST layer can render it without knowing the individual cases.

Hierarchy:
- UniversityServiceError
  - ValidationError: Malformed or out-of-range input
  - NotFoundError: Missing rows or a mismatched exam/course pairing
  - StateConflictError: Operation not allowed in the current state
    (exam locked, already started, already submitted, time expired, ...)
  - BusinessRuleError: Authoring rules such as "exactly one correct option"

Author: Campus Development Team
Version: 1.0.0
"""

import logging
from typing import Optional, Dict, Any

from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class UniversityServiceError(Exception):
    """
    Base exception class for all exam service errors.

    Attributes:
        message (str): Human-readable error message
        status_code (int): HTTP status code used by the REST layer
        error_code (str): Stable identifier for clients
        details (Dict[str, Any]): Additional error context
    """

    status_code: int = 400
    error_code: str = "error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error": self.message,
            "code": self.error_code,
            "details": self.details,
        }


class ValidationError(UniversityServiceError):
    """Raised for malformed or out-of-range input, before any store access."""

    status_code = 400
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        details = {"field": field} if field else None
        super().__init__(message, details=details)
        self.field = field


class NotFoundError(UniversityServiceError):
    """
    Raised when an exam, question, submission or enrollment does not exist.

    An exam requested under a course it does not belong to is reported the
    same way, so callers cannot tell which of the two ids was wrong.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(self, message: str, resource: Optional[str] = None) -> None:
        details = {"resource": resource} if resource else None
        super().__init__(message, details=details)
        self.resource = resource


class StateConflictError(UniversityServiceError):
    status_code = 409
    error_code = "state_conflict"

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        super().__init__(message, error_code=error_code)


class ExamLockedError(StateConflictError):
    error_code = "exam_locked"

    def __init__(self, message: str = "Exam is locked because students have already started it.") -> None:
        super().__init__(message)


class AlreadyStartedError(StateConflictError):
    error_code = "already_started"

    def __init__(self, message: str = "You have already started this exam.") -> None:
        super().__init__(message)


class NoQuestionsError(StateConflictError):
    error_code = "no_questions"

    def __init__(self, message: str = "This exam has no questions to take.") -> None:
        super().__init__(message)


class ExamNotAvailableError(StateConflictError):
    error_code = "not_available"

    def __init__(self, message: str = "This exam is not available yet.") -> None:
        super().__init__(message)


class NotStartedError(StateConflictError):
    error_code = "not_started"

    def __init__(self, message: str = "Exam not started, start the exam first.") -> None:
        super().__init__(message)


class AlreadySubmittedError(StateConflictError):
    error_code = "already_submitted"

    def __init__(self, message: str = "Exam already submitted.") -> None:
        super().__init__(message)


class TimeExpiredError(StateConflictError):
    error_code = "time_expired"

    def __init__(self, message: str = "Time is over. You cannot submit this exam.") -> None:
        super().__init__(message)


class NoExamsError(StateConflictError):
    error_code = "no_exams"

    def __init__(self, message: str = "This course has no exams yet.") -> None:
        super().__init__(message)


class BusinessRuleError(UniversityServiceError):
    """Raised when authoring input breaks a question rule (options, correct flag)."""

    status_code = 422
    error_code = "business_rule_violation"


def university_exception_handler(exc, context):
    """
    DRF exception handler rendering service errors with their status code.

    Everything else is delegated to the default REST framework handler, so
    unexpected persistence errors still surface as server errors.
    """
    if isinstance(exc, UniversityServiceError):
        view = context.get("view")
        logger.warning(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(exc.to_dict(), status=exc.status_code)

    return exception_handler(exc, context)
