"""
Submission Session Services Package

Single-attempt exam sessions: start, status, results and the soft-delete
audit toggle.

Author: Campus Development Team
Version: 1.0.0
"""

from .submission_session_service import SubmissionSessionService, SubmissionStatus

__all__ = ["SubmissionSessionService", "SubmissionStatus"]
