"""
Course Completion Services Package

Derives a student's course completion status and letter grade from their
exam submissions.

Author: Campus Development Team
Version: 1.0.0
"""

from .completion_service import (
    CompletionService,
    CourseCompletionStatus,
    ExamCompletion,
    grade_letter_for,
)

__all__ = ["CompletionService", "CourseCompletionStatus", "ExamCompletion", "grade_letter_for"]
