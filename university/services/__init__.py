"""
University Services Package

This package contains the services of the exam subsystem, in dependency order:

Structure:
├── exam_catalog/    # Exam, question and option authoring with the exam lock
├── submissions/     # Single-attempt exam sessions
├── grading/         # Automatic grading and result breakdowns
└── completion/      # Course completion status and letter grade

Author: Campus Development Team
Version: 1.0.0
"""

# Exam Catalog
from .exam_catalog import ExamCatalogService

# Submission Sessions
from .submissions import SubmissionSessionService, SubmissionStatus

# Grading
from .grading import GradingService, ExamResult, QuestionResult

# Completion
from .completion import CompletionService, CourseCompletionStatus, ExamCompletion

__all__ = [
    # Exam Catalog
    "ExamCatalogService",
    # Submission Sessions
    "SubmissionSessionService",
    "SubmissionStatus",
    # Grading
    "GradingService",
    "ExamResult",
    "QuestionResult",
    # Completion
    "CompletionService",
    "CourseCompletionStatus",
    "ExamCompletion",
]
