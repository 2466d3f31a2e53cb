"""
Grading Services Package

Automatic grading of submitted answer sets and result breakdowns.

Author: Campus Development Team
Version: 1.0.0
"""

from .grading_service import GradingService, ExamResult, QuestionResult, build_exam_result

__all__ = ["GradingService", "ExamResult", "QuestionResult", "build_exam_result"]
