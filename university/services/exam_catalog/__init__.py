"""
Exam Catalog Services Package

Exam, question and option authoring with the exam lock.

Author: Campus Development Team
Version: 1.0.0
"""

from .exam_catalog_service import ExamCatalogService

__all__ = ["ExamCatalogService"]
