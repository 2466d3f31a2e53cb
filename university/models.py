"""
University Application Models Registry

This module serves as the central models registry for the University application.
It imports and exposes all models from the logical submodules (courses, exams)
to ensure they are properly registered with Django's ORM system.

Architecture:
- courses/: Course and enrollment models
- exams/: Exam authoring, submission and answer models

Author: Campus Development Team
Version: 1.0.0
"""

from .courses.models import *

from .exams.models import *
