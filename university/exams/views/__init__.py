"""
University Exam Views Package

Features:
- Instructor views: exam and question authoring, exam results
- Student views: exam sheet, start, submit, status and result of the own attempt
- Admin views: submission audit with soft delete and restore

Author: Campus Development Team
Version: 1.0.0
"""

from .instructor_views import *
from .student_views import *
from .admin_views import *
