"""
University Management Commands Package

Features:
- recompute_course_completion: Recompute enrollment completion from exam results

Author: Campus Development Team
Version: 1.0.0
"""
