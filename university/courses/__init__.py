"""
University Courses Package

Course and enrollment models as seen by the exam subsystem, plus the
course completion endpoint.

Author: Campus Development Team
Version: 1.0.0
"""
