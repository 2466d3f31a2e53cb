"""
University Package - Campus Exams Backend

This package contains the exam subsystem of the university administration
platform: exam authoring, timed exam sessions, automatic grading and the
course completion aggregation that writes a student's final grade.

Features:
- Exam, question and option authoring with a lock once students have started
- Single-attempt exam sessions with a lazily enforced duration limit
- Automatic single-choice grading with a per-question breakdown
- Course completion status and letter grade derived from exam results

Structure:
- courses/: Course and enrollment models, completion view
- exams/: Exam, question, option, submission and answer models, REST views
- services/: Exam catalog, submission sessions, grading, completion
- management/: Django management commands

Author: Campus Development Team
Version: 1.0.0
"""
