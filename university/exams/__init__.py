"""
University Exams Package

Contains the exam data model, input validation and REST views for exam
authoring, exam sessions and results.

Structure:
- models.py: Exam, question, option, submission and answer models
- validators.py: Field and business-rule validation for authoring input
- serializers.py: API serialization for exam data and results
- views/: Instructor, student and administration views

Author: Campus Development Team
Version: 1.0.0
"""
