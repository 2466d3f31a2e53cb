"""
Shared fixtures for the university test suites.

Rows are created straight through the ORM so that each suite only goes
through the service it is testing.
"""

import datetime
from decimal import Decimal

from django.contrib.auth.models import User
from django.utils import timezone

from university.models import Course, Enrollment, Exam, ExamQuestion, MCQOption


def make_user(username, **extra):
    return User.objects.create_user(
        username=username, password="Musterpassword", email=f"{username}@campus.test", **extra
    )


def make_course(code="CS101", instructor=None, name="Introduction to Programming"):
    return Course.objects.create(code=code, name=name, instructor=instructor)


def make_exam(course, title="Midterm", total_points="100", duration_minutes=60, days_ago=1):
    """An exam that is already open, scheduled ``days_ago`` days in the past."""
    return Exam.objects.create(
        course=course,
        title=title,
        exam_date=timezone.now() - datetime.timedelta(days=days_ago),
        duration_minutes=duration_minutes,
        total_points=Decimal(total_points),
    )


def make_question(exam, score="10", order_number=1, correct_index=0, option_count=3):
    """A question with ``option_count`` options; the one at ``correct_index`` is correct."""
    question = ExamQuestion.objects.create(
        exam=exam,
        text=f"Question {order_number}",
        order_number=order_number,
        score=Decimal(score),
    )
    for index in range(option_count):
        MCQOption.objects.create(
            question=question,
            text=f"Option {index + 1}",
            order_number=index + 1,
            is_correct=index == correct_index,
        )
    return question


def options_payload(count=3, correct_index=0):
    return [
        {"text": f"Answer {index + 1}", "order_number": index + 1, "is_correct": index == correct_index}
        for index in range(count)
    ]


def enroll(student, course, status=Enrollment.Status.ENROLLED):
    return Enrollment.objects.create(student=student, course=course, status=status)
