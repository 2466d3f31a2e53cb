"""
Exam Authoring Validators

Field and business-rule validation for exam and question input. All checks
run on the raw input before the store is touched; failures raise
``ValidationError`` (malformed or out-of-range input) or
``BusinessRuleError`` (question option rules).

Author: Campus Development Team
Version: 1.0.0
"""

import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone

from ..exceptions import BusinessRuleError, ValidationError

TITLE_MAX_LENGTH = 200
MAX_DURATION_MINUTES = 480
MAX_TOTAL_POINTS = Decimal("1000")

QUESTION_TEXT_MAX_LENGTH = 1000
MAX_QUESTION_SCORE = Decimal("100")
MIN_OPTIONS = 2
MAX_OPTIONS = 10
OPTION_TEXT_MAX_LENGTH = 500


def validate_id(value: Any, name: str = "id") -> int:
    """Return ``value`` as a positive int or raise ``ValidationError``."""
    if isinstance(value, (bool, float)):
        raise ValidationError(f"Invalid {name}.", field=name)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}.", field=name)
    if number <= 0:
        raise ValidationError(f"Invalid {name}.", field=name)
    return number


def _to_decimal(value: Any, name: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required.", field=name)
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} must be a number.", field=name)
    if not number.is_finite():
        raise ValidationError(f"{name} must be a number.", field=name)
    return number


def _to_int(value: Any, name: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required.", field=name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a whole number.", field=name)


def validate_exam_fields(
    title: Optional[str],
    exam_date: Any,
    duration_minutes: Any,
    total_points: Any,
    description: Optional[str] = None,
    now: Optional[datetime.datetime] = None,
) -> Dict[str, Any]:
    """
    Validate exam input for create and update.

    Returns:
        Cleaned values keyed by model field name
    """
    if title is None or not str(title).strip():
        raise ValidationError("Exam title is required", field="title")
    title = str(title).strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Exam title cannot exceed {TITLE_MAX_LENGTH} characters", field="title"
        )

    if not isinstance(exam_date, datetime.datetime):
        raise ValidationError("Exam date is required", field="exam_date")
    if timezone.is_naive(exam_date):
        exam_date = timezone.make_aware(exam_date)
    now = now or timezone.now()
    if exam_date < now:
        raise ValidationError("Exam date cannot be in the past", field="exam_date")

    duration = _to_int(duration_minutes, "duration_minutes")
    if duration <= 0:
        raise ValidationError(
            "Duration must be greater than 0 minutes", field="duration_minutes"
        )
    if duration > MAX_DURATION_MINUTES:
        raise ValidationError(
            f"Duration cannot exceed {MAX_DURATION_MINUTES} minutes (8 hours)",
            field="duration_minutes",
        )

    points = _to_decimal(total_points, "total_points")
    if points <= 0:
        raise ValidationError("Total points must be greater than 0", field="total_points")
    if points > MAX_TOTAL_POINTS:
        raise ValidationError(
            f"Total points cannot exceed {MAX_TOTAL_POINTS}", field="total_points"
        )

    if description is not None:
        description = str(description).strip() or None

    return {
        "title": title,
        "exam_date": exam_date,
        "duration_minutes": duration,
        "total_points": points,
        "description": description,
    }


def validate_question_fields(
    text: Optional[str],
    score: Any,
    order_number: Any,
    options: Optional[Iterable[Dict[str, Any]]],
) -> Dict[str, Any]:
    """
    Validate a question together with its options.

    A question needs at least two options with non-empty text and exactly one
    option flagged correct. Options may carry an ``id`` when an existing
    option is being updated.

    Returns:
        Cleaned values: ``text``, ``score``, ``order_number`` and ``options``
    """
    if text is None or not str(text).strip():
        raise ValidationError("Question text is required", field="text")
    text = str(text).strip()
    if len(text) > QUESTION_TEXT_MAX_LENGTH:
        raise ValidationError(
            f"Question text cannot exceed {QUESTION_TEXT_MAX_LENGTH} characters",
            field="text",
        )

    score = _to_decimal(score, "score")
    if score <= 0:
        raise ValidationError("Question score must be greater than 0", field="score")
    if score > MAX_QUESTION_SCORE:
        raise ValidationError(
            f"Question score cannot exceed {MAX_QUESTION_SCORE} points", field="score"
        )

    order_number = _to_int(order_number, "order_number")
    if order_number <= 0:
        raise ValidationError(
            "Question order number must be greater than 0", field="order_number"
        )

    options = list(options or [])
    if len(options) < MIN_OPTIONS:
        raise BusinessRuleError(f"Question must have at least {MIN_OPTIONS} options")
    if len(options) > MAX_OPTIONS:
        raise ValidationError(
            f"Question cannot have more than {MAX_OPTIONS} options", field="options"
        )

    correct_count = sum(1 for option in options if bool(option.get("is_correct")))
    if correct_count != 1:
        raise BusinessRuleError("Exactly one option must be marked as correct")

    cleaned_options: List[Dict[str, Any]] = []
    seen_orders = set()
    seen_texts = set()
    for option in options:
        option_text = option.get("text")
        if option_text is None or not str(option_text).strip():
            raise BusinessRuleError("All option texts are required")
        option_text = str(option_text).strip()
        if len(option_text) > OPTION_TEXT_MAX_LENGTH:
            raise ValidationError(
                f"Option text cannot exceed {OPTION_TEXT_MAX_LENGTH} characters",
                field="options",
            )

        option_order = _to_int(option.get("order_number"), "order_number")
        if option_order <= 0:
            raise ValidationError(
                "Option order number must be greater than 0", field="options"
            )
        if option_order in seen_orders:
            raise ValidationError(
                f"Duplicate option order number: {option_order}", field="options"
            )
        seen_orders.add(option_order)

        normalized = option_text.lower()
        if normalized in seen_texts:
            raise ValidationError("Option texts must be unique", field="options")
        seen_texts.add(normalized)

        cleaned = {
            "text": option_text,
            "order_number": option_order,
            "is_correct": bool(option.get("is_correct")),
        }
        if option.get("id") is not None:
            cleaned["id"] = validate_id(option["id"], "option id")
        cleaned_options.append(cleaned)

    return {
        "text": text,
        "score": score,
        "order_number": order_number,
        "options": cleaned_options,
    }
