import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from university.exceptions import (
    BusinessRuleError,
    ExamLockedError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from university.models import Exam, ExamSubmission, MCQOption
from university.services.exam_catalog import ExamCatalogService
from university.tests.helpers import (
    make_course,
    make_exam,
    make_question,
    make_user,
    options_payload,
)


def next_week():
    return timezone.now() + datetime.timedelta(days=7)


class ExamAuthoringTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.instructor = make_user("prof")
        cls.course = make_course(instructor=cls.instructor)
        cls.other_course = make_course(code="MA201", name="Linear Algebra")

    def setUp(self):
        self.service = ExamCatalogService()

    def test_create_exam(self):
        exam = self.service.create_exam(
            self.course.pk, "  Final exam ", next_week(), 90, "120", description="Chapters 1-6"
        )

        self.assertEqual(exam.title, "Final exam")
        self.assertEqual(exam.course, self.course)
        self.assertEqual(exam.total_points, Decimal("120"))
        self.assertEqual(exam.duration_minutes, 90)

    def test_create_exam_rejects_invalid_fields(self):
        cases = [
            ("", next_week(), 60, 100),
            ("x" * 201, next_week(), 60, 100),
            ("Final", timezone.now() - datetime.timedelta(hours=1), 60, 100),
            ("Final", next_week(), 0, 100),
            ("Final", next_week(), 481, 100),
            ("Final", next_week(), 60, 0),
            ("Final", next_week(), 60, 1001),
        ]
        for title, exam_date, duration, points in cases:
            with self.subTest(title=title[:10], duration=duration, points=points):
                with self.assertRaises(ValidationError):
                    self.service.create_exam(self.course.pk, title, exam_date, duration, points)
        self.assertFalse(Exam.objects.exists())

    def test_create_exam_for_missing_course(self):
        with self.assertRaises(NotFoundError):
            self.service.create_exam(99999, "Final", next_week(), 60, 100)

    def test_invalid_ids_are_rejected(self):
        for bad_id in (0, -3, "abc", None, 1.5, True):
            with self.subTest(bad_id=bad_id):
                with self.assertRaises(ValidationError):
                    self.service.get_exam(bad_id, self.course.pk)

    def test_exam_is_not_found_under_another_course(self):
        exam = make_exam(self.course)

        with self.assertRaises(NotFoundError) as mismatch:
            self.service.get_exam_with_questions(exam.pk, self.other_course.pk)
        with self.assertRaises(NotFoundError) as missing:
            self.service.get_exam_with_questions(99999, self.other_course.pk)

        self.assertEqual(
            mismatch.exception.message,
            f"Exam with ID {exam.pk} not found in course {self.other_course.pk}",
        )
        self.assertEqual(
            missing.exception.message,
            f"Exam with ID 99999 not found in course {self.other_course.pk}",
        )
        self.assertEqual(mismatch.exception.to_dict()["details"], {"resource": "exam"})

    def test_exam_with_questions_is_ordered(self):
        exam = make_exam(self.course)
        make_question(exam, order_number=2)
        make_question(exam, order_number=1)

        loaded = self.service.get_exam_with_questions(exam.pk, self.course.pk)

        questions = list(loaded.questions.all())
        self.assertEqual([q.order_number for q in questions], [1, 2])
        self.assertEqual([o.order_number for o in questions[0].options.all()], [1, 2, 3])

    def test_update_exam(self):
        exam = make_exam(self.course)

        updated = self.service.update_exam(exam.pk, self.course.pk, "Retake", next_week(), 45, 50)

        self.assertEqual(updated.title, "Retake")
        exam.refresh_from_db()
        self.assertEqual(exam.duration_minutes, 45)

    def test_delete_exam_is_soft(self):
        exam = make_exam(self.course)

        self.assertTrue(self.service.delete_exam(exam.pk, self.course.pk))

        self.assertFalse(self.service.list_exams_for_course(self.course.pk).exists())
        stored = Exam.all_objects.get(pk=exam.pk)
        self.assertTrue(stored.is_deleted)
        self.assertIsNotNone(stored.deleted_at)
        with self.assertRaises(NotFoundError):
            self.service.get_exam(exam.pk, self.course.pk)

    def test_exams_of_deleted_course_are_hidden(self):
        exam = make_exam(self.course)
        question = make_question(exam)
        self.course.is_deleted = True
        self.course.save()

        self.assertFalse(self.service.list_exams_for_course(self.course.pk).exists())
        self.assertFalse(self.service.list_questions(exam.pk).exists())
        with self.assertRaises(NotFoundError):
            self.service.get_exam(exam.pk, self.course.pk)
        with self.assertRaises(NotFoundError):
            self.service.get_exam_with_questions(exam.pk, self.course.pk)
        with self.assertRaises(NotFoundError):
            self.service.get_question(question.pk, exam.pk)


class QuestionAuthoringTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.course = make_course()
        cls.exam = make_exam(cls.course)

    def setUp(self):
        self.service = ExamCatalogService()

    def test_add_question_with_options(self):
        question = self.service.add_question(
            self.exam.pk, "What is 2 + 2?", 5, 1, options_payload(4, correct_index=2)
        )

        options = list(question.options.all())
        self.assertEqual(len(options), 4)
        self.assertEqual([o.is_correct for o in options], [False, False, True, False])
        self.assertEqual(question.correct_option().text, "Answer 3")

    def test_add_question_business_rules(self):
        one_option = options_payload(1)
        no_correct = options_payload(3, correct_index=-1)
        two_correct = options_payload(3)
        two_correct[1]["is_correct"] = True
        empty_text = options_payload(3)
        empty_text[2]["text"] = "   "

        for options in (one_option, no_correct, two_correct, empty_text):
            with self.subTest(options=options):
                with self.assertRaises(BusinessRuleError):
                    self.service.add_question(self.exam.pk, "Question", 5, 1, options)
        self.assertFalse(self.exam.questions.exists())

    def test_add_question_field_validation(self):
        duplicate_text = options_payload(3)
        duplicate_text[1]["text"] = " answer 1 "
        duplicate_order = options_payload(3)
        duplicate_order[2]["order_number"] = 1

        cases = [
            ("", 5, 1, options_payload()),
            ("x" * 1001, 5, 1, options_payload()),
            ("Question", 0, 1, options_payload()),
            ("Question", 101, 1, options_payload()),
            ("Question", 5, 0, options_payload()),
            ("Question", 5, 1, options_payload(11)),
            ("Question", 5, 1, duplicate_text),
            ("Question", 5, 1, duplicate_order),
        ]
        for text, score, order, options in cases:
            with self.subTest(text=text[:10], score=score, order=order):
                with self.assertRaises(ValidationError):
                    self.service.add_question(self.exam.pk, text, score, order, options)

    def test_add_question_checks_course(self):
        other = make_course(code="PH100", name="Physics")
        with self.assertRaises(NotFoundError):
            self.service.add_question(
                self.exam.pk, "Question", 5, 1, options_payload(), course_id=other.pk
            )

    def test_update_question_replaces_options(self):
        question = make_question(self.exam)
        first, second, third = question.options.all()

        updated = self.service.update_question(
            question.pk,
            self.exam.pk,
            "Reworded",
            8,
            3,
            [
                {"id": second.pk, "text": "Kept", "order_number": 1, "is_correct": True},
                {"text": "Brand new", "order_number": 2, "is_correct": False},
            ],
        )

        self.assertEqual(updated.text, "Reworded")
        self.assertEqual(updated.score, Decimal("8"))
        options = list(updated.options.all())
        self.assertEqual([o.text for o in options], ["Kept", "Brand new"])
        self.assertEqual(options[0].pk, second.pk)
        self.assertTrue(options[0].is_correct)
        self.assertFalse(MCQOption.objects.filter(pk__in=[first.pk, third.pk]).exists())

    def test_update_question_with_unknown_option(self):
        question = make_question(self.exam)
        options = options_payload(2)
        options[0]["id"] = 99999

        with self.assertRaises(NotFoundError):
            self.service.update_question(question.pk, self.exam.pk, "Question", 5, 1, options)

    def test_question_of_another_exam_is_not_found(self):
        other_exam = make_exam(self.course, title="Quiz")
        question = make_question(other_exam)

        with self.assertRaises(NotFoundError):
            self.service.get_question(question.pk, self.exam.pk)
        with self.assertRaises(NotFoundError):
            self.service.delete_question(question.pk, self.exam.pk)

    def test_delete_question(self):
        question = make_question(self.exam)

        self.assertTrue(self.service.delete_question(question.pk, self.exam.pk))
        self.assertFalse(self.service.list_questions(self.exam.pk).exists())


class ExamLockTests(TestCase):
    """Once any submission exists the exam and its questions are frozen."""

    @classmethod
    def setUpTestData(cls):
        cls.student = make_user("student")
        cls.course = make_course()
        cls.exam = make_exam(cls.course)
        cls.question = make_question(cls.exam)
        cls.submission = ExamSubmission.objects.create(
            exam=cls.exam, student=cls.student, started_at=timezone.now()
        )

    def setUp(self):
        self.service = ExamCatalogService()

    def assertLocked(self, call, *args):
        with self.assertRaises(ExamLockedError) as raised:
            call(*args)
        self.assertIsInstance(raised.exception, StateConflictError)
        self.assertEqual(raised.exception.status_code, 409)

    def test_authoring_is_rejected_after_first_start(self):
        self.assertLocked(
            self.service.add_question, self.exam.pk, "New", 5, 2, options_payload()
        )
        self.assertLocked(
            self.service.update_exam, self.exam.pk, self.course.pk, "New", next_week(), 60, 100
        )
        self.assertLocked(self.service.delete_exam, self.exam.pk, self.course.pk)
        self.assertLocked(
            self.service.update_question,
            self.question.pk,
            self.exam.pk,
            "New",
            5,
            1,
            options_payload(),
        )
        self.assertLocked(self.service.delete_question, self.question.pk, self.exam.pk)

        self.exam.refresh_from_db()
        self.assertEqual(self.exam.title, "Midterm")
        self.assertFalse(self.exam.is_deleted)
        self.assertEqual(self.exam.questions.count(), 1)

    def test_soft_deleted_submission_still_locks(self):
        ExamSubmission.objects.filter(pk=self.submission.pk).soft_delete()

        self.assertLocked(self.service.delete_exam, self.exam.pk, self.course.pk)

    def test_reads_are_allowed_on_locked_exam(self):
        exam = self.service.get_exam_with_questions(self.exam.pk, self.course.pk)
        self.assertEqual(exam.questions.count(), 1)
