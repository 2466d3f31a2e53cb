from django.contrib import admin
from django.test import RequestFactory, TestCase
from django.utils import timezone

from university.admin import ExamAdmin, ExamQuestionAdmin, ExamQuestionInline, MCQOptionInline
from university.models import Exam, ExamQuestion, ExamSubmission, MCQOption
from university.tests.helpers import make_course, make_exam, make_question, make_user


class ExamAdminLockTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin_user = make_user("admin", is_staff=True, is_superuser=True)
        cls.student = make_user("student")
        cls.course = make_course()
        cls.open_exam = make_exam(cls.course, title="Quiz")
        cls.open_question = make_question(cls.open_exam)
        cls.locked_exam = make_exam(cls.course, title="Midterm")
        cls.locked_question = make_question(cls.locked_exam)
        ExamSubmission.objects.create(
            exam=cls.locked_exam, student=cls.student, started_at=timezone.now()
        )

    def setUp(self):
        self.request = RequestFactory().get("/admin/")
        self.request.user = self.admin_user
        self.question_admin = ExamQuestionAdmin(ExamQuestion, admin.site)

    def test_question_of_locked_exam_cannot_be_changed_or_deleted(self):
        self.assertFalse(self.question_admin.has_change_permission(self.request, self.locked_question))
        self.assertFalse(self.question_admin.has_delete_permission(self.request, self.locked_question))
        self.assertTrue(self.question_admin.has_change_permission(self.request, self.open_question))
        self.assertTrue(self.question_admin.has_delete_permission(self.request, self.open_question))

    def test_soft_deleted_submission_still_locks(self):
        ExamSubmission.objects.filter(exam=self.locked_exam).soft_delete()
        self.assertFalse(self.question_admin.has_delete_permission(self.request, self.locked_question))

    def test_add_form_only_offers_open_exams(self):
        field = self.question_admin.formfield_for_foreignkey(
            ExamQuestion._meta.get_field("exam"), self.request
        )
        self.assertEqual(list(field.queryset), [self.open_exam])

    def test_bulk_delete_skips_locked_exams(self):
        self.question_admin.delete_queryset(self.request, ExamQuestion.objects.all())

        self.assertFalse(ExamQuestion.objects.filter(pk=self.open_question.pk).exists())
        self.assertTrue(ExamQuestion.objects.filter(pk=self.locked_question.pk).exists())
        self.assertEqual(MCQOption.objects.filter(question=self.locked_question).count(), 3)

    def test_option_inline_is_read_only_on_locked_exam(self):
        inline = MCQOptionInline(ExamQuestion, admin.site)

        self.assertFalse(inline.has_add_permission(self.request, self.locked_question))
        self.assertFalse(inline.has_change_permission(self.request, self.locked_question))
        self.assertFalse(inline.has_delete_permission(self.request, self.locked_question))
        self.assertTrue(inline.has_add_permission(self.request, self.open_question))

    def test_question_inline_on_locked_exam(self):
        inline = ExamQuestionInline(Exam, admin.site)

        self.assertFalse(inline.has_add_permission(self.request, self.locked_exam))
        self.assertFalse(inline.has_delete_permission(self.request, self.locked_exam))
        self.assertTrue(inline.has_add_permission(self.request, self.open_exam))

    def test_locked_exam_cannot_be_changed_or_deleted(self):
        exam_admin = ExamAdmin(Exam, admin.site)

        self.assertFalse(exam_admin.has_change_permission(self.request, self.locked_exam))
        self.assertFalse(exam_admin.has_delete_permission(self.request, self.locked_exam))
        self.assertTrue(exam_admin.has_change_permission(self.request, self.open_exam))
