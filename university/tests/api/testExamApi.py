import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from university.models import Enrollment, ExamSubmission
from university.tests.helpers import (
    enroll,
    make_course,
    make_exam,
    make_question,
    make_user,
    options_payload,
)

BASE = "/api/university"


class ApiTestCase(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.instructor = make_user("prof")
        cls.other_instructor = make_user("other_prof")
        cls.student = make_user("student")
        cls.admin = make_user("admin", is_staff=True)
        cls.course = make_course(instructor=cls.instructor)
        cls.foreign_course = make_course(
            code="MA201", name="Linear Algebra", instructor=cls.other_instructor
        )
        cls.exam = make_exam(cls.course, total_points="20")
        cls.question = make_question(cls.exam, score="20")
        enroll(cls.student, cls.course)

    def setUp(self):
        self.client = APIClient()

    def login(self, user):
        self.client.force_authenticate(user=user)


class ExamAuthoringApiTests(ApiTestCase):
    def exam_payload(self, **overrides):
        payload = {
            "title": "Final",
            "exam_date": (timezone.now() + datetime.timedelta(days=7)).isoformat(),
            "duration_minutes": 90,
            "total_points": "100",
            "description": "Everything",
        }
        payload.update(overrides)
        return payload

    def test_instructor_creates_and_lists_exams(self):
        self.login(self.instructor)

        response = self.client.post(
            f"{BASE}/courses/{self.course.pk}/exams/", self.exam_payload(), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["title"], "Final")
        self.assertEqual(response.data["course_code"], "CS101")

        response = self.client.get(f"{BASE}/courses/{self.course.pk}/exams/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_foreign_course_is_not_found(self):
        self.login(self.instructor)

        response = self.client.post(
            f"{BASE}/courses/{self.foreign_course.pk}/exams/", self.exam_payload(), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not_found")

    def test_student_cannot_author(self):
        self.login(self.student)

        response = self.client.post(
            f"{BASE}/courses/{self.course.pk}/exams/", self.exam_payload(), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_validation_error_payload(self):
        self.login(self.instructor)

        response = self.client.post(
            f"{BASE}/courses/{self.course.pk}/exams/",
            self.exam_payload(duration_minutes=600),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "validation_error")
        self.assertEqual(response.data["details"], {"field": "duration_minutes"})

    def test_question_authoring(self):
        self.login(self.instructor)

        response = self.client.post(
            f"{BASE}/exams/{self.exam.pk}/questions/",
            {"text": "Pick one", "score": "5", "order_number": 2, "options": options_payload(3)},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data["options"]), 3)

        response = self.client.post(
            f"{BASE}/exams/{self.exam.pk}/questions/",
            {"text": "Pick one", "score": "5", "order_number": 3, "options": options_payload(1)},
            format="json",
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["code"], "business_rule_violation")

        response = self.client.get(f"{BASE}/courses/{self.course.pk}/exams/{self.exam.pk}/questions/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([q["order_number"] for q in response.data["questions"]], [1, 2])

    def test_locked_exam(self):
        ExamSubmission.objects.create(exam=self.exam, student=self.student, started_at=timezone.now())
        self.login(self.instructor)

        response = self.client.put(
            f"{BASE}/courses/{self.course.pk}/exams/{self.exam.pk}/",
            self.exam_payload(),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "exam_locked")

        response = self.client.delete(
            f"{BASE}/exams/{self.exam.pk}/questions/{self.question.pk}/"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_admin_deletes_exam(self):
        self.login(self.admin)

        response = self.client.delete(f"{BASE}/courses/{self.course.pk}/exams/{self.exam.pk}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get(f"{BASE}/courses/{self.course.pk}/exams/{self.exam.pk}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ExamSessionApiTests(ApiTestCase):
    def correct_answer(self):
        return {
            "answers": [
                {"question_id": self.question.pk, "selected_option_id": self.question.correct_option().pk}
            ]
        }

    def test_start_submit_and_result(self):
        self.login(self.student)

        response = self.client.post(f"{BASE}/exams/{self.exam.pk}/start/")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["state"], "started")

        response = self.client.post(f"{BASE}/exams/{self.exam.pk}/start/")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "already_started")

        response = self.client.post(f"{BASE}/exams/{self.exam.pk}/submit/", self.correct_answer(), format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["score"], Decimal("20"))
        self.assertEqual(response.data["percentage"], Decimal("100.00"))
        self.assertTrue(response.data["question_results"][0]["is_correct"])

        response = self.client.post(f"{BASE}/exams/{self.exam.pk}/submit/", self.correct_answer(), format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "already_submitted")

        response = self.client.get(f"{BASE}/exams/{self.exam.pk}/status/")
        self.assertEqual(response.data["state"], "submitted")

        response = self.client.get(f"{BASE}/exams/{self.exam.pk}/result/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["correct_answers"], 1)

        response = self.client.get(f"{BASE}/submissions/mine/")
        self.assertEqual(len(response.data), 1)

    def test_enrolled_student_loads_exam_sheet(self):
        self.login(self.student)

        response = self.client.get(f"{BASE}/courses/{self.course.pk}/exams/{self.exam.pk}/sheet/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        question = response.data["questions"][0]
        self.assertEqual(question["id"], self.question.pk)
        self.assertEqual(len(question["options"]), 3)
        for option in question["options"]:
            self.assertEqual(set(option), {"id", "text", "order_number"})

        option_id = question["options"][0]["id"]
        self.client.post(f"{BASE}/exams/{self.exam.pk}/start/")
        response = self.client.post(
            f"{BASE}/exams/{self.exam.pk}/submit/",
            {"answers": [{"question_id": question["id"], "selected_option_id": option_id}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_exam_sheet_requires_enrollment(self):
        self.login(self.other_instructor)
        response = self.client.get(f"{BASE}/courses/{self.course.pk}/exams/{self.exam.pk}/sheet/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        Enrollment.objects.filter(student=self.student).update(status=Enrollment.Status.DROPPED)
        self.login(self.student)
        response = self.client.get(f"{BASE}/courses/{self.course.pk}/exams/{self.exam.pk}/sheet/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        foreign_exam = make_exam(self.foreign_course)
        enroll(self.student, self.foreign_course)
        response = self.client.get(f"{BASE}/courses/{self.course.pk}/exams/{foreign_exam.pk}/sheet/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_status_and_result_without_session(self):
        self.login(self.student)

        self.assertEqual(
            self.client.get(f"{BASE}/exams/{self.exam.pk}/status/").status_code,
            status.HTTP_404_NOT_FOUND,
        )
        self.assertEqual(
            self.client.get(f"{BASE}/exams/{self.exam.pk}/result/").status_code,
            status.HTTP_404_NOT_FOUND,
        )

    def test_submit_without_start(self):
        self.login(self.student)

        response = self.client.post(f"{BASE}/exams/{self.exam.pk}/submit/", self.correct_answer(), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "not_started")

    def test_instructor_sees_results(self):
        self.login(self.student)
        self.client.post(f"{BASE}/exams/{self.exam.pk}/start/")
        self.client.post(f"{BASE}/exams/{self.exam.pk}/submit/", self.correct_answer(), format="json")

        self.login(self.instructor)
        response = self.client.get(f"{BASE}/exams/{self.exam.pk}/results/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]["student_id"], self.student.pk)

        self.login(self.other_instructor)
        response = self.client.get(f"{BASE}/exams/{self.exam.pk}/results/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_completion(self):
        self.login(self.student)
        self.client.post(f"{BASE}/exams/{self.exam.pk}/start/")
        self.client.post(f"{BASE}/exams/{self.exam.pk}/submit/", self.correct_answer(), format="json")

        response = self.client.get(f"{BASE}/courses/{self.course.pk}/completion/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Enrollment.Status.COMPLETED)
        self.assertEqual(response.data["grade_letter"], "A+")

        self.login(self.instructor)
        response = self.client.get(f"{BASE}/courses/{self.course.pk}/completion/{self.student.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["exam_details"][0]["exam_id"], self.exam.pk)

    def test_completion_without_enrollment(self):
        self.login(self.other_instructor)

        response = self.client.get(f"{BASE}/courses/{self.course.pk}/completion/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SubmissionAdminApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.submission = ExamSubmission.objects.create(
            exam=self.exam, student=self.student, started_at=timezone.now()
        )

    def test_student_is_forbidden(self):
        self.login(self.student)

        self.assertEqual(self.client.get(f"{BASE}/submissions/all/").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            self.client.delete(f"{BASE}/submissions/{self.submission.pk}/").status_code,
            status.HTTP_403_FORBIDDEN,
        )

    def test_delete_and_restore(self):
        self.login(self.admin)

        response = self.client.delete(f"{BASE}/submissions/{self.submission.pk}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.delete(f"{BASE}/submissions/{self.submission.pk}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.get(f"{BASE}/submissions/all/")
        self.assertTrue(response.data[0]["is_deleted"])

        response = self.client.post(f"{BASE}/submissions/{self.submission.pk}/restore/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(f"{BASE}/submissions/{self.submission.pk}/restore/")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "not_deleted")


class TokenAuthenticationTests(ApiTestCase):
    def obtain_access_token(self):
        response = self.client.post(
            f"{BASE}/token/", {"username": "student", "password": "Musterpassword"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return response.data["access"]

    def test_anonymous_request_is_rejected(self):
        response = self.client.get(f"{BASE}/submissions/mine/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bearer_header(self):
        access = self.obtain_access_token()

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        response = self.client.get(f"{BASE}/submissions/mine/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_access_token_cookie(self):
        access = self.obtain_access_token()

        self.client.cookies["access_token"] = access
        response = self.client.get(f"{BASE}/submissions/mine/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_invalid_cookie(self):
        self.client.cookies["access_token"] = "not-a-token"
        response = self.client.get(f"{BASE}/submissions/mine/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
