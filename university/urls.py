"""
University Application URL Configuration

URL Structure (mounted under /api/university/):
- token/: JWT token management
- courses/: Exam authoring per course, exam sheets and course completion
- exams/: Questions, exam sessions and results
- submissions/: Own submissions and the admin audit endpoints

Author: Campus Development Team
Version: 1.0.0
"""

from typing import List
from django.urls import path, include, URLPattern
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .courses import views as course_views
from .exams import views as exam_views

app_name = "university"

# --- Course URL Patterns ---

courses_urlpatterns: List[URLPattern] = [
    # Exam authoring (instructor of the course, admin)
    path("<int:course_id>/exams/", exam_views.ExamListCreateView.as_view(), name="exam-list-create"),
    path("<int:course_id>/exams/<int:exam_id>/", exam_views.ExamDetailView.as_view(), name="exam-detail"),
    path(
        "<int:course_id>/exams/<int:exam_id>/questions/",
        exam_views.ExamQuestionsView.as_view(),
        name="exam-questions",
    ),
    # Exam sheet for enrolled students
    path(
        "<int:course_id>/exams/<int:exam_id>/sheet/",
        exam_views.ExamSheetView.as_view(),
        name="exam-sheet",
    ),
    # Course completion
    path("<int:course_id>/completion/", course_views.MyCourseCompletionView.as_view(), name="my-completion"),
    path(
        "<int:course_id>/completion/<int:student_id>/",
        course_views.StudentCourseCompletionView.as_view(),
        name="student-completion",
    ),
]

# --- Exam URL Patterns ---

exams_urlpatterns: List[URLPattern] = [
    # Question authoring
    path("<int:exam_id>/questions/", exam_views.QuestionCreateView.as_view(), name="question-create"),
    path(
        "<int:exam_id>/questions/<int:question_id>/",
        exam_views.QuestionDetailView.as_view(),
        name="question-detail",
    ),
    # Exam session of the calling student
    path("<int:exam_id>/start/", exam_views.StartExamView.as_view(), name="start-exam"),
    path("<int:exam_id>/submit/", exam_views.SubmitExamView.as_view(), name="submit-exam"),
    path("<int:exam_id>/status/", exam_views.SubmissionStatusView.as_view(), name="submission-status"),
    path("<int:exam_id>/result/", exam_views.ExamResultView.as_view(), name="exam-result"),
    # Results of all students (instructor, admin)
    path("<int:exam_id>/results/", exam_views.ExamResultsView.as_view(), name="exam-results"),
]

# --- Submission URL Patterns ---

submissions_urlpatterns: List[URLPattern] = [
    path("mine/", exam_views.MySubmissionsView.as_view(), name="my-submissions"),
    path("all/", exam_views.AllSubmissionsView.as_view(), name="all-submissions"),
    path("<int:submission_id>/", exam_views.SubmissionDeleteView.as_view(), name="submission-delete"),
    path(
        "<int:submission_id>/restore/",
        exam_views.SubmissionRestoreView.as_view(),
        name="submission-restore",
    ),
]

# --- Main URL Configuration ---

urlpatterns: List[URLPattern] = [
    path("token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("courses/", include((courses_urlpatterns, "courses"))),
    path("exams/", include((exams_urlpatterns, "exams"))),
    path("submissions/", include((submissions_urlpatterns, "submissions"))),
]
