"""
URL configuration for the campus exams backend.

- /admin/: Django admin (Jazzmin theme)
- /api/university/: Exam authoring, exam sessions, results and course completion
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/university/", include("university.urls")),
]
