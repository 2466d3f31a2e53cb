"""
Soft-delete managers shared by the course and exam models.

Models with an ``is_deleted`` flag expose two managers:
``objects`` hides deleted rows, ``all_objects`` returns everything.

Author: Campus Development Team
Version: 1.0.0
"""

from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):
    def live(self):
        return self.filter(is_deleted=False)

    def deleted(self):
        return self.filter(is_deleted=True)

    def soft_delete(self) -> int:
        return self.update(is_deleted=True, deleted_at=timezone.now())


class LiveManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Default manager: only rows that are not soft-deleted."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


AllObjectsManager = models.Manager.from_queryset(SoftDeleteQuerySet)
