"""Course domain models: Subject and Enrollment."""

import uuid

from django.db import models

from simple_history.models import HistoricalRecords

from SaberProApp.core.choices import EnrollmentStatus
from SaberProApp.courses.querysets import SubjectQuerySet, EnrollmentQuerySet
from SaberProApp.users.models import Student, Teacher


class Subject(models.Model):
    """A course instructed by one teacher that students enroll in.

    Fields:
        name: Human readable subject name.
        code: Unique subject code.
        description: Optional longer text.
        start_date / end_date: Teaching period.
        teacher: FK to the instructing teacher profile.
        history: Audit history (django-simple-history).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=32, unique=True)
    description = models.TextField(blank=True, null=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    teacher = models.ForeignKey(Teacher, on_delete=models.PROTECT, related_name="subjects")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = SubjectQuerySet.as_manager()

    def __str__(self) -> str:
        return f"{self.name} [{self.code}]"


class Enrollment(models.Model):
    """Binding of a student to a subject with an approval status.

    Fields:
        student: Enrolled student profile.
        subject: Target subject.
        status: EnrollmentStatus value.
        enrolled_at / updated_at: Timestamps.
        history: Historical records.
    Constraints:
        uq_enrollment_student_subject: One enrollment per (student, subject).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="enrollments")
    subject = models.ForeignKey(Subject, on_delete=models.CASCADE, related_name="enrollments")
    status = models.CharField(max_length=16, choices=EnrollmentStatus.choices, default=EnrollmentStatus.PENDING)
    enrolled_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = EnrollmentQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["student", "subject"], name="uq_enrollment_student_subject"),
        ]

    def __str__(self) -> str:
        return f"{self.student} -> {self.subject} ({self.status})"
