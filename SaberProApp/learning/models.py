"""Learning domain models: Homework, Question, Submission, Answer, Grade."""

import uuid

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator

from SaberProApp.core.choices import QuestionType, SubmissionState
from SaberProApp.courses.models import Subject
from SaberProApp.courses.querysets import HomeworkQuerySet, SubmissionQuerySet, GradeQuerySet
from SaberProApp.users.models import Student, Teacher

from simple_history.models import HistoricalRecords


class Homework(models.Model):
    """An assignment of a subject with ordered questions and a deadline."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    subject = models.ForeignKey(Subject, on_delete=models.CASCADE, related_name="homeworks")
    teacher = models.ForeignKey(Teacher, on_delete=models.CASCADE, related_name="homeworks")
    due_date = models.DateTimeField()
    allow_file_upload = models.BooleanField(default=False)
    total_points = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = HomeworkQuerySet.as_manager()

    def __str__(self) -> str:
        return self.title


class Question(models.Model):
    """A question of a homework; ``options`` is a JSON list of ``{"id", "text"}``."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    homework = models.ForeignKey(Homework, on_delete=models.CASCADE, related_name="questions")
    order = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    text = models.TextField()
    type = models.CharField(max_length=20, choices=QuestionType.choices)
    points = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    options = models.JSONField(blank=True, null=True)
    correct_answer = models.CharField(max_length=500, blank=True, null=True)

    class Meta:
        ordering = ["order"]
        constraints = [
            models.UniqueConstraint(fields=["homework", "order"], name="uq_question_homework_order"),
        ]

    def option_ids(self) -> set[str]:
        return {str(opt.get("id")) for opt in (self.options or [])}


class Submission(models.Model):
    """A student's one-time answer set for a homework (unique per homework+student)."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    homework = models.ForeignKey(Homework, on_delete=models.CASCADE, related_name="submissions")
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="submissions")
    status = models.CharField(max_length=16, choices=SubmissionState.choices, default=SubmissionState.SUBMITTED)
    file_url = models.URLField(max_length=500, blank=True, null=True)
    submitted_at = models.DateTimeField(auto_now_add=True)
    history = HistoricalRecords()

    objects = SubmissionQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["homework", "student"], name="uq_submission_homework_student"),
        ]


class Answer(models.Model):
    """An answer to one question inside a submission."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    submission = models.ForeignKey(Submission, on_delete=models.CASCADE, related_name="answers")
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name="answers")
    answer_text = models.TextField(blank=True, null=True)
    answer_option = models.CharField(max_length=100, blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["submission", "question"], name="uq_answer_submission_question"),
        ]


class Grade(models.Model):
    """A teacher's evaluation (0–100) of a submission."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    submission = models.OneToOneField(Submission, on_delete=models.CASCADE, related_name="grade")
    teacher = models.ForeignKey(Teacher, on_delete=models.SET_NULL, null=True, related_name="grades")
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="grades")
    score = models.FloatField(validators=[MinValueValidator(0), MaxValueValidator(100)])
    feedback = models.TextField(blank=True, null=True)
    graded_at = models.DateTimeField()
    history = HistoricalRecords()

    objects = GradeQuerySet.as_manager()
