from django.core.management.base import BaseCommand
from django.db.models import Avg, Count, Q

from SaberProApp.core.choices import EnrollmentStatus
from SaberProApp.courses.models import Subject
from SaberProApp.learning.models import Grade, Submission


class Command(BaseCommand):
    help = "Print per-subject performance: approved students, average grade and submission rate."

    def add_arguments(self, parser):
        parser.add_argument("--code", help="Only report the subject with this code.")

    def handle(self, *args, **options):
        subjects = Subject.objects.annotate(
            students=Count("enrollments", filter=Q(enrollments__status=EnrollmentStatus.APPROVED), distinct=True),
            homework_count=Count("homeworks", distinct=True),
        ).order_by("name")
        if options.get("code"):
            subjects = subjects.filter(code=options["code"])

        reported = 0
        for subject in subjects:
            average = Grade.objects.filter(submission__homework__subject=subject).aggregate(avg=Avg("score"))["avg"]
            submitted = Submission.objects.filter(homework__subject=subject).count()
            expected = subject.students * subject.homework_count
            rate = (submitted / expected * 100) if expected else 0.0
            self.stdout.write(
                f"{subject.code}\t{subject.name}\tstudents={subject.students}\t"
                f"average={average or 0:.1f}\tsubmission_rate={rate:.1f}%"
            )
            reported += 1
        self.stdout.write(self.style.SUCCESS(f"Reported {reported} subjects"))
