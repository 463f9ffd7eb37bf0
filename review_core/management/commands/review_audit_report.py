import json

from django.core.management.base import BaseCommand

from review_core.models import Task
from review_core.workflows.reports import audit_summary


class Command(BaseCommand):
    help = "Print the EQA audit summary (counts per status, approvals, resubmissions) as JSON"

    def add_arguments(self, parser):
        parser.add_argument("--course", default="", help="Restrict to one course reference")

    def handle(self, *args, **options):
        qs = Task.objects.only("status", "resubmission_count")
        course = (options["course"] or "").strip()
        if course:
            qs = qs.filter(course_ref=course)

        self.stdout.write(json.dumps(audit_summary(qs.iterator()), indent=2))
