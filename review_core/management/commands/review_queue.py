import json

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from review_core.selectors import visible_tasks
from review_core.serializers import TaskSnapshotSerializer
from review_core.workflows import Role, normalize_role


class Command(BaseCommand):
    help = "List tasks visible to a role. Optional: --user <username> --awaiting --json"

    def add_arguments(self, parser):
        parser.add_argument("--role", required=True, help="learner | accessor | iqa | eqa | admin")
        parser.add_argument("--user", default="", help="Username (required for learner/accessor)")
        parser.add_argument("--awaiting", action="store_true", help="Only tasks awaiting this role's review")
        parser.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    def handle(self, *args, **options):
        try:
            role = normalize_role(options["role"])
        except ValueError as exc:
            raise CommandError(str(exc))

        user = None
        username = (options["user"] or "").strip()
        if role in (Role.LEARNER, Role.ACCESSOR):
            if not username:
                raise CommandError(f"--user is required for role '{role.value}'")
            User = get_user_model()
            user = User.objects.filter(username=username).first()
            if user is None:
                raise CommandError(f"Unknown user: {username}")

        qs = visible_tasks(role.value, user, awaiting=options["awaiting"])
        data = TaskSnapshotSerializer(qs, many=True).data

        if options["json"]:
            self.stdout.write(json.dumps(data, indent=2))
            return

        for row in data:
            self.stdout.write(f"{row['id']}\t{row['status']}\t{row['learner']}\t{row['title']}")
        self.stdout.write(f"{len(data)} task(s)")
