from django.core.management.base import BaseCommand, CommandError
from rest_framework.exceptions import ValidationError

from studycore.config import get_rules
from studycore.domain.enums import DIFFICULTY_LABELS
from studycore.services.reviews import due_reviews
from studycore.utils.time import to_local_iso


class Command(BaseCommand):
    help = "List a user's review tasks that are due, most overdue first"

    def add_arguments(self, parser):
        parser.add_argument("owner_id", help="UUID of the task owner")
        parser.add_argument(
            "--until", default=None, help="ISO-8601 cut-off (defaults to now)"
        )

    def handle(self, *args, **options):
        owner_id = options["owner_id"]
        tz = get_rules().tz

        try:
            due = due_reviews(owner_id, until=options.get("until"))
        except ValidationError as e:
            raise CommandError(f"Invalid arguments: {e.detail}")

        if not due:
            self.stdout.write(self.style.SUCCESS("No reviews due"))
            return

        for item in due:
            self.stdout.write(
                f"{item.id}  {item.subject}  level={item.review_level}  "
                f"difficulty={DIFFICULTY_LABELS.get(item.difficulty_rating, item.difficulty_rating)}  "
                f"due={to_local_iso(item.next_review_at, tz)}"
            )
        self.stdout.write(self.style.SUCCESS(f"{len(due)} review(s) due"))
