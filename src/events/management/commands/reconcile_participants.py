# src/events/management/commands/reconcile_participants.py

import typing as t
from uuid import UUID

from django.core.management.base import BaseCommand, CommandError

from events.exceptions import EventNotFound
from events.service import capacity_ledger


class Command(BaseCommand):
    help = "Recompute events' participant counters from their confirmed and attended registrations."

    def add_arguments(self, parser: t.Any) -> None:
        """Add arguments to this command."""
        parser.add_argument(
            "--event",
            type=UUID,
            default=None,
            help="Only reconcile the event with this id.",
        )

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Handle."""
        event_id: UUID | None = options["event"]
        if event_id is None:
            count = capacity_ledger.reconcile_all()
            self.stdout.write(self.style.SUCCESS(f"Reconciled {count} events."))
            return

        try:
            participants = capacity_ledger.reconcile(event_id)
        except EventNotFound as e:
            raise CommandError(f"Event {event_id} does not exist.") from e
        self.stdout.write(self.style.SUCCESS(f"Event {event_id} has {participants} participants."))
