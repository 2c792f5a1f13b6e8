# escalations/management/commands/check_escalations.py

import json

from django.core.management.base import BaseCommand, CommandError

from escalations.escalation import record_run
from escalations.exceptions import EscalationError


class Command(BaseCommand):
    help = 'Runs one escalation check over the open tickets'

    def add_arguments(self, parser):
        parser.add_argument('--json', action='store_true', help='Print the run summary as JSON')

    def handle(self, *args, **options):
        try:
            result = record_run('command')
        except EscalationError as e:
            raise CommandError(f"Escalation check failed: {e}") from e

        if options['json']:
            self.stdout.write(json.dumps(result.as_dict()))
        elif result.skipped:
            self.stdout.write("List store not configured; escalation check skipped")
        elif result.no_rules:
            self.stdout.write("No active escalation rules")
        else:
            self.stdout.write(self.style.SUCCESS(
                f"Checked {result.checked} tickets, escalated {result.escalated}"
            ))
