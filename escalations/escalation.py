# escalations/escalation.py

import logging

from django.utils import timezone

from escalations.constants import ESCALATION_COOLDOWN
from escalations.escalation_rules import Notifier, execute_action, rule_matches_ticket, trigger_fired
from escalations.graph import GraphClient
from escalations.records import RunResult
from escalations.stores import RuleStore, StoreConfig, TicketStore

logger = logging.getLogger(__name__)


class EscalationChecker:
    """One sweep of the open tickets against the active escalation rules."""

    def __init__(self, rule_store, ticket_store, notifier, clock=timezone.now):
        self.rule_store = rule_store
        self.ticket_store = ticket_store
        self.notifier = notifier
        self.clock = clock

    def recently_escalated(self, ticket):
        if not ticket.escalated_at:
            return False
        return self.clock() - ticket.escalated_at < ESCALATION_COOLDOWN

    def find_rule(self, rules, ticket):
        """First rule that both matches the ticket and has its trigger fired."""
        return next(
            (rule for rule in rules
             if rule_matches_ticket(rule, ticket)
             and trigger_fired(rule, ticket, self.ticket_store, clock=self.clock)),
            None,
        )

    def run(self):
        rules = self.rule_store.list_active_escalation_rules()
        logger.info(f"Found {len(rules)} active escalation rules")

        if not rules:
            return RunResult(no_rules=True)

        tickets = self.ticket_store.list_open_tickets()
        logger.info(f"Found {len(tickets)} open tickets")

        escalated = 0
        for ticket in tickets:
            if self.recently_escalated(ticket):
                logger.debug(f"Ticket #{ticket.ticket_number} escalated at {ticket.escalated_at}; skipping")
                continue

            rule = self.find_rule(rules, ticket)
            if rule is None:
                continue

            logger.info(f'Ticket #{ticket.ticket_number} matches rule "{rule.label}"')
            execute_action(rule, ticket, self.ticket_store, self.notifier)
            escalated += 1

        logger.info(f"Escalation check complete. Escalated {escalated} tickets.")
        return RunResult(checked=len(tickets), escalated=escalated)


def run_escalation_check(client=None, clock=None, notifier=None, config=None):
    """
    Entry point shared by the hourly task and the on-demand triggers.

    Returns a ``RunResult``. Failing to fetch rules or tickets raises
    ``StoreError``; everything narrower is handled inside the run.
    """
    logger.info("Starting escalation check...")

    config = config or StoreConfig.from_settings()
    if not config.is_configured:
        logger.warning("SharePoint configuration missing. Skipping escalation check.")
        return RunResult(skipped=True)

    client = client or GraphClient.from_settings()
    checker = EscalationChecker(
        rule_store=RuleStore(client, config),
        ticket_store=TicketStore(client, config, clock=clock or timezone.now),
        notifier=notifier or Notifier(),
        clock=clock or timezone.now,
    )
    try:
        return checker.run()
    except Exception as e:
        logger.error(f"Escalation check failed: {e}")
        raise


def record_run(source, client=None, **kwargs):
    """Run the check and keep an ``EscalationRun`` audit row, failures included."""
    from escalations.models import EscalationRun  # local import keeps the engine free of the ORM

    run = EscalationRun.objects.create(source=source)
    try:
        result = run_escalation_check(client=client, **kwargs)
    except Exception as e:
        run.outcome = 'failed'
        run.error = str(e)
        run.finished_at = timezone.now()
        run.save()
        raise

    run.outcome = result.outcome
    run.checked = result.checked
    run.escalated = result.escalated
    run.finished_at = timezone.now()
    run.save()
    return result
