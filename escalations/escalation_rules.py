# escalations/escalation_rules.py

import logging
from datetime import timedelta

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils import timezone

from escalations.constants import (
    ACTION_ESCALATE_AND_NOTIFY,
    ACTION_ESCALATE_PRIORITY,
    ACTION_NOTIFY,
    ACTION_REASSIGN,
    ESCALATION_GROUP,
    TRIGGER_APPROACHING_SLA,
    TRIGGER_NO_RESPONSE,
    TRIGGER_NO_UPDATE,
)

logger = logging.getLogger(__name__)


def rule_matches_ticket(rule, ticket):
    """Every condition the rule sets must equal the ticket's field exactly."""
    if rule.match_priority and rule.match_priority != ticket.priority:
        return False
    if rule.match_status and rule.match_status != ticket.status:
        return False
    if rule.match_department and rule.match_department != ticket.department:
        return False
    return True


def _elapsed(since, now, threshold):
    if since is None:
        return False
    return now - since >= threshold


def trigger_fired(rule, ticket, ticket_store, clock=timezone.now):
    """
    Decide whether the rule's time-based trigger has fired for this ticket.

    ``no_response`` needs a comment lookup and fires only for tickets without
    any comment at all. ``approaching_sla`` is reserved and never fires.
    A rule without a usable threshold never fires.
    """
    if rule.trigger_hours is None:
        return False
    try:
        threshold = timedelta(hours=rule.trigger_hours)
    except OverflowError:
        return False

    if rule.trigger_type == TRIGGER_NO_RESPONSE:
        comments = ticket_store.list_comments(ticket.id)
        if comments:
            return False
        return _elapsed(ticket.created, clock(), threshold)

    if rule.trigger_type == TRIGGER_NO_UPDATE:
        return _elapsed(ticket.modified, clock(), threshold)

    if rule.trigger_type == TRIGGER_APPROACHING_SLA:
        # No SLA model yet
        return False

    return False


def describe_trigger(rule):
    trigger = (rule.trigger_type or "").replace("_", " ")
    hours = rule.trigger_hours
    if isinstance(hours, float) and hours.is_integer():
        hours = int(hours)
    return f"{trigger} after {hours} hours"


def ticket_link(ticket):
    return f"{settings.APP_URL}?ticket={ticket.id}"


class Notifier:
    """Sends escalation alerts through Django's configured email backend."""

    def __init__(self, from_email=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def send(self, to_email, subject, body, html_body=None):
        send_mail(subject, body, self.from_email, [to_email],
                  html_message=html_body, fail_silently=False)


def send_escalation_email(notifier, to_email, ticket, rule):
    subject = f"[Escalation Alert] Ticket #{ticket.ticket_number}: {ticket.title}"
    context = {
        "ticket": ticket,
        "rule_label": rule.label,
        "trigger": describe_trigger(rule),
        "assignee": ticket.assigned_to or "Unassigned",
        "ticket_url": ticket_link(ticket),
    }
    message = f"""
    A ticket has triggered an escalation rule.

    Rule: {context['rule_label']}
    Trigger: {context['trigger']}

    Ticket #: {ticket.ticket_number}
    Title: {ticket.title}
    Status: {ticket.status}
    Priority: {ticket.priority}
    Assigned To: {context['assignee']}

    View Ticket: {context['ticket_url']}
    """
    try:
        html_message = render_to_string("escalations/escalation_alert.html", context)
        notifier.send(to_email, subject, message, html_body=html_message)
        logger.info(f"Sent escalation notification to {to_email} for ticket #{ticket.ticket_number}")
    except Exception as e:
        logger.error(f"Failed to send notification to {to_email}: {e}")


def escalate_ticket_priority(ticket_store, ticket, new_priority):
    try:
        ticket.escalated_at = ticket_store.set_priority(ticket.id, new_priority)
        ticket.priority = new_priority
        logger.info(f"Escalated ticket #{ticket.ticket_number} priority to {new_priority}")
    except Exception as e:
        logger.error(f"Failed to escalate ticket #{ticket.ticket_number}: {e}")


def reassign_ticket(ticket_store, ticket, new_assignee):
    try:
        ticket.escalated_at = ticket_store.set_assignee(ticket.id, new_assignee)
        ticket.assigned_to = new_assignee
        logger.info(f"Reassigned ticket #{ticket.ticket_number} to {new_assignee}")
    except Exception as e:
        logger.error(f"Failed to reassign ticket #{ticket.ticket_number}: {e}")


def broadcast_escalation(ticket, rule):
    """Push the escalation to websocket listeners; best effort."""
    message = {
        "ticket_id": ticket.id,
        "ticket_number": ticket.ticket_number,
        "title": ticket.title,
        "priority": ticket.priority,
        "assigned_to": ticket.assigned_to,
        "rule": rule.label,
        "action": rule.action_type,
        "escalated_at": ticket.escalated_at.isoformat() if ticket.escalated_at else None,
    }
    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        async_to_sync(channel_layer.group_send)(
            ESCALATION_GROUP,
            {"type": "escalation.message", "message": message}
        )
    except Exception as e:
        logger.warning(f"Could not broadcast escalation of ticket #{ticket.ticket_number}: {e}")


def execute_action(rule, ticket, ticket_store, notifier):
    """
    Run the rule's action against the ticket.

    A rule missing the field its action needs does nothing. Each step logs
    and swallows its own failure so the sibling step and the run continue.
    """
    action = rule.action_type

    if action == ACTION_NOTIFY:
        if rule.notify_email:
            send_escalation_email(notifier, rule.notify_email, ticket, rule)

    elif action == ACTION_ESCALATE_PRIORITY:
        if rule.escalate_to_priority:
            escalate_ticket_priority(ticket_store, ticket, rule.escalate_to_priority)

    elif action == ACTION_REASSIGN:
        if rule.reassign_to_email:
            reassign_ticket(ticket_store, ticket, rule.reassign_to_email)

    elif action == ACTION_ESCALATE_AND_NOTIFY:
        if rule.escalate_to_priority:
            escalate_ticket_priority(ticket_store, ticket, rule.escalate_to_priority)
        if rule.notify_email:
            send_escalation_email(notifier, rule.notify_email, ticket, rule)

    else:
        logger.warning(f"Rule {rule.id} has unknown action type {action!r}; nothing done")
        return

    broadcast_escalation(ticket, rule)
