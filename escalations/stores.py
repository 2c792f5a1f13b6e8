# escalations/stores.py

import logging
from dataclasses import dataclass

from django.conf import settings
from django.utils import timezone

from escalations.constants import FETCH_LIMIT
from escalations.exceptions import EscalationError, StoreError
from escalations.records import EscalationRule, Ticket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreConfig:
    site_id: str = ""
    tickets_list_id: str = ""
    escalation_list_id: str = ""
    comments_list_id: str = ""

    @classmethod
    def from_settings(cls):
        return cls(
            site_id=getattr(settings, "SHAREPOINT_SITE_ID", ""),
            tickets_list_id=getattr(settings, "TICKETS_LIST_ID", ""),
            escalation_list_id=getattr(settings, "ESCALATION_LIST_ID", ""),
            comments_list_id=getattr(settings, "COMMENTS_LIST_ID", ""),
        )

    @property
    def is_configured(self):
        return bool(self.site_id and self.tickets_list_id)

    def items_path(self, list_id):
        return f"/sites/{self.site_id}/lists/{list_id}/items"


class RuleStore:
    """Reads escalation rules from the escalation list."""

    def __init__(self, client, config):
        self.client = client
        self.config = config

    def list_active_escalation_rules(self):
        if not self.config.escalation_list_id:
            logger.info("Escalation list not configured")
            return []

        path = self.config.items_path(self.config.escalation_list_id)
        try:
            response = self.client.get(path, params={"$expand": "fields", "$top": FETCH_LIMIT})
        except EscalationError as e:
            raise StoreError(f"Could not fetch escalation rules: {e}") from e

        rules = [EscalationRule.from_list_item(item) for item in response.get("value") or []]
        # sorted() is stable, so equal sort orders keep list order
        return sorted((rule for rule in rules if rule.is_active), key=lambda rule: rule.sort_order)


class TicketStore:
    """Reads open tickets and their comments, and writes escalation changes back."""

    def __init__(self, client, config, clock=timezone.now):
        self.client = client
        self.config = config
        self.clock = clock

    def list_open_tickets(self):
        path = self.config.items_path(self.config.tickets_list_id)
        try:
            response = self.client.get(path, params={"$expand": "fields", "$top": FETCH_LIMIT})
        except EscalationError as e:
            raise StoreError(f"Could not fetch tickets: {e}") from e

        tickets = [Ticket.from_list_item(item) for item in response.get("value") or []]
        return [ticket for ticket in tickets if not ticket.is_terminal]

    def list_comments(self, ticket_id):
        """Comments on a ticket; any failure reads as no comments."""
        if not self.config.comments_list_id:
            return []

        path = self.config.items_path(self.config.comments_list_id)
        params = {"$expand": "fields", "$filter": f"fields/TicketId eq '{ticket_id}'"}
        try:
            response = self.client.get(path, params=params)
        except EscalationError as e:
            logger.debug(f"Comment lookup for ticket {ticket_id} failed: {e}")
            return []
        return response.get("value") or []

    def _update_fields(self, ticket_id, fields):
        path = f"{self.config.items_path(self.config.tickets_list_id)}/{ticket_id}/fields"
        stamped_at = self.clock()
        payload = dict(fields, EscalatedAt=stamped_at.isoformat())
        try:
            self.client.patch(path, payload)
        except EscalationError as e:
            raise StoreError(f"Could not update ticket {ticket_id}: {e}") from e
        return stamped_at

    def set_priority(self, ticket_id, priority):
        return self._update_fields(ticket_id, {"Priority": priority})

    def set_assignee(self, ticket_id, assignee):
        return self._update_fields(ticket_id, {"AssignedTo": assignee})
