# escalations/records.py

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from escalations.constants import DEFAULT_SORT_ORDER, DEFAULT_TRIGGER_HOURS, TERMINAL_STATUSES

logger = logging.getLogger(__name__)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 list-store timestamp into an aware datetime, or None."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(str(value))
        except ValueError:
            return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def _trigger_hours(rule_id, value):
    """Hours for a rule trigger; None when the stored value is not a usable number."""
    if not value:
        return float(DEFAULT_TRIGGER_HOURS)
    try:
        hours = float(value)
    except (TypeError, ValueError):
        hours = None
    if hours is None or not math.isfinite(hours):
        logger.warning(f"Rule {rule_id} has unusable TriggerHours {value!r}; it will never fire")
        return None
    return hours


def _sort_order(rule_id, value):
    if value is None:
        return DEFAULT_SORT_ORDER
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Rule {rule_id} has unusable SortOrder {value!r}; using {DEFAULT_SORT_ORDER}")
        return DEFAULT_SORT_ORDER


@dataclass
class EscalationRule:
    id: str
    trigger_type: Optional[str]
    action_type: Optional[str]
    title: Optional[str] = None
    trigger_hours: Optional[float] = DEFAULT_TRIGGER_HOURS
    match_priority: Optional[str] = None
    match_status: Optional[str] = None
    match_department: Optional[str] = None
    escalate_to_priority: Optional[str] = None
    notify_email: Optional[str] = None
    reassign_to_email: Optional[str] = None
    sort_order: int = DEFAULT_SORT_ORDER
    is_active: bool = True

    @property
    def label(self):
        return self.title or self.trigger_type or ""

    @classmethod
    def from_list_item(cls, item):
        fields = item.get("fields") or {}
        return cls(
            id=str(item.get("id")),
            title=fields.get("Title"),
            trigger_type=fields.get("TriggerType"),
            trigger_hours=_trigger_hours(item.get("id"), fields.get("TriggerHours")),
            match_priority=fields.get("MatchPriority"),
            match_status=fields.get("MatchStatus"),
            match_department=fields.get("MatchDepartment"),
            action_type=fields.get("ActionType"),
            escalate_to_priority=fields.get("EscalateToPriority"),
            notify_email=fields.get("NotifyEmail"),
            reassign_to_email=fields.get("ReassignToEmail"),
            sort_order=_sort_order(item.get("id"), fields.get("SortOrder")),
            is_active=fields.get("IsActive") is not False,
        )


@dataclass
class Ticket:
    id: str
    ticket_number: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    department: Optional[str] = None
    assigned_to: Optional[str] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    escalated_at: Optional[datetime] = None

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_list_item(cls, item):
        fields = item.get("fields") or {}
        return cls(
            id=str(item.get("id")),
            ticket_number=fields.get("TicketNumber"),
            title=fields.get("Title"),
            status=fields.get("Status"),
            priority=fields.get("Priority"),
            department=fields.get("ProblemType"),
            assigned_to=fields.get("AssignedTo"),
            created=parse_timestamp(fields.get("Created") or item.get("createdDateTime")),
            modified=parse_timestamp(fields.get("Modified") or item.get("lastModifiedDateTime")),
            escalated_at=parse_timestamp(fields.get("EscalatedAt")),
        )


@dataclass
class RunResult:
    checked: int = 0
    escalated: int = 0
    skipped: bool = False
    no_rules: bool = False

    @property
    def outcome(self):
        if self.skipped:
            return "skipped"
        if self.no_rules:
            return "no_rules"
        return "done"

    def as_dict(self):
        data = {"checked": self.checked, "escalated": self.escalated}
        if self.skipped:
            data["skipped"] = True
        elif self.no_rules:
            data["noRules"] = True
        return data
