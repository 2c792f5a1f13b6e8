# escalations/constants.py

from datetime import timedelta

# Tickets in these states are never escalation candidates
TERMINAL_STATUSES = frozenset({'Resolved', 'Closed'})

TRIGGER_NO_RESPONSE = 'no_response'
TRIGGER_NO_UPDATE = 'no_update'
TRIGGER_APPROACHING_SLA = 'approaching_sla'

TRIGGER_TYPES = (TRIGGER_NO_RESPONSE, TRIGGER_NO_UPDATE, TRIGGER_APPROACHING_SLA)

ACTION_NOTIFY = 'notify'
ACTION_ESCALATE_PRIORITY = 'escalate_priority'
ACTION_REASSIGN = 'reassign'
ACTION_ESCALATE_AND_NOTIFY = 'escalate_and_notify'

ACTION_TYPES = (ACTION_NOTIFY, ACTION_ESCALATE_PRIORITY, ACTION_REASSIGN, ACTION_ESCALATE_AND_NOTIFY)

DEFAULT_TRIGGER_HOURS = 24
DEFAULT_SORT_ORDER = 100

# A ticket acted on within this window is left alone for the run
ESCALATION_COOLDOWN = timedelta(hours=1)

# Page size requested from the list store per fetch
FETCH_LIMIT = 500

ESCALATION_GROUP = 'escalations'
