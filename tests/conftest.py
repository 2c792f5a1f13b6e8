import re
from datetime import timedelta

import pytest
from django.utils import timezone

from escalations.exceptions import GraphError
from escalations.stores import StoreConfig


class FakeGraphClient:
    """Stands in for GraphClient: serves list items from memory and records writes."""

    def __init__(self, rules=None, tickets=None, comments=None):
        self.rules = rules or []
        self.tickets = tickets or []
        self.comments = comments or {}
        self.fail_lists = set()
        self.fail_patch = False
        self.fail_post = False
        self.gets = []
        self.patches = []
        self.posts = []

    def get(self, path, params=None):
        self.gets.append((path, params))
        list_id = re.search(r"/lists/([^/]+)/items", path).group(1)
        if list_id in self.fail_lists:
            raise GraphError(f"GET {path} returned 503", status_code=503)
        if list_id == "rules":
            return {"value": self.rules}
        if list_id == "tickets":
            return {"value": self.tickets}
        if list_id == "comments":
            ticket_id = re.search(r"eq '([^']*)'", params["$filter"]).group(1)
            return {"value": self.comments.get(ticket_id, [])}
        raise GraphError(f"GET {path} returned 404", status_code=404)

    def patch(self, path, payload):
        if self.fail_patch:
            raise GraphError(f"PATCH {path} returned 500", status_code=500)
        self.patches.append((path, payload))
        return {}

    def post(self, path, payload):
        if self.fail_post:
            raise GraphError(f"POST {path} returned 500", status_code=500)
        self.posts.append((path, payload))
        return {}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = b"" if payload is None else b"{}"

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses=None, token_response=None):
        self.headers = {}
        self.responses = list(responses or [])
        self.token_response = token_response or FakeResponse(payload={"access_token": "tok-1", "expires_in": 3600})
        self.token_requests = 0
        self.requests = []

    def post(self, url, data=None, timeout=None):
        self.token_requests += 1
        return self.token_response

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.requests.append((method, url, params, json, headers))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class NonJsonResponse(FakeResponse):
    def __init__(self, status_code=200, text="<html>gateway</html>"):
        super().__init__(status_code=status_code, payload={}, text=text)
        self.content = text.encode()

    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def rule_item(item_id="1", **fields):
    base = {
        "Title": f"Rule {item_id}",
        "TriggerType": "no_update",
        "TriggerHours": 24,
        "ActionType": "notify",
        "NotifyEmail": "lead@example.com",
    }
    base.update(fields)
    return {"id": item_id, "fields": base}


def ticket_item(item_id="10", now=None, created_hours=48, modified_hours=25, **fields):
    now = now or timezone.now()
    base = {
        "TicketNumber": f"T-{item_id}",
        "Title": "Printer on fire",
        "Status": "New",
        "Priority": "Normal",
        "ProblemType": "IT",
        "AssignedTo": None,
        "Created": (now - timedelta(hours=created_hours)).isoformat(),
        "Modified": (now - timedelta(hours=modified_hours)).isoformat(),
        "EscalatedAt": None,
    }
    base.update(fields)
    return {"id": item_id, "fields": base}


@pytest.fixture
def now():
    return timezone.now().replace(microsecond=0)


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def store_config():
    return StoreConfig(
        site_id="site",
        tickets_list_id="tickets",
        escalation_list_id="rules",
        comments_list_id="comments",
    )


@pytest.fixture
def graph():
    return FakeGraphClient()


@pytest.fixture
def list_settings(settings):
    settings.SHAREPOINT_SITE_ID = "site"
    settings.TICKETS_LIST_ID = "tickets"
    settings.ESCALATION_LIST_ID = "rules"
    settings.COMMENTS_LIST_ID = "comments"
    settings.APP_URL = "https://tickets.example.com"
    return settings
