import json

import pytest
from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError

from conftest import FakeGraphClient, rule_item, ticket_item
from escalations.graph import GraphClient
from escalations.models import EscalationRun
from escalations.tasks import run_escalation_check_task

pytestmark = pytest.mark.django_db


@pytest.fixture
def store(monkeypatch, list_settings, now):
    fake = FakeGraphClient(
        rules=[rule_item("r", ActionType="escalate_priority", EscalateToPriority="High")],
        tickets=[ticket_item("1", now=now), ticket_item("2", now=now, Status="Closed")],
    )
    monkeypatch.setattr(GraphClient, "from_settings", classmethod(lambda cls: fake))
    return fake


@pytest.fixture
def trigger_key(settings):
    settings.ESCALATION_TRIGGER_KEY = "s3cret"
    return "s3cret"


def test_http_trigger_requires_key_or_staff(client, store):
    response = client.post("/escalations/run/")

    assert response.status_code == 403
    assert store.gets == []


def test_http_trigger_runs_check_with_key(client, store, trigger_key):
    response = client.post("/escalations/run/", HTTP_X_ESCALATION_KEY=trigger_key)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Escalation check completed",
        "checked": 1,
        "escalated": 1,
    }
    run = EscalationRun.objects.get()
    assert (run.source, run.outcome, run.checked, run.escalated) == ("http", "done", 1, 1)


def test_http_trigger_accepts_staff_session(client, store):
    user = User.objects.create_user("agent", password="pw", is_staff=True)
    client.force_login(user)

    response = client.get("/escalations/run/")

    assert response.status_code == 200
    assert response.json()["escalated"] == 1


def test_http_trigger_reports_skipped_run(client, store, trigger_key, settings):
    settings.TICKETS_LIST_ID = ""

    response = client.post("/escalations/run/", HTTP_X_ESCALATION_KEY=trigger_key)

    assert response.status_code == 200
    assert response.json()["skipped"] is True
    assert EscalationRun.objects.get().outcome == "skipped"


def test_http_trigger_returns_500_on_fetch_failure(client, store, trigger_key):
    store.fail_lists.add("tickets")

    response = client.post("/escalations/run/", HTTP_X_ESCALATION_KEY=trigger_key)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "Could not fetch tickets" in body["error"]
    run = EscalationRun.objects.get()
    assert run.outcome == "failed"
    assert run.finished_at is not None


def test_recent_runs_lists_newest_first(client, store, trigger_key):
    client.post("/escalations/run/", HTTP_X_ESCALATION_KEY=trigger_key)
    store.rules = []
    client.post("/escalations/run/", HTTP_X_ESCALATION_KEY=trigger_key)

    response = client.get("/escalations/runs/", HTTP_X_ESCALATION_KEY=trigger_key)

    outcomes = [run["outcome"] for run in response.json()["runs"]]
    assert outcomes == ["no_rules", "done"]


def test_management_command_prints_json_summary(store, capsys):
    call_command("check_escalations", "--json")

    assert json.loads(capsys.readouterr().out) == {"checked": 1, "escalated": 1}
    assert EscalationRun.objects.get().source == "command"


def test_management_command_fails_on_fetch_error(store):
    store.fail_lists.add("rules")

    with pytest.raises(CommandError):
        call_command("check_escalations")


def test_scheduled_task_records_timer_run(store):
    assert run_escalation_check_task() == {"checked": 1, "escalated": 1}
    assert EscalationRun.objects.get().source == "timer"


def test_scheduled_task_reraises_fatal_failure(store):
    store.fail_lists.add("tickets")

    with pytest.raises(Exception, match="Could not fetch tickets"):
        run_escalation_check_task()
    assert EscalationRun.objects.get().outcome == "failed"
