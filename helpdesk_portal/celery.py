import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "helpdesk_portal.settings")

app = Celery("helpdesk_portal")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "check-escalations-hourly": {
        "task": "escalations.tasks.run_escalation_check_task",
        "schedule": crontab(minute=0),   # every hour on the hour
    },
}
