from django.db import models
from django.utils import timezone


class EscalationRun(models.Model):
    SOURCE_CHOICES = [
        ('timer', 'Scheduled'),
        ('http', 'On demand (HTTP)'),
        ('command', 'On demand (command)'),
    ]
    OUTCOME_CHOICES = [
        ('running', 'Running'),
        ('done', 'Done'),
        ('skipped', 'Skipped (not configured)'),
        ('no_rules', 'No active rules'),
        ('failed', 'Failed'),
    ]

    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='timer')
    outcome = models.CharField(max_length=20, choices=OUTCOME_CHOICES, default='running')
    started_at = models.DateTimeField(default=timezone.now)
    finished_at = models.DateTimeField(null=True, blank=True)
    checked = models.PositiveIntegerField(default=0)
    escalated = models.PositiveIntegerField(default=0)
    error = models.TextField(blank=True)

    class Meta:
        ordering = ['-started_at', '-id']

    def __str__(self):
        return f"{self.get_source_display()} run at {self.started_at:%Y-%m-%d %H:%M} ({self.outcome})"

    def as_dict(self):
        return {
            "id": self.id,
            "source": self.source,
            "outcome": self.outcome,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "checked": self.checked,
            "escalated": self.escalated,
            "error": self.error,
        }
