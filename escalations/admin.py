# escalations/admin.py
from django.contrib import admin
from .models import EscalationRun


@admin.register(EscalationRun)
class EscalationRunAdmin(admin.ModelAdmin):
    list_display = ('started_at', 'source', 'outcome', 'checked', 'escalated', 'finished_at')
    list_filter = ('source', 'outcome')
    readonly_fields = ('started_at', 'finished_at', 'source', 'outcome', 'checked', 'escalated', 'error')
