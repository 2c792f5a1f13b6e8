import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils.crypto import constant_time_compare
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from escalations.escalation import record_run
from escalations.models import EscalationRun

logger = logging.getLogger(__name__)


def can_trigger(request):
    user = request.user
    if user.is_authenticated and (user.is_superuser or user.is_staff):
        return True
    key = getattr(settings, "ESCALATION_TRIGGER_KEY", "")
    supplied = request.headers.get("X-Escalation-Key", "")
    return bool(key) and constant_time_compare(key, supplied)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def run_escalation_check_view(request):
    if not can_trigger(request):
        return JsonResponse({'success': False, 'error': 'Not authorised'}, status=403)

    logger.info("Manual escalation check triggered")
    try:
        result = record_run('http')
    except Exception as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=500)

    return JsonResponse({
        'success': True,
        'message': 'Escalation check completed',
        **result.as_dict(),
    })


@require_GET
def recent_runs(request):
    if not can_trigger(request):
        return JsonResponse({'success': False, 'error': 'Not authorised'}, status=403)

    runs = EscalationRun.objects.all()[:10]
    return JsonResponse({"runs": [run.as_dict() for run in runs]})
