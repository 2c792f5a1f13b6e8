from django.urls import path
from . import views

urlpatterns = [
    path('run/', views.run_escalation_check_view, name='run_escalation_check'),
    path('runs/', views.recent_runs, name='recent_escalation_runs'),
]
