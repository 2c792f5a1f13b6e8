from django.apps import AppConfig


class EscalationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'escalations'
    verbose_name = 'Ticket escalations'
