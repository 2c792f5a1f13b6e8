import os
import django

# Ensure settings are configured first
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "helpdesk_portal.settings")

django.setup()

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter
from channels.auth import AuthMiddlewareStack

# Import routing after settings configuration
import escalations.routing

application = ProtocolTypeRouter({
    "http": get_asgi_application(),
    "websocket": AuthMiddlewareStack(
        URLRouter(escalations.routing.websocket_urlpatterns)
    ),
})
