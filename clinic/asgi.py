"""
ASGI config for the clinic project.

Billing is request/response only, so the plain Django ASGI handler is
enough; no WebSocket routing is mounted.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clinic.settings")

application = get_asgi_application()
