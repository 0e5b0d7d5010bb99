"""
ASGI config for the loan back office.

Uvicorn uses this entry point to serve the Django application. There are
no WebSocket routes; every request is plain HTTP handled by Django.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_asgi_application()
