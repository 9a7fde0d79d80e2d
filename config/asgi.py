"""
ASGI config for the farmland estates API.
"""
import atexit
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_asgi_application()

from services.storage import close_storage  # noqa: E402

atexit.register(close_storage)
