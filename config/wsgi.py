"""
WSGI config for the farmland estates API.
"""
import atexit
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()

from services.storage import close_storage  # noqa: E402

atexit.register(close_storage)
