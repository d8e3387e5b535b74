# backend/asgi.py
"""
PATH: backend/asgi.py

ASGI entrypoint for the retail ledger API.
Falls back to dev settings unless DJANGO_SETTINGS_MODULE is exported by the host.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_asgi_application()
