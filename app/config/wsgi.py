"""
WSGI config for the webhook reconciler.

Gunicorn serves the webhook endpoint through this callable. Webhook handling
is synchronous (each request reconciles inside one database transaction), so
WSGI is the primary deployment target and ASGI is kept for parity.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
