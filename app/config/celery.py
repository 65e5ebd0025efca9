"""
Celery configuration for the webhook reconciler.

Celery runs the out-of-band work around webhook ingestion:
- Replaying webhook events whose first processing attempt failed
- Periodic retry sweeps and cleanup of old processed events

Redis is used as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps, and the periodic
schedule lives in settings.CELERY_BEAT_SCHEDULE.

Usage:
    from payments.tasks import replay_webhook_event

    replay_webhook_event.delay(str(webhook_event.id))

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
