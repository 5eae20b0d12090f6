import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "mandi_project.settings")

# Runs payment notifications, the outbox sweep and balance recomputes
celery_app = Celery("mandi_project")

# Broker, eager mode and the beat schedule all come from CELERY_* settings
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

celery_app.autodiscover_tasks(["ledger_core"])
