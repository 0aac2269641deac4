# backend/worker/worker.py

from celery import Celery
from celery.signals import worker_ready
from backend.app.config import settings
from backend.app.core.log import configure_logging

configure_logging()

# Create Celery app
celery_app = Celery("resume_screener")
celery_app.config_from_object("backend.celeryconfig")

# Ensure tasks are imported on worker start
import backend.app.core.tasks       # noqa: F401,E402


@worker_ready.connect
def _warmup_on_ready(sender=None, **kwargs):
    """
    When the worker starts, ask the scoring model to load so the first batch
    doesn't pay the cold-start cost.
    """
    if not settings.WARMUP_ENABLED:
        return
    celery_app.send_task("warmup_llm", queue="llm", routing_key="llm")
