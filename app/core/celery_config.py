# ledger_service/app/core/celery_config.py
import logging

from celery import Celery

from app.core.config import settings

logger = logging.getLogger(__name__)

# Create Celery app with Redis broker
celery_app = Celery(
    "ledger_service",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_retry_delay=5,  # seconds
    task_max_retries=3,
    task_reject_on_worker_lost=True,
    task_ignore_result=True,
    # Publishing happens on the request path; a dead broker must fail fast
    task_publish_retry=False,
    broker_connection_timeout=2,
    broker_connection_retry_on_startup=True,
    timezone="UTC",
    enable_utc=True,
)

# Auto-discover tasks from the 'app.tasks' module
celery_app.autodiscover_tasks(["app.tasks"])

logger.info(f"Celery config loaded: broker {settings.celery_broker_url}")
