# ledger_service/app/tasks/__init__.py

# Import all tasks to ensure they are registered with Celery
from .publish_ledger_event import publish_ledger_event_task

__all__ = [
    'publish_ledger_event_task',
]
