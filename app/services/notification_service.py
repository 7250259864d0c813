# ledger_service/app/services/notification_service.py
import logging
from typing import Any, Dict, Optional

from app.core.config import Settings, settings as default_settings
from app.core.enums import LedgerEvent

logger = logging.getLogger(__name__)


class LedgerNotifier:
    """
    Fire-and-forget publisher for ledger events.

    Always called after the ledger transaction has committed. Delivery goes
    through Celery; a broker outage is logged and otherwise ignored.
    """

    def __init__(self, config: Optional[Settings] = None, celery_app: Optional[Any] = None):
        self.config = config or default_settings
        self.enabled = self.config.enable_notifications
        self._celery_app = celery_app

    def _get_celery_app(self):
        if self._celery_app is None:
            from app.core.celery_config import celery_app
            self._celery_app = celery_app
        return self._celery_app

    def publish(
        self,
        event: LedgerEvent,
        user_id: int,
        payload: Dict[str, Any],
        reference_id: Optional[int] = None,
    ) -> bool:
        if not self.enabled:
            logger.debug(f"Notifications disabled, dropping {event.value} for user {user_id}")
            return False
        try:
            self._get_celery_app().send_task(
                "publish_ledger_event_task",
                args=[user_id, event.value, reference_id, payload],
            )
            return True
        except Exception as e:
            logger.warning(f"Ledger event {event.value} for user {user_id} not published: {e}")
            return False
