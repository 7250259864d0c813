# ledger_service/app/tasks/publish_ledger_event.py
import json
import logging
from typing import Optional

import redis

from app.core.celery_config import celery_app
from app.core.config import settings
from app.schemas.ledger_event_schema import LedgerEventSchema
from app.models.ledger_event_model import LedgerEventModel
from app.utils.celery_db_helper import get_celery_db_session

logger = logging.getLogger(__name__)


def _redis_client():
    return redis.Redis.from_url(settings.redis_url, socket_timeout=2)


def store_and_broadcast(db, redis_conn, user_id: int, event_type: str,
                        reference_id: Optional[int], payload: dict) -> LedgerEventModel:
    """Persist the event for audit, then fan it out on the ledger events channel."""
    event_data = LedgerEventSchema(user_id=user_id, event_type=event_type, reference_id=reference_id, payload=payload)
    event_type = event_data.event_type.value
    event = LedgerEventModel(
        user_id=event_data.user_id,
        event_type=event_type,
        reference_id=event_data.reference_id,
        payload=json.dumps(event_data.payload, default=str),
    )
    db.add(event)
    db.commit()

    message = json.dumps({
        "type": event_type,
        "user_id": user_id,
        "reference_id": reference_id,
        "data": payload,
        "timestamp": event.timestamp.isoformat() if event.timestamp else None,
    }, default=str)
    receivers = redis_conn.publish(settings.ledger_events_channel, message)
    logger.info(f"Ledger event {event_type} for user {user_id} delivered to {receivers} subscribers")
    return event


@celery_app.task(name="publish_ledger_event_task", bind=True, max_retries=3, default_retry_delay=5)
def publish_ledger_event_task(self, user_id: int, event_type: str, reference_id: Optional[int] = None,
                              payload: Optional[dict] = None):
    db = get_celery_db_session()
    try:
        store_and_broadcast(db, _redis_client(), user_id, event_type, reference_id, payload or {})
    except redis.RedisError as e:
        # Event row is already committed; the broadcast is best-effort
        logger.warning(f"Broadcast of {event_type} for user {user_id} failed: {e}")
    except Exception as e:
        db.rollback()
        logger.error(f"Error storing ledger event {event_type} for user {user_id}: {e}")
        raise self.retry(exc=e)
    finally:
        db.close()
