import json
from unittest.mock import Mock

import pytest
import redis
from pydantic import ValidationError as PydanticValidationError

from app.core.config import Settings
from app.core.enums import LedgerEvent
from app.models.ledger_event_model import LedgerEventModel
from app.services.notification_service import LedgerNotifier
from app.tasks.publish_ledger_event import store_and_broadcast


class TestLedgerNotifier:
    def test_disabled_sends_nothing(self):
        celery_app = Mock()
        notifier = LedgerNotifier(Settings(enable_notifications=False), celery_app=celery_app)

        assert notifier.publish(LedgerEvent.TRADE_EXECUTED, 1, {"id": 1}, 1) is False
        celery_app.send_task.assert_not_called()

    def test_sends_task_by_name(self, notifier, celery_app):
        assert notifier.publish(LedgerEvent.ORDER_CANCELLED, 4, {"id": 9}, 9) is True
        celery_app.send_task.assert_called_once_with(
            "publish_ledger_event_task", args=[4, "ORDER_CANCELLED", 9, {"id": 9}]
        )

    def test_broker_failure_is_swallowed(self, notifier, celery_app):
        celery_app.send_task.side_effect = ConnectionError("refused")
        assert notifier.publish(LedgerEvent.FUNDS_WITHDRAWN, 1, {}) is False


class TestPublishLedgerEventTask:
    def test_stores_and_publishes(self, db, config):
        redis_conn = Mock()
        redis_conn.publish.return_value = 2

        event = store_and_broadcast(db, redis_conn, 5, "TRADE_EXECUTED", 11, {"total": "200"})

        stored = db.query(LedgerEventModel).one()
        assert stored.id == event.id
        assert stored.event_type == "TRADE_EXECUTED"
        assert json.loads(stored.payload) == {"total": "200"}

        channel, message = redis_conn.publish.call_args[0]
        assert channel == config.ledger_events_channel
        body = json.loads(message)
        assert body["type"] == "TRADE_EXECUTED"
        assert body["user_id"] == 5
        assert body["reference_id"] == 11
        assert body["data"] == {"total": "200"}

    def test_event_kept_when_redis_down(self, db):
        redis_conn = Mock()
        redis_conn.publish.side_effect = redis.ConnectionError("down")

        with pytest.raises(redis.ConnectionError):
            store_and_broadcast(db, redis_conn, 5, "POSITION_CLOSED", 3, {})

        assert db.query(LedgerEventModel).count() == 1

    def test_unknown_event_type_rejected(self, db):
        redis_conn = Mock()

        with pytest.raises(PydanticValidationError):
            store_and_broadcast(db, redis_conn, 5, "NOT_AN_EVENT", None, {})

        assert db.query(LedgerEventModel).count() == 0
        redis_conn.publish.assert_not_called()
