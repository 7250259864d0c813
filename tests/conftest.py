import os
import tempfile
from decimal import Decimal
from unittest.mock import Mock

import pytest

# Set up test environment FIRST, before any app imports build settings/engine
def ensure_test_env():
    """Ensure test environment variables are set."""
    required_vars = {
        'TESTING': 'true',
        'ENABLE_NOTIFICATIONS': 'false',
        'DATABASE_URL': f"sqlite:///{os.path.join(tempfile.gettempdir(), 'ledger_service_test.sqlite')}",
        'REDIS_URL': 'redis://localhost:6379/1',  # Use different DB for tests
        'CONFLICT_MAX_RETRIES': '5',
        'CONFLICT_RETRY_DELAY': '0',
        'MARKET_DATA_API_KEY': 'test_api_key_12345',
    }

    for key, default_value in required_vars.items():
        if key not in os.environ:
            os.environ[key] = default_value

ensure_test_env()

from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.session import build_engine, build_session_factory, get_db, init_db
from app.main import app
from app.services.notification_service import LedgerNotifier
from tests.factories import make_user


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite per test so worker threads can share it."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'ledger.sqlite'}")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return Settings(
        enable_notifications=False,
        conflict_max_retries=5,
        conflict_retry_delay=0,
        initial_balances={"USD": Decimal("50000"), "BTC": Decimal("1"), "ETH": Decimal("10")},
    )


@pytest.fixture
def celery_app():
    return Mock()


@pytest.fixture
def notifier(celery_app):
    return LedgerNotifier(Settings(enable_notifications=True), celery_app=celery_app)


@pytest.fixture
def funded_user(db):
    return make_user(db, {"USD": "10000", "BTC": "2"})


@pytest.fixture
def market_data_client():
    client = Mock()
    client.get_price.return_value = Decimal("1100")
    return client


@pytest.fixture
def client(session_factory, market_data_client):
    """TestClient against the per-test database; startup hooks are not run."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.market_data_client = market_data_client
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.market_data_client = None


@pytest.fixture
def sample_order_data():
    """Sample spot order payload for testing."""
    return {
        "symbol": "btc",
        "side": "buy",
        "amount": "0.5",
        "price": "45000",
    }


@pytest.fixture
def sample_position_data():
    """Sample leveraged position payload for testing."""
    return {
        "symbol": "ETH",
        "type": "long",
        "amount": "1",
        "leverage": 10,
        "entry_price": "1000",
    }
