# ledger_service/app/core/config.py
import os
from decimal import Decimal
from typing import Dict, List


def _parse_list(raw: str) -> List[str]:
    return [item.strip().upper() for item in raw.split(",") if item.strip()]


def _parse_balances(raw: str) -> Dict[str, Decimal]:
    balances: Dict[str, Decimal] = {}
    for pair in raw.split(","):
        if ":" not in pair:
            continue
        currency, amount = pair.split(":", 1)
        balances[currency.strip().upper()] = Decimal(amount.strip())
    return balances


class Settings:
    def __init__(self, **overrides):
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./ledger.sqlite")
        self.sql_echo: bool = os.getenv("SQL_ECHO", "false").lower() == "true"
        self.host: str = "0.0.0.0"
        self.port: int = int(os.getenv("PORT", "8004"))

        # Ledger engine parameters
        self.quote_currency: str = os.getenv("QUOTE_CURRENCY", "USD").upper()
        self.supported_currencies: List[str] = _parse_list(
            os.getenv("SUPPORTED_CURRENCIES", "USD,BTC,ETH,ADA,DOT,LINK,LTC,BNB,SOL,DOGE,AVAX")
        )
        self.initial_balances: Dict[str, Decimal] = _parse_balances(
            os.getenv("INITIAL_BALANCES", "USD:50000,BTC:1,ETH:10")
        )
        self.fee_rate: Decimal = Decimal(os.getenv("FEE_RATE", "0.001"))
        self.max_leverage: int = int(os.getenv("MAX_LEVERAGE", "100"))
        self.conflict_max_retries: int = int(os.getenv("CONFLICT_MAX_RETRIES", "3"))
        self.conflict_retry_delay: float = float(os.getenv("CONFLICT_RETRY_DELAY", "0.05"))

        # Redis / Celery
        self.redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.celery_broker_url: str = os.getenv("CELERY_BROKER_URL", self.redis_url)
        self.celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", self.redis_url)
        self.ledger_events_channel: str = os.getenv("LEDGER_EVENTS_CHANNEL", "ledger.events")

        # Market data
        self.market_data_url: str = os.getenv("MARKET_DATA_URL", "https://api.coingecko.com/api/v3")
        self.market_data_api_key: str = os.getenv("MARKET_DATA_API_KEY", "")
        self.market_data_min_interval: float = float(os.getenv("MARKET_DATA_MIN_INTERVAL", "1.0"))
        self.market_data_retry_delay: float = float(os.getenv("MARKET_DATA_RETRY_DELAY", "5.0"))
        self.market_data_max_retries: int = int(os.getenv("MARKET_DATA_MAX_RETRIES", "1"))
        self.market_data_timeout: float = float(os.getenv("MARKET_DATA_TIMEOUT", "60"))

        # Feature flags
        self.enable_notifications: bool = os.getenv("ENABLE_NOTIFICATIONS", "true").lower() == "true"
        self.testing: bool = os.getenv("TESTING", "false").lower() == "true"

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)


settings = Settings()
