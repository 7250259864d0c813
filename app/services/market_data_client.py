# ledger_service/app/services/market_data_client.py
import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

import httpx

from app.core.config import Settings, settings as default_settings
from app.utils.rate_limiter import RequestThrottle
from app.utils.safe_converters import normalize_code, safe_convert_decimal

logger = logging.getLogger(__name__)

COIN_IDS: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "ADA": "cardano",
    "DOT": "polkadot",
    "LINK": "chainlink",
    "LTC": "litecoin",
    "BNB": "binancecoin",
    "SOL": "solana",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
}


class MarketDataError(Exception):
    pass


class MarketDataClient:
    """Spot prices from a CoinGecko-compatible ``/simple/price`` endpoint.

    Only the API layer calls this, and never from inside a ledger transaction.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        throttle: Optional[RequestThrottle] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.config = config or default_settings
        self.throttle = throttle or RequestThrottle(
            min_interval=self.config.market_data_min_interval,
            retry_delay=self.config.market_data_retry_delay,
            max_retries=self.config.market_data_max_retries,
        )
        headers = {}
        if self.config.market_data_api_key:
            headers["x-cg-demo-api-key"] = self.config.market_data_api_key
        self.http = http_client or httpx.Client(
            base_url=self.config.market_data_url,
            timeout=self.config.market_data_timeout,
            headers=headers,
        )

    def _fetch(self, coin_ids: Iterable[str]) -> dict:
        def _request():
            response = self.http.get(
                "/simple/price",
                params={"ids": ",".join(coin_ids), "vs_currencies": self.config.quote_currency.lower()},
            )
            response.raise_for_status()
            return response.json()

        try:
            return self.throttle.call(_request)
        except httpx.HTTPError as e:
            logger.error(f"Error fetching price data: {e}")
            raise MarketDataError(f"Market data unavailable: {e}") from e

    def get_prices(self, symbols: Iterable[str]) -> Dict[str, Decimal]:
        wanted = {}
        for symbol in symbols:
            symbol = normalize_code(symbol)
            if symbol not in COIN_IDS:
                raise MarketDataError(f"No market data for {symbol}")
            wanted[COIN_IDS[symbol]] = symbol

        data = self._fetch(wanted.keys())
        quote_key = self.config.quote_currency.lower()
        prices = {}
        for coin_id, symbol in wanted.items():
            price = safe_convert_decimal((data.get(coin_id) or {}).get(quote_key))
            if price is None:
                raise MarketDataError(f"No {quote_key} price returned for {symbol}")
            prices[symbol] = price
        return prices

    def get_price(self, symbol: str) -> Decimal:
        return self.get_prices([symbol])[normalize_code(symbol)]

    def close(self):
        self.http.close()
