"""
Real-Time Data Sources Module

This module wraps the external REST services behind the chat's data commands:
current weather (OpenWeatherMap), news headlines (NewsAPI), stock quotes
(Alpha Vantage) and currency exchange rates (exchangerate-api.com).

Every failure, whether a missing credential, a network problem, a rejected
request or an unexpected payload, is reported as a DataFetchError so callers
have a single failure mode to handle.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from realtime_chat.logging_hygiene import sanitize_dict, sanitize_text

logger = logging.getLogger(__name__)

WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
NEWS_URL = "https://newsapi.org/v2/everything"
STOCK_URL = "https://www.alphavantage.co/query"
EXCHANGE_URL = "https://api.exchangerate-api.com/v4/latest/{base}"

MAX_NEWS_ARTICLES = 5
REQUEST_TIMEOUT = 10

CURRENCY_CODE = re.compile(r"[A-Za-z]{3}")


class DataFetchError(Exception):
    """Raised when an external data fetch fails for any reason."""

    def __init__(self, message: str, service: Optional[str] = None):
        self.message = message
        self.service = service
        super().__init__(self.message)


@dataclass(frozen=True)
class WeatherReport:
    temperature: float
    conditions: str
    humidity: float
    wind_speed: float


@dataclass(frozen=True)
class NewsArticle:
    title: str
    description: Optional[str]
    source: Optional[str]
    url: Optional[str]


@dataclass(frozen=True)
class StockQuote:
    price: str
    change: str
    change_percent: str


@dataclass(frozen=True)
class ExchangeRate:
    rate: float
    last_updated: str


class RealTimeDataClient:
    """Client for the live data services used by slash commands."""

    def __init__(
        self,
        weather_api_key: Optional[str] = None,
        news_api_key: Optional[str] = None,
        stock_api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.weather_api_key = weather_api_key
        self.news_api_key = news_api_key
        self.stock_api_key = stock_api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get_json(self, service: str, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        logger.debug(f"Fetching {service} data: {url} {sanitize_dict(params or {})}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            # Request URLs carry API keys in the query string
            message = sanitize_text(str(e))
            logger.warning(f"{service} request failed: {message}")
            raise DataFetchError(message, service) from e
        except ValueError as e:
            raise DataFetchError(f"invalid JSON response: {e}", service) from e

    @staticmethod
    def _require_key(service: str, key: Optional[str], env_var: str) -> str:
        if not key:
            raise DataFetchError(f"{service} API key is not configured (set {env_var})", service)
        return key

    def get_weather(self, city: str) -> WeatherReport:
        """Fetch current weather for a city in metric units."""
        try:
            key = self._require_key("weather", self.weather_api_key, "WEATHER_API_KEY")
            data = self._get_json(
                "weather", WEATHER_URL, {"q": city, "appid": key, "units": "metric"}
            )
            return WeatherReport(
                temperature=data["main"]["temp"],
                conditions=data["weather"][0]["description"],
                humidity=data["main"]["humidity"],
                wind_speed=data["wind"]["speed"],
            )
        except DataFetchError as e:
            raise DataFetchError(f"Weather data fetch failed: {e.message}", "weather") from e
        except (KeyError, IndexError, TypeError) as e:
            raise DataFetchError(
                f"Weather data fetch failed: unexpected response ({e!r})", "weather"
            ) from e

    def get_news(self, topic: str) -> List[NewsArticle]:
        """Fetch up to five recent articles about a topic."""
        try:
            key = self._require_key("news", self.news_api_key, "NEWS_API_KEY")
            data = self._get_json(
                "news", NEWS_URL, {"q": topic, "apiKey": key, "pageSize": MAX_NEWS_ARTICLES}
            )
            if data.get("status") == "error":
                raise DataFetchError(data.get("message", "unknown error"), "news")
            return [
                NewsArticle(
                    title=article["title"],
                    description=article.get("description"),
                    source=(article.get("source") or {}).get("name"),
                    url=article.get("url"),
                )
                for article in data["articles"][:MAX_NEWS_ARTICLES]
            ]
        except DataFetchError as e:
            raise DataFetchError(f"News data fetch failed: {e.message}", "news") from e
        except (KeyError, TypeError, AttributeError) as e:
            raise DataFetchError(
                f"News data fetch failed: unexpected response ({e!r})", "news"
            ) from e

    def get_stock_price(self, symbol: str) -> StockQuote:
        """Fetch the latest global quote for a ticker symbol."""
        try:
            key = self._require_key("stock", self.stock_api_key, "ALPHA_VANTAGE_API_KEY")
            data = self._get_json(
                "stock",
                STOCK_URL,
                {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": key},
            )
            # Alpha Vantage reports throttling and bad symbols with HTTP 200
            for field in ("Error Message", "Note", "Information"):
                if field in data:
                    raise DataFetchError(data[field], "stock")
            quote = data["Global Quote"]
            if not quote:
                raise DataFetchError(f"no quote found for {symbol}", "stock")
            return StockQuote(
                price=quote["05. price"],
                change=quote["09. change"],
                change_percent=quote["10. change percent"],
            )
        except DataFetchError as e:
            raise DataFetchError(f"Stock data fetch failed: {e.message}", "stock") from e
        except (KeyError, TypeError) as e:
            raise DataFetchError(
                f"Stock data fetch failed: unexpected response ({e!r})", "stock"
            ) from e

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        """Fetch the exchange rate between two currency codes."""
        base = from_currency.upper()
        target = to_currency.upper()
        try:
            for code in (base, target):
                if not CURRENCY_CODE.fullmatch(code):
                    raise DataFetchError(f"invalid currency code {code!r}", "exchange")
            data = self._get_json("exchange", EXCHANGE_URL.format(base=base))
            rates = data["rates"]
            if target not in rates:
                raise DataFetchError(f"unknown currency code {target}", "exchange")
            return ExchangeRate(rate=rates[target], last_updated=data["date"])
        except DataFetchError as e:
            raise DataFetchError(f"Exchange rate fetch failed: {e.message}", "exchange") from e
        except (KeyError, TypeError) as e:
            raise DataFetchError(
                f"Exchange rate fetch failed: unexpected response ({e!r})", "exchange"
            ) from e
