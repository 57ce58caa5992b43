"""
Data Sources Tests Module

Tests for the real-time data client. The HTTP session is mocked, so no
external service is contacted.
"""

from unittest.mock import MagicMock

import pytest
import requests

from realtime_chat.data_sources import (
    EXCHANGE_URL,
    NEWS_URL,
    STOCK_URL,
    WEATHER_URL,
    DataFetchError,
    ExchangeRate,
    NewsArticle,
    RealTimeDataClient,
    StockQuote,
    WeatherReport,
)


def make_session(payload=None, error=None):
    """Build a mock requests.Session whose get() returns payload or raises error."""
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        session.get.return_value = response
    return session


WEATHER_PAYLOAD = {
    "main": {"temp": 18.5, "humidity": 72},
    "weather": [{"description": "light rain"}],
    "wind": {"speed": 4.1},
}


class TestWeather:
    def test_get_weather(self):
        """Test that a weather payload is parsed and requested in metric units."""
        session = make_session(WEATHER_PAYLOAD)
        client = RealTimeDataClient(weather_api_key="weather-key", session=session)

        report = client.get_weather("paris")

        assert report == WeatherReport(18.5, "light rain", 72, 4.1)
        session.get.assert_called_once_with(
            WEATHER_URL,
            params={"q": "paris", "appid": "weather-key", "units": "metric"},
            timeout=10,
        )

    def test_missing_key_fails_cleanly(self):
        """Test that a missing weather key fails without a request."""
        session = make_session(WEATHER_PAYLOAD)
        client = RealTimeDataClient(session=session)

        with pytest.raises(DataFetchError, match="WEATHER_API_KEY"):
            client.get_weather("paris")

        session.get.assert_not_called()

    def test_malformed_payload(self):
        """Test that an unexpected weather payload becomes a DataFetchError."""
        client = RealTimeDataClient(
            weather_api_key="weather-key", session=make_session({"main": {"temp": 1}})
        )

        with pytest.raises(DataFetchError, match="Weather data fetch failed"):
            client.get_weather("paris")

    def test_http_error_hides_api_key(self):
        """Test that HTTP error text never exposes the API key."""
        error = requests.HTTPError(
            "401 Client Error: Unauthorized for url: "
            "https://api.openweathermap.org/data/2.5/weather?q=paris&appid=secret123&units=metric"
        )
        client = RealTimeDataClient(weather_api_key="secret123", session=make_session(error=error))

        with pytest.raises(DataFetchError) as exc_info:
            client.get_weather("paris")

        assert "secret123" not in exc_info.value.message
        assert "401" in exc_info.value.message
        assert exc_info.value.service == "weather"

    def test_network_error(self):
        """Test that a network failure becomes a DataFetchError."""
        client = RealTimeDataClient(
            weather_api_key="weather-key",
            session=make_session(error=requests.ConnectionError("Network unreachable")),
        )

        with pytest.raises(DataFetchError, match="Network unreachable"):
            client.get_weather("paris")


class TestNews:
    def test_get_news_limits_to_five(self):
        """Test that at most five articles are returned."""
        articles = [
            {
                "title": f"Title {i}",
                "description": f"Description {i}",
                "source": {"name": "Wire"},
                "url": f"https://example.com/{i}",
            }
            for i in range(8)
        ]
        session = make_session({"status": "ok", "articles": articles})
        client = RealTimeDataClient(news_api_key="news-key", session=session)

        news = client.get_news("python")

        assert len(news) == 5
        assert news[0] == NewsArticle("Title 0", "Description 0", "Wire", "https://example.com/0")
        session.get.assert_called_once_with(
            NEWS_URL, params={"q": "python", "apiKey": "news-key", "pageSize": 5}, timeout=10
        )

    def test_api_error_status(self):
        """Test that a NewsAPI error status is reported."""
        session = make_session({"status": "error", "message": "Your API key is invalid."})
        client = RealTimeDataClient(news_api_key="news-key", session=session)

        with pytest.raises(DataFetchError, match="Your API key is invalid"):
            client.get_news("python")

    def test_missing_key(self):
        """Test that a missing news key is reported."""
        with pytest.raises(DataFetchError, match="NEWS_API_KEY"):
            RealTimeDataClient(session=make_session({})).get_news("python")


class TestStock:
    def test_get_stock_price(self):
        """Test that a global quote is parsed."""
        payload = {
            "Global Quote": {
                "01. symbol": "IBM",
                "05. price": "172.5000",
                "09. change": "1.2500",
                "10. change percent": "0.7299%",
            }
        }
        session = make_session(payload)
        client = RealTimeDataClient(stock_api_key="stock-key", session=session)

        quote = client.get_stock_price("IBM")

        assert quote == StockQuote("172.5000", "1.2500", "0.7299%")
        session.get.assert_called_once_with(
            STOCK_URL,
            params={"function": "GLOBAL_QUOTE", "symbol": "IBM", "apikey": "stock-key"},
            timeout=10,
        )

    def test_throttle_note(self):
        """Test that an Alpha Vantage throttle note is reported as a failure."""
        session = make_session({"Note": "API call frequency is 5 calls per minute."})
        client = RealTimeDataClient(stock_api_key="stock-key", session=session)

        with pytest.raises(DataFetchError, match="call frequency"):
            client.get_stock_price("IBM")

    def test_unknown_symbol(self):
        """Test that an empty quote is reported as an unknown symbol."""
        session = make_session({"Global Quote": {}})
        client = RealTimeDataClient(stock_api_key="stock-key", session=session)

        with pytest.raises(DataFetchError, match="no quote found for NOPE"):
            client.get_stock_price("NOPE")


class TestExchange:
    def test_get_exchange_rate(self):
        """Test that an exchange rate is read from the base currency table."""
        session = make_session({"base": "USD", "date": "2024-05-01", "rates": {"EUR": 0.93}})
        client = RealTimeDataClient(session=session)

        rate = client.get_exchange_rate("usd", "eur")

        assert rate == ExchangeRate(0.93, "2024-05-01")
        session.get.assert_called_once_with(
            EXCHANGE_URL.format(base="USD"), params=None, timeout=10
        )

    def test_unknown_target_currency(self):
        """Test that a target missing from the rate table is reported."""
        session = make_session({"date": "2024-05-01", "rates": {"EUR": 0.93}})
        client = RealTimeDataClient(session=session)

        with pytest.raises(DataFetchError, match="unknown currency code XYZ"):
            client.get_exchange_rate("USD", "XYZ")

    def test_invalid_json(self):
        """Test that a non-JSON body becomes a DataFetchError."""
        session = make_session()
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        client = RealTimeDataClient(session=session)

        with pytest.raises(DataFetchError, match="invalid JSON"):
            client.get_exchange_rate("USD", "EUR")

    @pytest.mark.parametrize("base, target", [("../x", "EUR"), ("USD", "E1R"), ("US", "EUR")])
    def test_invalid_currency_code_never_requested(self, base, target):
        """Test that a malformed currency code fails before any request is sent."""
        session = make_session({"rates": {"EUR": 0.9}, "date": "2024-01-02"})
        client = RealTimeDataClient(session=session)

        with pytest.raises(DataFetchError, match="invalid currency code"):
            client.get_exchange_rate(base, target)

        session.get.assert_not_called()
