"""Slash commands answered from live data instead of the model."""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from realtime_chat.data_sources import CURRENCY_CODE, DataFetchError, RealTimeDataClient
from realtime_chat.logging_hygiene import sanitize_text

logger = logging.getLogger(__name__)


class TerminalInputError(Exception):
    """Raised when user input is malformed, e.g. wrong command arguments."""

    def __init__(self, message: str, command: Optional[str] = None):
        self.message = message
        self.command = command
        super().__init__(self.message)


@dataclass(frozen=True)
class Command:
    name: str
    arguments: Tuple[str, ...]


# name -> (usage, minimum argument count, maximum argument count or None)
COMMAND_ARITY: Dict[str, Tuple[str, int, Optional[int]]] = {
    "weather": ("/weather <city>", 1, None),
    "news": ("/news <topic>", 1, None),
    "stock": ("/stock <symbol>", 1, 1),
    "exchange": ("/exchange <from> <to>", 2, 2),
}

COMMAND_HELP = (
    "/weather [city] - Get current weather",
    "/news [topic] - Get latest news",
    "/stock [symbol] - Get stock price",
    "/exchange [from] [to] - Get exchange rate",
)


def parse_command(raw_input: str) -> Optional[Command]:
    """Parse a data command from raw input.

    Returns None when the input does not start with a known command. Raises
    TerminalInputError when a known command has the wrong number of arguments,
    or when an exchange currency code is not three letters.
    """
    tokens = raw_input.split()
    if not tokens or not tokens[0].startswith("/"):
        return None

    name = tokens[0][1:].lower()
    if name not in COMMAND_ARITY:
        return None

    usage, min_args, max_args = COMMAND_ARITY[name]
    arguments = tuple(tokens[1:])
    if len(arguments) < min_args or (max_args is not None and len(arguments) > max_args):
        raise TerminalInputError(f"Usage: {usage}", command=name)
    if name == "exchange" and not all(CURRENCY_CODE.fullmatch(code) for code in arguments):
        raise TerminalInputError(f"Usage: {usage}", command=name)

    return Command(name, arguments)


class DataCommandDispatcher:
    """Routes data commands to the real-time data client and formats results."""

    def __init__(self, data_client: RealTimeDataClient):
        self.data_client = data_client
        self._handlers: Dict[str, Callable[[Command], str]] = {
            "weather": self._weather,
            "news": self._news,
            "stock": self._stock,
            "exchange": self._exchange,
        }

    def try_dispatch(self, raw_input: str) -> Optional[str]:
        """Answer a data command, or return None for ordinary chat input.

        Any failure of a recognized command is returned as an error string so
        that it is shown to the user and never reaches the model.
        """
        try:
            command = parse_command(raw_input)
        except TerminalInputError as e:
            logger.info(f"Malformed /{e.command} command: {e.message}")
            return f"Error: {e.message}"

        if command is None:
            return None

        logger.debug(f"Dispatching /{command.name} with arguments {command.arguments}")
        try:
            return self._handlers[command.name](command)
        except DataFetchError as e:
            logger.warning(f"/{command.name} failed: {e.message}")
            return f"Error: {e.message}"
        except Exception as e:
            logger.exception(f"Unexpected error while handling /{command.name}")
            return f"Error: {sanitize_text(str(e))}"

    def _weather(self, command: Command) -> str:
        city = " ".join(command.arguments)
        report = self.data_client.get_weather(city)
        return (
            f"Weather in {city}:\n"
            f"Temperature: {report.temperature}°C\n"
            f"Conditions: {report.conditions}\n"
            f"Humidity: {report.humidity}%\n"
            f"Wind Speed: {report.wind_speed} m/s"
        )

    def _news(self, command: Command) -> str:
        topic = " ".join(command.arguments)
        articles = self.data_client.get_news(topic)
        if not articles:
            return f"No news found about {topic}."

        entries = []
        for i, article in enumerate(articles, start=1):
            lines = [f"{i}. {article.title}"]
            if article.description:
                lines.append(article.description)
            if article.source:
                lines.append(f"Source: {article.source}")
            if article.url:
                lines.append(article.url)
            entries.append("\n".join(lines))
        return f"Latest news about {topic}:\n" + "\n\n".join(entries)

    def _stock(self, command: Command) -> str:
        symbol = command.arguments[0].upper()
        quote = self.data_client.get_stock_price(symbol)
        return (
            f"Stock info for {symbol}:\n"
            f"Price: ${quote.price}\n"
            f"Change: {quote.change} ({quote.change_percent})"
        )

    def _exchange(self, command: Command) -> str:
        from_currency, to_currency = (code.upper() for code in command.arguments)
        exchange = self.data_client.get_exchange_rate(from_currency, to_currency)
        return (
            f"Exchange rate {from_currency} to {to_currency}: {exchange.rate}\n"
            f"Last updated: {exchange.last_updated}"
        )
