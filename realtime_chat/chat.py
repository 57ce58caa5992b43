"""Core chat loop: data commands, rate-limited model calls and conversation history."""

import logging
from enum import Enum
from typing import Callable, Optional

from realtime_chat.commands import COMMAND_HELP, DataCommandDispatcher
from realtime_chat.conversation import ConversationState, Turn
from realtime_chat.data_sources import RealTimeDataClient
from realtime_chat.logging_hygiene import sanitize_text
from realtime_chat.provider import DEFAULT_MODEL, ModelClient
from realtime_chat.rate_limiter import FixedWindowRateLimiter, RateLimitExceeded
from realtime_chat.retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    ProviderError,
    RetryExecutor,
)

EXIT_KEYWORD = "exit"
MAX_INPUT_LENGTH = 1000
QUOTA_HINT = "Please check your API quota and billing status."

LineSource = Callable[[], Optional[str]]

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


def console_line_source(prompt: str = "\nYou: ") -> LineSource:
    """Read lines from stdin; end of input is reported as None."""

    def next_line() -> Optional[str]:
        try:
            return input(prompt)
        except EOFError:
            return None

    return next_line


class ChatOrchestrator:
    """Sequential chat loop for one session.

    Each input is fully handled, including retries and data fetches, before
    the next one is read.
    """

    def __init__(
        self,
        model_client: ModelClient,
        dispatcher: DataCommandDispatcher,
        executor: RetryExecutor,
        conversation: Optional[ConversationState] = None,
        output: Callable[[str], None] = print,
    ):
        self.model_client = model_client
        self.dispatcher = dispatcher
        self.executor = executor
        self.conversation = conversation if conversation is not None else ConversationState()
        self.output = output
        self.state = SessionState.ACTIVE

    @property
    def active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def terminate(self, farewell: str = "Goodbye! Have a great day!") -> None:
        self.state = SessionState.TERMINATED
        self.output(f"\n{farewell}")
        logger.info("Chat session terminated")

    def handle_input(self, user_input: str) -> Optional[str]:
        """Handle one line of input and return the reply shown, if any."""
        if not self.active:
            raise RuntimeError("Chat session has been terminated")

        text = user_input.strip()

        if text.lower() == EXIT_KEYWORD:
            self.terminate()
            return None

        if not text:
            return None

        if len(text) > MAX_INPUT_LENGTH:
            logger.warning(f"Input exceeded length limit: {len(text)} chars")
            self.output(f"\nError: Input too long (max {MAX_INPUT_LENGTH} characters)")
            return None

        command_reply = self.dispatcher.try_dispatch(text)
        if command_reply is not None:
            # Synthetic turn: recorded for later context, never sent through the limiter
            self.conversation.append(Turn.model(command_reply))
            self._display(command_reply)
            return command_reply

        return self._ask_model(text)

    def _ask_model(self, text: str) -> Optional[str]:
        history = self.conversation.to_ordered_sequence()
        logger.debug(f"Sending message with {len(history)} turns of history")

        try:
            reply = self.executor.execute(lambda: self.model_client.send(history, text))
        except RateLimitExceeded as e:
            logger.warning(f"Local rate limit hit, retry after {e.retry_after_ms} ms")
            self.output(f"\nError: {e.message}")
            return None
        except ProviderError as e:
            logger.error(f"Model call failed ({e.kind.value}): {e.message}")
            self._report_error(e.message)
            return None
        except Exception as e:
            logger.exception("Unexpected error during model call")
            self._report_error(sanitize_text(str(e)))
            return None

        # Remove ANSI escape sequences
        safe_reply = reply.replace("\x1b", "")
        if not safe_reply.strip():
            logger.warning("Received empty response from model")
            self.output("\nReceived empty response from AI. Please try again.")
            return None

        self.conversation.append(Turn.user(text))
        self.conversation.append(Turn.model(safe_reply))
        self._display(safe_reply)
        return safe_reply

    def _display(self, reply: str) -> None:
        self.output(f"\nAI: {reply}\n")

    def _report_error(self, message: str) -> None:
        self.output(f"\nError: {message}")
        if "quota" in message.lower():
            self.output(QUOTA_HINT)

    def run(self, next_line: LineSource) -> None:
        """Read and handle lines until exit or end of input."""
        while self.active:
            try:
                line = next_line()
                if line is None:
                    self.terminate("Goodbye! (EOF received)")
                    break
                self.handle_input(line)

            except KeyboardInterrupt:
                self.terminate("Goodbye! (Interrupted by user)")
                break

            except Exception as e:
                logger.exception("Unexpected error in main REPL loop")
                self.output(f"An unexpected error occurred: {e}")
                self.output("The chat will continue. Please try again.")


def print_banner() -> None:
    print("\n=== Realtime Chat ===")
    print("Available commands:")
    for line in COMMAND_HELP:
        print(line)
    print(f"Type '{EXIT_KEYWORD}' to end the conversation\n")


def run_chat_repl(
    api_key: str,
    max_calls: int,
    time_window: float,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    model: str = DEFAULT_MODEL,
    base_url: Optional[str] = None,
    weather_api_key: Optional[str] = None,
    news_api_key: Optional[str] = None,
    stock_api_key: Optional[str] = None,
    next_line: Optional[LineSource] = None,
) -> None:
    """Run the interactive chat REPL."""
    rate_limiter = FixedWindowRateLimiter(max_calls, time_window)
    executor = RetryExecutor(rate_limiter, max_retries=max_retries, base_delay=base_delay)
    data_client = RealTimeDataClient(
        weather_api_key=weather_api_key,
        news_api_key=news_api_key,
        stock_api_key=stock_api_key,
    )
    orchestrator = ChatOrchestrator(
        ModelClient(api_key, model=model, base_url=base_url),
        DataCommandDispatcher(data_client),
        executor,
    )

    logger.info("Realtime Chat REPL started")
    logger.info(f"Rate limit: {max_calls} calls per {time_window} seconds")
    logger.info(f"Retries: {max_retries} attempts, base delay {base_delay} seconds")
    logger.info(f"Using model: {model}")

    print_banner()
    orchestrator.run(next_line or console_line_source())
    logger.info(f"Chat ended after {len(orchestrator.conversation)} turns")
