"""Bounded exponential backoff around rate-limited model calls."""

import logging
import re
import time
from enum import Enum
from typing import Callable, Optional, TypeVar

import openai

from realtime_chat.rate_limiter import FixedWindowRateLimiter, RateLimitExceeded

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0

TRANSIENT_PATTERN = re.compile(r"quota|rate[\s_-]?limit|too many requests", re.IGNORECASE)

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """How the retry loop should treat a failure."""

    TRANSIENT = "transient"
    NON_TRANSIENT = "non_transient"
    RATE_LIMITED = "rate_limited"


class ProviderError(Exception):
    """Base exception for failed model provider calls."""

    kind = ErrorKind.NON_TRANSIENT

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class TransientProviderError(ProviderError):
    """Raised when the provider reports a quota or rate-limit condition."""

    kind = ErrorKind.TRANSIENT


class NonTransientProviderError(ProviderError):
    """Raised for provider failures that retrying will not fix."""

    kind = ErrorKind.NON_TRANSIENT


def classify_error(error: BaseException) -> ErrorKind:
    """Classify an exception raised by a model call.

    Structured errors are trusted first; the message heuristic only applies to
    exceptions that carry no classification of their own.
    """
    if isinstance(error, RateLimitExceeded):
        return ErrorKind.RATE_LIMITED
    if isinstance(error, ProviderError):
        return error.kind
    if isinstance(error, openai.RateLimitError):
        return ErrorKind.TRANSIENT
    if isinstance(error, openai.APIStatusError) and error.status_code == 429:
        return ErrorKind.TRANSIENT
    if isinstance(
        error,
        (
            openai.AuthenticationError,
            openai.PermissionDeniedError,
            openai.BadRequestError,
            openai.NotFoundError,
        ),
    ):
        return ErrorKind.NON_TRANSIENT
    if TRANSIENT_PATTERN.search(str(error)):
        return ErrorKind.TRANSIENT
    return ErrorKind.NON_TRANSIENT


class RetryExecutor:
    """Runs an operation with local rate limiting and exponential backoff."""

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        classifier: Callable[[BaseException], ErrorKind] = classify_error,
        sleep: Optional[Callable[[float], None]] = None,
        notify: Optional[Callable[[str], None]] = print,
    ) -> None:
        _validate(max_retries, base_delay)
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.classifier = classifier
        self._sleep = sleep or time.sleep
        self._notify = notify

    def execute(
        self,
        operation: Callable[[], T],
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> T:
        """Call ``operation`` until it succeeds or the attempt budget is spent.

        Every attempt is admitted by the rate limiter first; a local
        RateLimitExceeded is never retried. Failures classified as transient
        wait ``base_delay * 2 ** attempt`` seconds before the next attempt, all
        other failures are re-raised at once. The last failure is re-raised
        unchanged.
        """
        max_retries = self.max_retries if max_retries is None else max_retries
        base_delay = self.base_delay if base_delay is None else base_delay
        _validate(max_retries, base_delay)

        for attempt in range(max_retries):
            self.rate_limiter.admit()

            try:
                return operation()
            except Exception as e:
                if attempt == max_retries - 1:
                    logger.error(f"Giving up after {max_retries} attempts: {e}")
                    raise

                kind = self.classifier(e)
                if kind != ErrorKind.TRANSIENT:
                    logger.debug(f"Not retrying {kind.value} error: {e}")
                    raise

                delay = base_delay * 2**attempt
                logger.warning(
                    f"Attempt {attempt + 1}/{max_retries} rate limited by provider; "
                    f"retrying in {delay:.2f} seconds"
                )
                if self._notify:
                    self._notify(f"Rate limited. Retrying in {delay:g} seconds...")
                self._sleep(delay)

        # Unreachable: the loop either returns or raises.
        raise RuntimeError("retry loop exited without a result")


def _validate(max_retries: int, base_delay: float) -> None:
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")
    if base_delay < 0:
        raise ValueError("base_delay must not be negative")
