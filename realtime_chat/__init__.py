"""Interactive LLM chat with live data commands and rate-limited model calls."""

__version__ = "0.1.0"
__description__ = "An interactive LLM chat REPL with real-time data commands and rate limiting"

from .chat import ChatOrchestrator, run_chat_repl
from .commands import DataCommandDispatcher
from .conversation import ConversationState, Turn
from .rate_limiter import FixedWindowRateLimiter, RateLimitExceeded
from .retry import RetryExecutor

__all__ = [
    "ChatOrchestrator",
    "ConversationState",
    "DataCommandDispatcher",
    "FixedWindowRateLimiter",
    "RateLimitExceeded",
    "RetryExecutor",
    "Turn",
    "run_chat_repl",
]
