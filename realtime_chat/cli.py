"""Command-line interface for Realtime Chat."""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from realtime_chat import __version__
from realtime_chat.chat import run_chat_repl
from realtime_chat.logging_hygiene import setup_secure_logging
from realtime_chat.provider import DEFAULT_MODEL


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="realtime-chat",
        description=(
            "Realtime Chat - an interactive REPL for chatting with a Large Language Model, "
            "with live weather, news, stock and exchange-rate commands. "
            "Model calls are rate limited and retried with exponential backoff."
        ),
        epilog=(
            "Examples:\n"
            "  %(prog)s --api-key sk-your-key-here\n"
            "  %(prog)s --max-calls 10 --time-window 60\n"
            "  %(prog)s --log-level DEBUG\n"
            "\n"
            "Environment Variables:\n"
            "  OPENAI_API_KEY - Your model provider API key\n"
            "  OPENAI_BASE_URL - Alternative OpenAI-compatible endpoint\n"
            "  CHAT_MODEL - Model identifier\n"
            "  RATE_LIMIT_MAX_CALLS - Maximum model calls per time window\n"
            "  RATE_LIMIT_TIME_WINDOW - Time window in seconds for rate limiting\n"
            "  RETRY_MAX_ATTEMPTS - Attempts per model call\n"
            "  RETRY_BASE_DELAY - Initial backoff delay in seconds\n"
            "  WEATHER_API_KEY - OpenWeatherMap key for /weather\n"
            "  NEWS_API_KEY - NewsAPI key for /news\n"
            "  ALPHA_VANTAGE_API_KEY - Alpha Vantage key for /stock"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--api-key",
        type=str,
        default=os.getenv("OPENAI_API_KEY"),
        help=(
            "Your model provider API key (required). "
            "Can also be set via OPENAI_API_KEY environment variable."
        ),
        metavar="KEY",
    )

    parser.add_argument(
        "--base-url",
        type=str,
        default=os.getenv("OPENAI_BASE_URL"),
        help="Base URL of an OpenAI-compatible API. Defaults to the OpenAI API.",
        metavar="URL",
    )

    parser.add_argument(
        "--model",
        type=str,
        default=os.getenv("CHAT_MODEL", DEFAULT_MODEL),
        help=f"Model identifier. Default is {DEFAULT_MODEL}.",
    )

    # Rate limiting configuration
    parser.add_argument(
        "--max-calls",
        type=int,
        default=int(os.getenv("RATE_LIMIT_MAX_CALLS", "60")),
        help=(
            "Maximum number of model calls allowed per time window. "
            "Default is 60. Can be set via RATE_LIMIT_MAX_CALLS environment variable."
        ),
        metavar="N",
    )

    parser.add_argument(
        "--time-window",
        type=int,
        default=int(os.getenv("RATE_LIMIT_TIME_WINDOW", "60")),
        help=(
            "Time window in seconds for rate limiting. Default is 60 seconds. "
            "Can be set via RATE_LIMIT_TIME_WINDOW environment variable."
        ),
        metavar="SECONDS",
    )

    # Retry configuration
    parser.add_argument(
        "--max-retries",
        type=int,
        default=int(os.getenv("RETRY_MAX_ATTEMPTS", "3")),
        help="Attempts per model call when the provider reports a rate limit. Default is 3.",
        metavar="N",
    )

    parser.add_argument(
        "--base-delay",
        type=float,
        default=float(os.getenv("RETRY_BASE_DELAY", "1.0")),
        help="Initial backoff delay in seconds, doubled on each retry. Default is 1.0.",
        metavar="SECONDS",
    )

    # Data service credentials
    parser.add_argument(
        "--weather-api-key",
        type=str,
        default=os.getenv("WEATHER_API_KEY"),
        help="OpenWeatherMap API key used by /weather.",
        metavar="KEY",
    )

    parser.add_argument(
        "--news-api-key",
        type=str,
        default=os.getenv("NEWS_API_KEY"),
        help="NewsAPI key used by /news.",
        metavar="KEY",
    )

    parser.add_argument(
        "--stock-api-key",
        type=str,
        default=os.getenv("ALPHA_VANTAGE_API_KEY"),
        help="Alpha Vantage API key used by /stock.",
        metavar="KEY",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Set the logging level. Default is INFO. "
            "Can be set via LOG_LEVEL environment variable."
        ),
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def setup_logging(log_level: str) -> None:
    """Configure application logging."""
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    log_format = "%(asctime)s [%(levelname)8s] %(name)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured at {log_level} level")

    # Reduce third-party library noise
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def validate_api_key(api_key: str) -> bool:
    """Check that an API key looks usable."""
    if not api_key:
        return False

    if any(ch.isspace() for ch in api_key):
        return False

    if len(api_key) < 20:
        return False

    return True


def validate_args(args: argparse.Namespace) -> bool:
    """Validate CLI arguments."""
    logger = logging.getLogger(__name__)
    valid = True

    if not args.api_key:
        print("Error: API key is required.")
        print("   Use --api-key argument or set OPENAI_API_KEY environment variable.")
        valid = False
    elif not validate_api_key(args.api_key):
        print("Error: Invalid API key format.")
        print("   API keys must be at least 20 characters long and contain no whitespace.")
        valid = False
    else:
        logger.debug("API key format validation passed")

    if args.max_calls <= 0:
        print(f"Error: max-calls must be positive (got {args.max_calls})")
        valid = False

    if args.time_window <= 0:
        print(f"Error: time-window must be positive (got {args.time_window})")
        valid = False

    if args.max_retries <= 0:
        print(f"Error: max-retries must be positive (got {args.max_retries})")
        valid = False

    if args.base_delay < 0:
        print(f"Error: base-delay must not be negative (got {args.base_delay})")
        valid = False

    if valid:
        rate_per_minute = (args.max_calls / args.time_window) * 60
        if rate_per_minute > 60:
            print(
                f"Warning: High API call rate ({rate_per_minute:.1f} calls/minute). "
                "This could result in significant costs."
            )
            logger.warning(f"High API call rate: {rate_per_minute:.1f} calls/minute")

    return valid


def show_startup_info(args: argparse.Namespace) -> None:
    """Display startup configuration without revealing sensitive data."""
    print("Starting Realtime Chat...")
    print(f"   Model: {args.model}")
    if args.base_url:
        print(f"   Endpoint: {args.base_url}")
    print(f"   Rate Limit: {args.max_calls} calls per {args.time_window} seconds")
    print(f"   Retries: {args.max_retries} attempts, base delay {args.base_delay}s")
    print(f"   Log Level: {args.log_level}")

    if args.api_key:
        key_preview = (
            args.api_key[:7] + "..." + args.api_key[-4:]
            if len(args.api_key) > 11
            else "***"
        )
        print(f"   API Key: {key_preview}")

    services = {
        "/weather": args.weather_api_key,
        "/news": args.news_api_key,
        "/stock": args.stock_api_key,
    }
    missing = [name for name, key in services.items() if not key]
    if missing:
        print(f"   Not configured: {', '.join(missing)}")

    print()


def main() -> None:
    """CLI entry point."""
    try:
        load_dotenv()
        parser = create_parser()
        args = parser.parse_args()

        setup_logging(args.log_level)
        setup_secure_logging()
        logger = logging.getLogger(__name__)

        logger.info("Realtime Chat CLI starting...")
        logger.debug(
            f"Arguments: max_calls={args.max_calls}, time_window={args.time_window}, "
            f"max_retries={args.max_retries}, base_delay={args.base_delay}"
        )

        if not validate_args(args):
            logger.error("Argument validation failed")
            sys.exit(1)

        show_startup_info(args)
        logger.info("Launching chat REPL...")
        run_chat_repl(
            args.api_key,
            args.max_calls,
            args.time_window,
            max_retries=args.max_retries,
            base_delay=args.base_delay,
            model=args.model,
            base_url=args.base_url,
            weather_api_key=args.weather_api_key,
            news_api_key=args.news_api_key,
            stock_api_key=args.stock_api_key,
        )
        logger.info("Chat REPL ended normally")
        sys.exit(0)

    except KeyboardInterrupt:
        print("\nGoodbye! (Interrupted during startup)")
        sys.exit(0)
    except Exception as e:
        logger = logging.getLogger(__name__)
        logger.exception("Unexpected error during startup")
        print(f"An unexpected error occurred: {e}")
        print("Please check your configuration and try again.")
        sys.exit(2)


if __name__ == "__main__":
    main()
