"""
Logging Hygiene Module

This module provides utilities to scrub credentials from logs and error
messages. The data services take their API keys as query parameters, so any
request URL echoed by an exception would otherwise leak the key.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Union

REDACTED = "[REDACTED]"


class SensitiveDataFilter(logging.Filter):
    """
    Logging filter that masks credentials in log records.

    The record is modified in place and never dropped.
    """

    def __init__(self, patterns: Optional[List[Dict[str, Union[str, Pattern]]]] = None):
        """
        Initialize the sensitive data filter.

        Args:
            patterns: List of pattern dictionaries with 'pattern' and 'replacement' keys
        """
        super().__init__()

        self.default_patterns = [
            {
                "pattern": re.compile(r"sk-[a-zA-Z0-9_-]{6,}"),
                "replacement": REDACTED,
                "description": "OpenAI API Key",
            },
            # Query string credentials: appid (OpenWeatherMap), apiKey (NewsAPI),
            # apikey (Alpha Vantage)
            {
                "pattern": re.compile(
                    r"\b(appid|api[_-]?key|access_token|token)=([^&\s'\"]+)", re.IGNORECASE
                ),
                "replacement": r"\1=" + REDACTED,
                "description": "Query string credential",
            },
            {
                "pattern": re.compile(
                    r'api[_-]?key["\']?\s*[:=]\s*["\']?([a-zA-Z0-9_-]{6,})', re.IGNORECASE
                ),
                "replacement": 'api_key="' + REDACTED + '"',
                "description": "Generic API Key",
            },
            {
                "pattern": re.compile(r"Bearer\s+([a-zA-Z0-9._-]+)", re.IGNORECASE),
                "replacement": "Bearer " + REDACTED,
                "description": "Bearer token",
            },
        ]

        self.patterns = self.default_patterns.copy()
        if patterns:
            self.patterns.extend(patterns)

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter log record to remove sensitive data.

        Args:
            record: Log record to filter

        Returns:
            bool: Always True (we modify the record but don't filter it out)
        """
        if record.msg:
            record.msg = self.sanitize_text(str(record.msg))

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self.sanitize_text(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        # Handlers reuse a cached exc_text, so the traceback is rendered and scrubbed here
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.sanitize_text(record.exc_text)

        return True

    def sanitize_text(self, text: str) -> str:
        """
        Sanitize text by replacing sensitive patterns.

        Args:
            text: Text to sanitize

        Returns:
            str: Sanitized text with sensitive data masked
        """
        if not text:
            return text

        sanitized = text
        for pattern_info in self.patterns:
            sanitized = pattern_info["pattern"].sub(pattern_info["replacement"], sanitized)

        return sanitized

    def add_pattern(
        self, pattern: Union[str, Pattern], replacement: str, description: str = ""
    ) -> None:
        """
        Add a custom sensitive data pattern.

        Args:
            pattern: Regex pattern to match (string or compiled pattern)
            replacement: Replacement text
            description: Description of what this pattern matches
        """
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE)

        self.patterns.append(
            {"pattern": pattern, "replacement": replacement, "description": description}
        )


_default_filter = SensitiveDataFilter()


def sanitize_text(text: str) -> str:
    """Mask credentials in arbitrary text using the default patterns."""
    return _default_filter.sanitize_text(text)


def setup_secure_logging(
    logger_name: Optional[str] = None,
    custom_patterns: Optional[List[Dict[str, Union[str, Pattern]]]] = None,
) -> logging.Logger:
    """
    Attach the sensitive data filter to every handler of a logger.

    Args:
        logger_name: Name of the logger to configure (None for root logger)
        custom_patterns: Additional custom patterns to filter

    Returns:
        logging.Logger: Configured logger with sensitive data filtering
    """
    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()

    sensitive_filter = SensitiveDataFilter(custom_patterns)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.addFilter(sensitive_filter)

    logger.debug("Secure logging with sensitive data filtering enabled")
    return logger


def sanitize_dict(
    data: Dict[str, Any], sensitive_keys: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Sanitize a dictionary by masking sensitive keys.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: List of key fragments to mask (uses defaults if None)

    Returns:
        Dict[str, Any]: Sanitized dictionary
    """
    if sensitive_keys is None:
        sensitive_keys = ["key", "appid", "token", "secret", "password", "authorization"]

    sanitized: Dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower()

        if any(term in key_lower for term in sensitive_keys):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        else:
            sanitized[key] = value

    return sanitized
