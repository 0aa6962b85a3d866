"""SparkQuote configuration.

This package contains:
- settings: Environment variables and configuration
- secrets: Unified secret access (Firebase Secrets Manager)
- errors: Custom exceptions and error codes
- logging_config: structlog setup driven by LOG_LEVEL
"""

from config.settings import settings
from config.errors import (
    SparkQuoteError,
    ValidationError,
    SessionStateError,
    UpstreamError,
    UpstreamFormatError,
    UpstreamTransportError,
)
from config.secrets import get_secret, get_openai_api_key
from config.logging_config import configure_logging

__all__ = [
    "settings",
    "SparkQuoteError",
    "ValidationError",
    "SessionStateError",
    "UpstreamError",
    "UpstreamFormatError",
    "UpstreamTransportError",
    "get_secret",
    "get_openai_api_key",
    "configure_logging",
]
