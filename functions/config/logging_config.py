"""structlog configuration for SparkQuote functions."""

import logging

import structlog


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog to drop events below the given level.

    Args:
        level: Standard level name (DEBUG, INFO, WARNING, ...). Unknown
            names fall back to INFO.
        json_output: Render JSON lines for Cloud Logging; console output
            otherwise.
    """
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level)
    )
