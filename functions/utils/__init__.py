"""Utility modules for SparkQuote functions."""

from utils.agent_logger import (
    log_agent_start,
    log_agent_output,
    log_agent_error,
    log_quote_summary,
)

__all__ = [
    "log_agent_start",
    "log_agent_output",
    "log_agent_error",
    "log_quote_summary",
]
