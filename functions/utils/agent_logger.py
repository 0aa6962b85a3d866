"""Agent Output Logger for SparkQuote.

Provides highly visible, formatted logging for stage activity and quote
summaries, with distinctive visual markers that stand out in log streams.
Every banner is mirrored by a structured structlog event.
"""

import json
import structlog
from typing import Dict, Any, TYPE_CHECKING
from datetime import datetime, timezone

if TYPE_CHECKING:
    from models.quote import Quote

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
AGENT_BANNER_CHAR = "═"
QUOTE_BANNER_CHAR = "█"
ERROR_BANNER_CHAR = "!"


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format dictionary as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def _truncate_large_values(data: Dict[str, Any], max_length: int = 500) -> Dict[str, Any]:
    """Truncate large string values for display purposes."""
    if not isinstance(data, dict):
        return data

    result = {}
    for key, value in data.items():
        if isinstance(value, str) and len(value) > max_length:
            result[key] = value[:max_length] + f"... [truncated {len(value) - max_length} chars]"
        elif isinstance(value, dict):
            result[key] = _truncate_large_values(value, max_length)
        elif isinstance(value, list) and len(value) > 10:
            result[key] = value[:10] + [f"... and {len(value) - 10} more items"]
        else:
            result[key] = value
    return result


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_agent_start(agent_name: str, prompt_chars: int = 0, max_tokens: int = 0) -> None:
    """Log when an agent dispatches its request."""
    print("\n")
    print(AGENT_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(AGENT_BANNER_CHAR, f"▶ AGENT: {agent_name.upper()}"))
    print(AGENT_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Timestamp    : {_timestamp()}")
    print(f"║ Prompt Size  : {prompt_chars:,} chars")
    print(f"║ Token Budget : {max_tokens:,}")
    print(AGENT_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "agent_start_logged",
        agent=agent_name,
        prompt_chars=prompt_chars,
        max_tokens=max_tokens
    )


def log_agent_output(agent_name: str, output: Dict[str, Any], truncate: bool = True) -> None:
    """Log validated agent output with full formatted data."""
    display_output = _truncate_large_values(output) if truncate else output

    print("\n")
    print(AGENT_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(AGENT_BANNER_CHAR, f"✓ AGENT OUTPUT: {agent_name.upper()}"))
    print(AGENT_BANNER_CHAR * BANNER_WIDTH)
    for line in _format_json(display_output).split('\n'):
        print(f"  {line}")
    print(AGENT_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "agent_output_logged",
        agent=agent_name,
        output_keys=list(output.keys()) if isinstance(output, dict) else None
    )


def log_agent_error(agent_name: str, error: Exception) -> None:
    """Log an agent failure, including internal details never sent to callers."""
    details = getattr(error, "details", {}) or {}

    print("\n")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(ERROR_BANNER_CHAR, f"✗ AGENT ERROR: {agent_name.upper()}"))
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Timestamp    : {_timestamp()}")
    print(f"║ Error Type   : {type(error).__name__}")
    print(f"║ Code         : {getattr(error, 'code', 'N/A')}")
    print(f"║ Reason       : {getattr(error, 'reason', str(error))}")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.error(
        "agent_error_logged",
        agent=agent_name,
        error_type=type(error).__name__,
        error_code=getattr(error, "code", None),
        reason=getattr(error, "reason", str(error)),
        details=_truncate_large_values(details)
    )


def log_quote_summary(quote: "Quote") -> None:
    """Log a quote breakdown table with per-task and grand totals."""
    def _fmt(r) -> str:
        return f"£{r.min:,.2f} - £{r.max:,.2f}"

    print("\n")
    print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(QUOTE_BANNER_CHAR, "QUOTE BREAKDOWN"))
    print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Hourly Rate  : £{quote.hourlyRate:,.2f}")
    for task in quote.jobs:
        print(f"║ {task.job} [{task.confidence.value}]")
        print(f"║   Hours      : {task.timeRange.min} - {task.timeRange.max}")
        print(f"║   Labour     : {_fmt(task.costRange.labour)}")
        print(f"║   Materials  : {_fmt(task.costRange.materials)}")
        print(f"║   Total      : {_fmt(task.costRange.total)}")
    print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Total Labour     : {_fmt(quote.totals.labour)}")
    print(f"║ Total Materials  : {_fmt(quote.totals.materials)}")
    print(f"║ Grand Total      : {_fmt(quote.totals.total)}")
    print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "quote_summary_logged",
        job_count=len(quote.jobs),
        hours_min=quote.totals.timeRange.min,
        hours_max=quote.totals.timeRange.max,
        total_min=quote.totals.total.min,
        total_max=quote.totals.total.max
    )
