"""Estimation Agent for SparkQuote.

Turns a clarified job into a priced work breakdown. The model supplies
task names, confidence, raw hour ranges and material price ranges; every
cost figure is derived here, never taken from the model.
"""

from typing import List, Optional
import structlog

from agents.base_agent import BaseAgent
from agents.session import QuoteSession, SessionState
from config.errors import ErrorCode, SessionStateError, ValidationError
from config.settings import settings
from models.quote import Answer, Quote
from services.llm_service import LLMService
from services.range_pricing import aggregate_totals, price_tasks
from utils.agent_logger import log_quote_summary
from validators.response_validator import parse_estimate_response

logger = structlog.get_logger()

MAX_HOURLY_RATE = 10_000.0


# =============================================================================
# ESTIMATION PROMPT
# =============================================================================


ESTIMATION_PROMPT = """You are an experienced electrician in England pricing work under BS 7671.

The customer described this job:
"{description}"

They answered these clarifying questions:
{transcript}

Break the work down into discrete tasks. For each task give:
- "job": a short task name
- "confidence": "High", "Medium" or "Low" - how sure you are of the time estimate
- "timeRange": {{"min": hours, "max": hours}} for one electrician
- "materials": a list of {{"name": ..., "priceRange": {{"min": GBP, "max": GBP}}}}

Material rules:
- Name primary materials at brand and size level (e.g. "MK Logic Plus 13A Double Socket (K2747WHI)",
  "10m 2.5mm² Twin & Earth (6242Y)").
- Do NOT list tools; the electrician already owns them.
- Do NOT list minor fixings (screws, plugs, clips, grommets) as separate items; they are
  included in labour.

Respond with JSON only, exactly in this shape:
{{
  "jobs": [
    {{
      "job": "Install double socket",
      "confidence": "Medium",
      "timeRange": {{"min": 1, "max": 1.5}},
      "materials": [
        {{"name": "MK Logic Plus 13A Double Socket (K2747WHI)", "priceRange": {{"min": 8, "max": 12}}}}
      ]
    }}
  ]
}}
"""


def format_transcript(answers: List[Answer]) -> str:
    """Render resolved answers as 'question: answer' lines."""
    return "\n".join(f"- {a.question}: {a.answer}" for a in answers)


def validate_hourly_rate(hourly_rate) -> float:
    """Return the hourly rate as a positive float or raise ValidationError."""
    if isinstance(hourly_rate, bool):
        hourly_rate = None
    try:
        rate = float(hourly_rate)
    except (TypeError, ValueError):
        raise ValidationError(
            message="Hourly rate must be a number",
            field="hourlyRate",
            code=ErrorCode.INVALID_FIELD
        )
    if not rate > 0 or rate == float("inf"):
        raise ValidationError(
            message="Hourly rate must be a positive number",
            field="hourlyRate",
            code=ErrorCode.INVALID_FIELD
        )
    if rate > MAX_HOURLY_RATE:
        raise ValidationError(
            message=f"Hourly rate must not exceed {MAX_HOURLY_RATE:,.0f}",
            field="hourlyRate",
            code=ErrorCode.INVALID_FIELD
        )
    return rate


class EstimationAgent(BaseAgent):
    """Estimation stage - prices a clarified job."""

    def __init__(self, llm_service: Optional[LLMService] = None):
        """Initialize EstimationAgent."""
        super().__init__(name="estimation", llm_service=llm_service)

    def build_prompt(self, description: str, answers: List[Answer]) -> str:
        """Build the single estimation prompt from the session transcript."""
        return ESTIMATION_PROMPT.format(
            description=description,
            transcript=format_transcript(answers)
        )

    async def request_estimate(
        self,
        session: QuoteSession,
        hourly_rate: Optional[float] = None
    ) -> Quote:
        """Estimate a clarified job and complete its session.

        All preconditions are checked before anything is sent upstream.

        Args:
            session: Session awaiting answers, with every question answered.
            hourly_rate: Labour rate per hour (default from settings).

        Returns:
            Quote with priced tasks and aggregate totals.

        Raises:
            SessionStateError: If the session was already estimated.
            ValidationError: For an unanswered question or a bad rate.
            UpstreamFormatError: If the reply fails schema validation.
            UpstreamTransportError: If the call fails.
        """
        if session.state != SessionState.AWAITING_ANSWERS:
            raise SessionStateError(
                message="This job has already been estimated",
                state=session.state.value
            )

        answers = session.resolved_answers()
        rate = validate_hourly_rate(
            settings.default_hourly_rate if hourly_rate is None else hourly_rate
        )

        reply = await self._dispatch(
            self.build_prompt(session.description, answers),
            max_tokens=settings.estimation_max_tokens
        )
        raw_tasks = self._require(parse_estimate_response(reply), reply)

        tasks = price_tasks(raw_tasks, rate)
        quote = Quote(jobs=tasks, totals=aggregate_totals(tasks), hourlyRate=rate)
        session.complete(quote)

        logger.info(
            "estimate_ready",
            job_count=len(tasks),
            hourly_rate=rate,
            total_min=quote.totals.total.min,
            total_max=quote.totals.total.max,
            duration_ms=self.duration_ms
        )
        log_quote_summary(quote)
        return quote
