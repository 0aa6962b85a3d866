"""Quick time estimate for a single job type."""

from typing import Optional
import structlog

from agents.base_agent import BaseAgent
from config.errors import ErrorCode, ValidationError
from config.settings import settings
from services.llm_service import LLMService
from validators.response_validator import parse_hours_response

logger = structlog.get_logger()


TIME_ESTIMATE_PROMPT = (
    "Estimate the time required to install {job_type} for a standard UK home. "
    "Provide only a number in hours."
)


class TimeEstimateAgent(BaseAgent):
    """Answers 'how many hours does X take?' with a single number."""

    def __init__(self, llm_service: Optional[LLMService] = None):
        super().__init__(name="time_estimate", llm_service=llm_service)

    async def estimate_time(self, job_type: str) -> float:
        """Return estimated hours for a job type, rounded to 2 decimals."""
        if not isinstance(job_type, str) or not job_type.strip():
            raise ValidationError(
                message="Job type is required",
                field="jobType",
                code=ErrorCode.MISSING_FIELD
            )

        reply = await self._dispatch(
            TIME_ESTIMATE_PROMPT.format(job_type=job_type.strip()),
            max_tokens=settings.time_estimate_max_tokens
        )
        hours = self._require(parse_hours_response(reply), reply)

        logger.info("time_estimate_ready", job_type=job_type.strip(), hours=hours)
        return hours
