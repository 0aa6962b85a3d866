"""Clarification Agent for SparkQuote.

Turns a free-text job description into a short list of multiple-choice
clarifying questions. Every question keeps an "Other" option so the user
can always answer in free text.
"""

from typing import List, Optional
import structlog

from agents.base_agent import BaseAgent
from agents.session import QuoteSession, require_description
from config.settings import settings
from models.quote import ClarifyingQuestion
from services.llm_service import LLMService
from utils.agent_logger import log_agent_output
from validators.response_validator import parse_questions_response

logger = structlog.get_logger()


# =============================================================================
# CLARIFICATION PROMPT
# =============================================================================


CLARIFICATION_PROMPT = """You are an experienced electrician in England pricing work under BS 7671.

A customer wants a quote for this job:
"{description}"

Ask only as many multiple-choice questions as you need to price the job accurately,
and never more than {max_questions}. Prioritise, where relevant:
- Cable run length
- Installation method (surface trunking, chased into walls, under floors, etc.)
- Property type and age
- New installation versus replacement of existing
- Structural disruption (lifting floors, chasing, making good)
- Consumer unit scope (spare ways, RCD protection, replacement needed)

Assume the electrician owns all standard tools and that the work is to the
current BS 7671 baseline; do not ask about either.

Each question must have between 2 and 5 specific options.

Respond with JSON only, exactly in this shape:
{{
  "questions": [
    {{"question": "How long is the cable run from the consumer unit?", "options": ["Under 5m", "5-10m", "Over 10m"]}}
  ]
}}
"""


class ClarificationAgent(BaseAgent):
    """Clarification stage - asks the questions that precede an estimate."""

    def __init__(self, llm_service: Optional[LLMService] = None):
        """Initialize ClarificationAgent."""
        super().__init__(name="clarification", llm_service=llm_service)

    def build_prompt(self, description: str) -> str:
        """Build the single clarification prompt for a description."""
        return CLARIFICATION_PROMPT.format(
            description=description,
            max_questions=settings.max_clarifying_questions
        )

    async def request_clarifying_questions(self, description: str) -> List[ClarifyingQuestion]:
        """Ask the model for clarifying questions about a job.

        Args:
            description: Free-text job description.

        Returns:
            Validated questions, each with unique options ending in "Other".

        Raises:
            ValidationError: If the description is empty (nothing is sent).
            UpstreamFormatError: If the reply fails schema validation.
            UpstreamTransportError: If the call fails.
        """
        description = require_description(description)

        reply = await self._dispatch(
            self.build_prompt(description),
            max_tokens=settings.clarification_max_tokens
        )
        questions = self._require(parse_questions_response(reply), reply)

        logger.info(
            "clarifying_questions_ready",
            question_count=len(questions),
            duration_ms=self.duration_ms
        )
        log_agent_output(self.name, {"questions": [q.to_dict() for q in questions]})
        return questions

    async def start_session(self, description: str) -> QuoteSession:
        """Ask clarifying questions and open a session awaiting answers."""
        questions = await self.request_clarifying_questions(description)
        return QuoteSession(description, questions)
